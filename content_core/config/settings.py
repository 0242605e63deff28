# =============================================================================
# content_core/config/settings.py
# Content Store Settings (environment, .env and Streamlit secrets)
# =============================================================================
"""
Settings resolution order:

1. Environment variables (a local ``.env`` file is loaded first)
2. Streamlit secrets, ``.streamlit/secrets.toml``:

    [supabase]
    url = "https://your-project.supabase.co"
    key = "your-anon-key"

Missing Supabase credentials are not an error: the store then runs in
local-only mode and every remote call falls back immediately.
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
import logging

import streamlit as st
from dotenv import load_dotenv

from content_core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CACHE_PATH = Path("local_data") / "content_cache.db"
DEFAULT_CACHE_PREFIX = "admin_"
DEFAULT_REMOTE_TIMEOUT = 10.0


@dataclass
class ContentStoreSettings:
    """Resolved configuration for the dual-backend content store."""
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = field(default=None, repr=False)
    remote_timeout: float = DEFAULT_REMOTE_TIMEOUT
    cache_prefix: str = DEFAULT_CACHE_PREFIX
    cache_path: Path = DEFAULT_CACHE_PATH
    realtime_enabled: bool = True

    @property
    def remote_configured(self) -> bool:
        """True when both Supabase URL and key are present."""
        return bool(self.supabase_url and self.supabase_key)

    def to_dict(self) -> Dict[str, Any]:
        """Settings for status display (the key is never included)."""
        return {
            "supabase_url": self.supabase_url,
            "remote_configured": self.remote_configured,
            "remote_timeout": self.remote_timeout,
            "cache_prefix": self.cache_prefix,
            "cache_path": str(self.cache_path),
            "realtime_enabled": self.realtime_enabled,
        }


def _read_secrets() -> Dict[str, Any]:
    """Read the [supabase] section of Streamlit secrets, if any."""
    try:
        if "supabase" in st.secrets:
            return dict(st.secrets["supabase"])
    except Exception as e:
        # No secrets.toml, or not running under Streamlit
        logger.debug(f"Streamlit secrets not available: {e}")
    return {}


def _parse_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be a number, got {raw!r}",
            config_key=name,
            expected_type="float",
        )
    if value <= 0:
        raise ConfigurationError(
            f"{name} must be positive, got {value}",
            config_key=name,
            expected_type="float > 0",
        )
    return value


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_settings(use_dotenv: bool = True, use_secrets: bool = True) -> ContentStoreSettings:
    """
    Build settings from the environment and Streamlit secrets.

    Args:
        use_dotenv: Load a ``.env`` file into the environment first
        use_secrets: Consult Streamlit secrets for missing Supabase credentials

    Returns:
        ContentStoreSettings

    Raises:
        ConfigurationError: If a numeric setting cannot be parsed
    """
    if use_dotenv:
        load_dotenv()

    secrets = _read_secrets() if use_secrets else {}

    url = os.getenv("SUPABASE_URL") or secrets.get("url")
    key = (
        os.getenv("SUPABASE_KEY")
        or os.getenv("SUPABASE_ANON_KEY")
        or secrets.get("key")
    )

    settings = ContentStoreSettings(supabase_url=url or None, supabase_key=key or None)

    raw_timeout = os.getenv("CONTENT_REMOTE_TIMEOUT")
    if raw_timeout:
        settings.remote_timeout = _parse_float("CONTENT_REMOTE_TIMEOUT", raw_timeout)

    prefix = os.getenv("CONTENT_CACHE_PREFIX")
    if prefix:
        settings.cache_prefix = prefix

    cache_path = os.getenv("CONTENT_CACHE_PATH")
    if cache_path:
        settings.cache_path = Path(cache_path)

    realtime = os.getenv("CONTENT_REALTIME_ENABLED")
    if realtime is not None:
        settings.realtime_enabled = _parse_bool(realtime)

    if not settings.remote_configured:
        logger.info("Supabase credentials not configured; running in local-only mode")

    return settings


# Module-level cache
_settings: Optional[ContentStoreSettings] = None


def get_settings() -> ContentStoreSettings:
    """Get the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Forget cached settings (tests, or after editing secrets)."""
    global _settings
    _settings = None
