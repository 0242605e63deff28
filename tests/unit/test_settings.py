# =============================================================================
# tests/unit/test_settings.py
# Unit Tests for Settings Resolution
# =============================================================================

from pathlib import Path

import pytest

from content_core.config import settings as settings_module
from content_core.config import ContentStoreSettings, load_settings
from content_core.errors import ConfigurationError

ENV_VARS = (
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "SUPABASE_ANON_KEY",
    "CONTENT_REMOTE_TIMEOUT",
    "CONTENT_CACHE_PREFIX",
    "CONTENT_CACHE_PATH",
    "CONTENT_REALTIME_ENABLED",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test without content store variables"""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadSettings:
    """load_settings"""

    def test_defaults_are_local_only(self):
        """No credentials means local-only mode, not an error"""
        settings = load_settings(use_dotenv=False, use_secrets=False)

        assert settings.remote_configured is False
        assert settings.cache_prefix == "admin_"
        assert settings.remote_timeout == 10.0
        assert settings.realtime_enabled is True

    def test_environment_variables(self, monkeypatch):
        """Every setting can come from the environment"""
        monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
        monkeypatch.setenv("CONTENT_REMOTE_TIMEOUT", "2.5")
        monkeypatch.setenv("CONTENT_CACHE_PREFIX", "site_")
        monkeypatch.setenv("CONTENT_CACHE_PATH", "/tmp/cache.db")
        monkeypatch.setenv("CONTENT_REALTIME_ENABLED", "false")

        settings = load_settings(use_dotenv=False, use_secrets=False)

        assert settings.remote_configured is True
        assert settings.supabase_key == "anon"
        assert settings.remote_timeout == 2.5
        assert settings.cache_prefix == "site_"
        assert settings.cache_path == Path("/tmp/cache.db")
        assert settings.realtime_enabled is False

    def test_service_key_wins_over_anon_key(self, monkeypatch):
        """SUPABASE_KEY is preferred to SUPABASE_ANON_KEY"""
        monkeypatch.setenv("SUPABASE_KEY", "primary")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")

        assert load_settings(use_dotenv=False, use_secrets=False).supabase_key == "primary"

    def test_streamlit_secrets_fill_missing_credentials(self, monkeypatch):
        """The [supabase] secrets section is the fallback"""
        monkeypatch.setattr(
            settings_module, "_read_secrets",
            lambda: {"url": "https://secret.supabase.co", "key": "secret-key"},
        )

        settings = load_settings(use_dotenv=False)

        assert settings.supabase_url == "https://secret.supabase.co"
        assert settings.remote_configured is True

    def test_environment_wins_over_secrets(self, monkeypatch):
        """Environment variables take precedence"""
        monkeypatch.setenv("SUPABASE_URL", "https://env.supabase.co")
        monkeypatch.setattr(
            settings_module, "_read_secrets",
            lambda: {"url": "https://secret.supabase.co", "key": "secret-key"},
        )

        assert load_settings(use_dotenv=False).supabase_url == "https://env.supabase.co"

    @pytest.mark.parametrize("raw", ["soon", "0", "-3"])
    def test_invalid_timeout(self, monkeypatch, raw):
        """A bad timeout is a ConfigurationError, not a silent default"""
        monkeypatch.setenv("CONTENT_REMOTE_TIMEOUT", raw)

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(use_dotenv=False, use_secrets=False)

        assert exc_info.value.details["config_key"] == "CONTENT_REMOTE_TIMEOUT"
        assert exc_info.value.recoverable is False


class TestSettingsCache:
    """get_settings / reset_settings"""

    def test_cached_until_reset(self, monkeypatch):
        """get_settings loads once until reset_settings"""
        calls = []

        def fake_load():
            calls.append(1)
            return ContentStoreSettings()

        monkeypatch.setattr(settings_module, "load_settings", fake_load)
        monkeypatch.setattr(settings_module, "_settings", None)

        first = settings_module.get_settings()
        assert settings_module.get_settings() is first

        settings_module.reset_settings()
        settings_module.get_settings()
        assert len(calls) == 2

    def test_to_dict_hides_key(self):
        """The Supabase key never appears in status output or repr"""
        settings = ContentStoreSettings(supabase_url="https://x.supabase.co", supabase_key="secret")

        assert "secret" not in str(settings.to_dict())
        assert "secret" not in repr(settings)
