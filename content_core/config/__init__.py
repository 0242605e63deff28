# =============================================================================
# content_core/config/__init__.py
# =============================================================================

from .settings import (
    ContentStoreSettings,
    load_settings,
    get_settings,
    reset_settings,
)

__all__ = [
    "ContentStoreSettings",
    "load_settings",
    "get_settings",
    "reset_settings",
]
