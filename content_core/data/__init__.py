# =============================================================================
# content_core/data/__init__.py
# Remote store access (Supabase)
# =============================================================================

from .supabase_client import (
    ChangeEvent,
    RemoteStoreClient,
    Subscription,
    get_cached_supabase_client,
    get_supabase_client,
    realtime_filter,
)

__all__ = [
    "ChangeEvent",
    "RemoteStoreClient",
    "Subscription",
    "get_cached_supabase_client",
    "get_supabase_client",
    "realtime_filter",
]
