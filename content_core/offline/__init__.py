# =============================================================================
# content_core/offline/__init__.py
# Resilient Dual-Backend Content Store
# =============================================================================
"""
Dual-Backend Content Store

Every content type of the site (blog posts, courses, resources, portfolio
projects, digital products, events, orders, messages, ...) gets the same
create/read/update/delete semantics whether Supabase or the local cache
answers.

Architecture:
------------

            Consumers (admin managers, public pages)
                          │
                ┌─────────▼──────────┐      ┌────────────────┐
                │  ContentRepository │      │ RealtimeBridge │
                └───┬────────────┬───┘      └───────┬────────┘
        1. try      │            │ 2. fallback      │ push
                    ▼            ▼                  ▼
        ┌──────────────────┐  ┌─────────────────┐  Supabase
        │ RemoteStoreClient│  │ LocalCacheStore │  realtime
        │    (Supabase)    │  │ (SQLite / mem)  │
        └──────────────────┘  └─────────────────┘

Usage:
------
from content_core.offline import get_repository

repo = get_repository()
events = repo.list("events")
"""

from content_core.offline.collections import (
    COLLECTIONS,
    CollectionSpec,
    SortKey,
    SortSpec,
    get_collection_spec,
    normalize_record,
    sort_records,
)

from content_core.offline.identity import new_id

from content_core.offline.local_cache import (
    LocalCacheStore,
    MemoryMedium,
    SQLiteMedium,
    StorageMedium,
    get_local_cache,
)

from content_core.offline.repository import (
    CollectionRepository,
    ContentRepository,
    DataSource,
    FetchResult,
    get_repository,
)

from content_core.offline.realtime import (
    RealtimeBridge,
    merge_change,
)

__all__ = [
    # Collections & sorting
    "COLLECTIONS",
    "CollectionSpec",
    "SortKey",
    "SortSpec",
    "get_collection_spec",
    "normalize_record",
    "sort_records",
    # Identity
    "new_id",
    # Local cache
    "LocalCacheStore",
    "MemoryMedium",
    "SQLiteMedium",
    "StorageMedium",
    "get_local_cache",
    # Repository (Main API)
    "CollectionRepository",
    "ContentRepository",
    "DataSource",
    "FetchResult",
    "get_repository",
    # Realtime
    "RealtimeBridge",
    "merge_change",
]
