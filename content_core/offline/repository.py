# =============================================================================
# content_core/offline/repository.py
# Dual-Backend Repository - Single API for remote-first, local-fallback CRUD
# =============================================================================
"""
ContentRepository - the primary API for all content operations.

Every operation tries the remote store (Supabase) once and, if that fails,
performs the equivalent operation on the local cache once:

    Start -> TryRemote -> Success ----------------------------> Done
                       -> Failure / empty read -> TryLocal -> Success -> Done
                                                           -> Failure -> [] / None / raise

- Reads never raise: the worst case is [] for lists and None for lookups.
- Writes land in exactly one store; nothing is replicated to the other.
- Mutations raise only when both stores failed (StorageUnavailableError)
  or the record exists in neither (RecordNotFoundError).
- An empty remote list also triggers the local fallback, so seed/demo data
  stays visible while a remote table exists but has not been populated.

Usage:
------
from content_core.offline import get_repository, SortKey

repo = get_repository()
posts = repo.list("blog_posts", filters={"status": "published"})
event = repo.create("events", {"title": "Summer Concert", "event_date": "2025-06-01"})
repo.update("events", event["id"], {"location": "Oslo"})
repo.delete("events", event["id"])
"""

from __future__ import annotations
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
import logging

from content_core.errors import (
    RecordNotFoundError,
    RemoteError,
    RemoteUnavailableError,
    StorageUnavailableError,
)
from content_core.offline.collections import (
    SortSpec,
    apply_filters,
    get_collection_spec,
    needs_full_scan,
    normalize_record,
    now_iso,
    sort_records,
)
from content_core.offline.local_cache import IMMUTABLE_FIELDS, LocalCacheStore

logger = logging.getLogger(__name__)


class DataSource(Enum):
    """Which store answered an operation."""
    REMOTE = "remote"
    LOCAL = "local"
    NONE = "none"


@dataclass
class FetchResult:
    """Records plus the store they came from."""
    records: List[Dict[str, Any]]
    source: DataSource

    def __len__(self) -> int:
        return len(self.records)


class ContentRepository:
    """
    Remote-first repository with a local cache fallback, for any collection.

    Remote clients are created per collection by ``remote_factory``
    (default: a Supabase RemoteStoreClient for the collection's table).
    """

    _instance: Optional[ContentRepository] = None
    _lock = threading.Lock()

    def __init__(
        self,
        local: Optional[LocalCacheStore] = None,
        remote_factory: Optional[Callable[[str], Any]] = None,
    ):
        self._local = local
        self._remote_factory = remote_factory
        self._remotes: Dict[str, Any] = {}

    @classmethod
    def get_instance(cls) -> ContentRepository:
        """Get or create singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = ContentRepository()
        return cls._instance

    # =========================================================================
    # LAZY LOADING OF BACKENDS
    # =========================================================================

    def _get_local(self) -> LocalCacheStore:
        if self._local is None:
            from content_core.offline.local_cache import get_local_cache
            self._local = get_local_cache()
        return self._local

    def _get_remote(self, collection: str):
        if collection not in self._remotes:
            if self._remote_factory is not None:
                self._remotes[collection] = self._remote_factory(collection)
            else:
                from content_core.data.supabase_client import RemoteStoreClient
                spec = get_collection_spec(collection)
                self._remotes[collection] = RemoteStoreClient(collection, table=spec.table)
        return self._remotes[collection]

    def _try_remote(self, collection: str, operation: str, call) -> Tuple[bool, Any]:
        """Run one remote call; (False, None) once a failure has been logged."""
        try:
            return True, call(self._get_remote(collection))
        except RemoteError as e:
            if isinstance(e, RemoteUnavailableError):
                logger.debug(f"{operation} {collection}: remote unavailable, using local cache")
            else:
                logger.warning(f"{operation} {collection}: remote failed ({e.message}), using local cache")
            return False, None

    # =========================================================================
    # READS
    # =========================================================================

    def list_with_source(
        self,
        collection: str,
        sort: Optional[SortSpec] = None,
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> FetchResult:
        """
        List records, remote first, and report which store answered.

        Args:
            collection: Collection name
            sort: Sort specification (default: the collection's default sort)
            filters: Equality filters applied by either store
            limit: Maximum number of records; zero or less returns nothing

        Returns:
            FetchResult, sorted with the shared comparator
        """
        if limit is not None and limit <= 0:
            return FetchResult([], DataSource.NONE)
        if sort is None:
            sort = get_collection_spec(collection).default_sort

        # Fallback sort keys are resolved locally, so the remote returns every row
        remote_limit = None if needs_full_scan(sort) else limit
        ok, rows = self._try_remote(
            collection, "list",
            lambda remote: remote.query(filters=filters, order_by=sort, limit=remote_limit),
        )
        if ok and rows:
            records = sort_records((normalize_record(r) for r in rows), sort)
            if limit is not None:
                records = records[:limit]
            logger.debug(f"Fetched {len(records)} rows from remote: {collection}")
            return FetchResult(records, DataSource.REMOTE)
        if ok:
            logger.info(f"Remote {collection} is empty, checking local cache")

        try:
            cached = self._get_local().get(collection)
        except StorageUnavailableError as e:
            logger.error(f"Both stores unavailable for {collection}: {e.message}")
            return FetchResult([], DataSource.NONE)

        records = sort_records(
            (normalize_record(r) for r in apply_filters(cached, filters)), sort
        )
        if limit is not None:
            records = records[:limit]
        logger.debug(f"Fetched {len(records)} rows from local cache: {collection}")
        return FetchResult(records, DataSource.LOCAL if records else DataSource.NONE)

    def list(
        self,
        collection: str,
        sort: Optional[SortSpec] = None,
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """List records; never raises, [] in the worst case."""
        return self.list_with_source(collection, sort, filters, limit).records

    def find_one(
        self,
        collection: str,
        filters: Mapping[str, Any],
    ) -> Optional[Dict[str, Any]]:
        """
        First record matching equality ``filters`` (e.g. ``{"slug": ...}``).

        Returns:
            The record, or None if neither store has a match
        """
        ok, rows = self._try_remote(
            collection, "find",
            lambda remote: remote.query(filters=filters, limit=1),
        )
        if ok and rows:
            return normalize_record(rows[0])

        try:
            cached = apply_filters(self._get_local().get(collection), filters)
        except StorageUnavailableError as e:
            logger.error(f"Both stores unavailable for {collection}: {e.message}")
            return None

        if not cached:
            return None
        spec = get_collection_spec(collection)
        return normalize_record(sort_records(cached, spec.default_sort)[0])

    def get_by_id(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Record by id from either store, or None."""
        return self.find_one(collection, {"id": str(record_id)})

    # =========================================================================
    # WRITES
    # =========================================================================

    def create(self, collection: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Create a record in the remote store, or in the local cache if the
        remote store fails.

        Raises:
            StorageUnavailableError: If both stores failed
        """
        ok, row = self._try_remote(
            collection, "create",
            lambda remote: remote.insert(dict(payload)),
        )
        if ok:
            return normalize_record(row)

        record = self._get_local().add(collection, payload)
        logger.info(f"Created {collection}/{record['id']} in local cache")
        return normalize_record(record)

    def update(
        self,
        collection: str,
        record_id: str,
        fields: Mapping[str, Any],
    ) -> Dict[str, Any]:
        """
        Merge ``fields`` into a record in whichever store holds it.

        Raises:
            RecordNotFoundError: If neither store has the record
            StorageUnavailableError: If the remote store failed and the
                local cache is unusable
        """
        record_id = str(record_id)
        changes = {k: v for k, v in fields.items() if k not in IMMUTABLE_FIELDS}

        remote_changes = dict(changes)
        if get_collection_spec(collection).remote_updated_at:
            remote_changes["updated_at"] = now_iso()

        ok, row = self._try_remote(
            collection, "update",
            lambda remote: remote.update(record_id, remote_changes),
        )
        if ok:
            return normalize_record(row)

        try:
            record = self._get_local().update(collection, record_id, changes)
        except RecordNotFoundError:
            raise RecordNotFoundError(
                f"{collection}/{record_id} not found",
                collection=collection,
                record_id=record_id,
            ) from None
        return normalize_record(record)

    def delete(self, collection: str, record_id: str) -> bool:
        """
        Delete a record; idempotent.

        Returns:
            True if a store removed the record, False if nothing was removed

        Raises:
            StorageUnavailableError: If the remote store failed and the
                local cache is unusable
        """
        record_id = str(record_id)
        ok, _ = self._try_remote(
            collection, "delete",
            lambda remote: remote.delete(record_id),
        )
        if ok:
            return True
        return self._get_local().delete(collection, record_id)

    # =========================================================================
    # BOUND VIEWS
    # =========================================================================

    def collection(self, name: str) -> CollectionRepository:
        """Repository view bound to one collection."""
        return CollectionRepository(self, name)


class CollectionRepository:
    """
    The five operations bound to one collection and its registry entry.

    Usage:
        posts = get_repository().collection("blog_posts")
        drafts = posts.list(filters={"status": "draft"})
        public = posts.list_published(limit=10)
    """

    def __init__(self, repository: ContentRepository, name: str):
        self.repository = repository
        self.name = name
        self.spec = get_collection_spec(name)

    def list(
        self,
        sort: Optional[SortSpec] = None,
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        return self.repository.list(self.name, sort or self.spec.default_sort, filters, limit)

    def list_published(self, limit: Optional[int] = None) -> FetchResult:
        """Published records in the order public pages show them."""
        return self.repository.list_with_source(
            self.name, self.spec.published_sort, {"status": "published"}, limit
        )

    def get_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        return self.repository.get_by_id(self.name, record_id)

    def find_one(self, **filters) -> Optional[Dict[str, Any]]:
        return self.repository.find_one(self.name, filters)

    def create(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        return self.repository.create(self.name, payload)

    def update(self, record_id: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        return self.repository.update(self.name, record_id, fields)

    def delete(self, record_id: str) -> bool:
        return self.repository.delete(self.name, record_id)


# Singleton accessor
_repository: Optional[ContentRepository] = None


def get_repository() -> ContentRepository:
    """
    Get the global ContentRepository instance.

    Usage:
        from content_core.offline import get_repository

        repo = get_repository()
        courses = repo.list("courses", filters={"status": "published"})
    """
    global _repository
    if _repository is None:
        _repository = ContentRepository.get_instance()
    return _repository
