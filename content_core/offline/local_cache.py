# =============================================================================
# content_core/offline/local_cache.py
# Local Cache Store - durable key/value fallback for every collection
# =============================================================================
"""
LocalCacheStore - namespaced, synchronous record storage.

Each collection is one JSON array stored under ``prefix + collection`` in a
key/value medium:

- SQLiteMedium: a single ``kv_store`` table in a SQLite file (default)
- MemoryMedium: a process-local dict (tests, ephemeral sessions)

Any failure of the medium or of JSON (de)serialization is raised as
StorageUnavailableError. Absence of a collection is not a failure.
"""

from __future__ import annotations
import json
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence
import logging

from content_core.errors import RecordNotFoundError, StorageUnavailableError
from content_core.offline.collections import now_iso
from content_core.offline.identity import new_id

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = ("id", "created_at")


# =============================================================================
# STORAGE MEDIA
# =============================================================================

class StorageMedium(ABC):
    """Synchronous string key/value storage."""

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key was never written."""

    @abstractmethod
    def write(self, key: str, value: str) -> None:
        """Store a value in a single write."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove a key; missing keys are ignored."""

    @abstractmethod
    def keys(self) -> List[str]:
        """All stored keys."""


class MemoryMedium(StorageMedium):
    """In-process medium."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)


class SQLiteMedium(StorageMedium):
    """
    Key/value medium backed by a SQLite file.

    Connections are thread-local; every write runs in its own transaction.
    """

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS kv_store (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._local = threading.local()
        self._initialized = False

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if getattr(self._local, "connection", None) is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._local.connection = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
            )
            self._local.connection.row_factory = sqlite3.Row
        connection = self._local.connection
        if not self._initialized:
            connection.execute(self.SCHEMA)
            connection.commit()
            self._initialized = True
            logger.info(f"Local cache initialized at: {self.db_path}")
        return connection

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def read(self, key: str) -> Optional[str]:
        row = self._get_connection().execute(
            "SELECT value FROM kv_store WHERE key = ?", [key]
        ).fetchone()
        return row["value"] if row else None

    def write(self, key: str, value: str) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                """,
                [key, value, datetime.now().isoformat()]
            )

    def remove(self, key: str) -> None:
        with self.transaction() as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", [key])

    def keys(self) -> List[str]:
        rows = self._get_connection().execute("SELECT key FROM kv_store").fetchall()
        return [row["key"] for row in rows]

    def close(self) -> None:
        """Close this thread's connection."""
        connection = getattr(self._local, "connection", None)
        if connection is not None:
            connection.close()
            self._local.connection = None


# =============================================================================
# LOCAL CACHE STORE
# =============================================================================

class LocalCacheStore:
    """
    Typed get/set/add/update/delete per content collection.

    Usage:
        store = LocalCacheStore(MemoryMedium())
        post = store.add("blog_posts", {"title": "Hello"})
        store.update("blog_posts", post["id"], {"status": "published"})
    """

    def __init__(self, medium: StorageMedium, prefix: str = "admin_"):
        self.medium = medium
        self.prefix = prefix

    def _key(self, collection: str) -> str:
        return f"{self.prefix}{collection}"

    @contextmanager
    def _guard(self, key: str, action: str) -> Iterator[None]:
        """Translate medium and serialization failures."""
        try:
            yield
        except StorageUnavailableError:
            raise
        except (sqlite3.Error, OSError, TypeError, ValueError) as e:
            logger.error(f"Local cache {action} failed for {key}: {e}")
            raise StorageUnavailableError(
                f"Local cache {action} failed: {e}", key=key
            ) from e

    # -------------------------------------------------------------------------
    # Collection-level operations
    # -------------------------------------------------------------------------

    def get(self, collection: str) -> List[Dict[str, Any]]:
        """All records of a collection in storage order ([] if never written)."""
        key = self._key(collection)
        with self._guard(key, "read"):
            raw = self.medium.read(key)
            if raw is None:
                return []
            data = json.loads(raw)
        if not isinstance(data, list):
            raise StorageUnavailableError(
                f"Local cache entry is not a list ({type(data).__name__})", key=key
            )
        for position, record in enumerate(data):
            if not isinstance(record, dict):
                raise StorageUnavailableError(
                    f"Local cache entry {position} is not a record ({type(record).__name__})",
                    key=key,
                )
        return data

    def set(self, collection: str, records: Sequence[Mapping[str, Any]]) -> None:
        """Replace the whole collection in a single write."""
        key = self._key(collection)
        with self._guard(key, "write"):
            payload = json.dumps([dict(r) for r in records])
            self.medium.write(key, payload)

    def clear(self, collection: str) -> None:
        key = self._key(collection)
        with self._guard(key, "clear"):
            self.medium.remove(key)

    def collections(self) -> List[str]:
        """Names of the collections currently stored under this prefix."""
        with self._guard(self.prefix, "scan"):
            keys = self.medium.keys()
        return sorted(k[len(self.prefix):] for k in keys if k.startswith(self.prefix))

    # -------------------------------------------------------------------------
    # Record-level operations
    # -------------------------------------------------------------------------

    @staticmethod
    def _stamp(record: Mapping[str, Any]) -> Dict[str, Any]:
        data = dict(record)
        timestamp = now_iso()
        if not data.get("id"):
            data["id"] = new_id()
        else:
            data["id"] = str(data["id"])
        if not data.get("created_at"):
            data["created_at"] = timestamp
        data["updated_at"] = timestamp
        return data

    def find(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Point lookup by id."""
        record_id = str(record_id)
        for record in self.get(collection):
            if str(record.get("id")) == record_id:
                return record
        return None

    def add(self, collection: str, record: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Append a record, assigning id and timestamps when absent.

        A record whose id is already stored replaces the stored one in
        place, keeping ids unique within the collection.

        Returns:
            The stored record
        """
        records = self.get(collection)
        new_record = self._stamp(record)

        for index, existing in enumerate(records):
            if str(existing.get("id")) == new_record["id"]:
                logger.warning(
                    f"Record {new_record['id']} already cached in {collection}; replacing it"
                )
                new_record["created_at"] = existing.get("created_at") or new_record["created_at"]
                records[index] = new_record
                break
        else:
            records.append(new_record)

        self.set(collection, records)
        return dict(new_record)

    def update(
        self,
        collection: str,
        record_id: str,
        fields: Mapping[str, Any],
    ) -> Dict[str, Any]:
        """
        Merge ``fields`` over a stored record and refresh ``updated_at``.

        Raises:
            RecordNotFoundError: If no record has this id
        """
        record_id = str(record_id)
        records = self.get(collection)

        for index, existing in enumerate(records):
            if str(existing.get("id")) == record_id:
                merged = dict(existing)
                merged.update(
                    {k: v for k, v in fields.items() if k not in IMMUTABLE_FIELDS}
                )
                merged["updated_at"] = now_iso()
                records[index] = merged
                self.set(collection, records)
                return dict(merged)

        raise RecordNotFoundError(
            f"No cached record {record_id} in {collection}",
            collection=collection,
            record_id=record_id,
        )

    def delete(self, collection: str, record_id: str) -> bool:
        """Remove a record; False when nothing was removed."""
        record_id = str(record_id)
        records = self.get(collection)
        remaining = [r for r in records if str(r.get("id")) != record_id]
        if len(remaining) == len(records):
            return False
        self.set(collection, remaining)
        return True

    def seed(
        self,
        collection: str,
        records: Sequence[Mapping[str, Any]],
        overwrite: bool = False,
    ) -> int:
        """
        Load demo/seed records into an empty collection.

        Args:
            collection: Collection name
            records: Records to store; ids and timestamps are filled in
            overwrite: Replace an existing, non-empty collection

        Returns:
            Number of records seeded (0 if the collection already had data)
        """
        if self.get(collection) and not overwrite:
            logger.debug(f"Skipping seed for {collection}: already populated")
            return 0

        stamped = [self._stamp(r) for r in records]
        self.set(collection, stamped)
        logger.info(f"Seeded {len(stamped)} records into local {collection}")
        return len(stamped)


# Singleton accessor
_local_cache: Optional[LocalCacheStore] = None
_lock = threading.Lock()


def get_local_cache() -> LocalCacheStore:
    """Get the process-wide LocalCacheStore backed by SQLite."""
    global _local_cache
    if _local_cache is None:
        with _lock:
            if _local_cache is None:
                from content_core.config import get_settings
                settings = get_settings()
                _local_cache = LocalCacheStore(
                    SQLiteMedium(settings.cache_path),
                    prefix=settings.cache_prefix,
                )
    return _local_cache
