# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import itertools
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from content_core.errors import RemoteError, RemoteNotFoundError
from content_core.offline.collections import matches
from content_core.offline.local_cache import LocalCacheStore, MemoryMedium, StorageMedium


# =============================================================================
# REMOTE STORE STUBS
# =============================================================================

class FailingRemote:
    """Remote client whose every call fails like an unreachable Supabase."""

    def __init__(self, collection: str = ""):
        self.collection = collection
        self.calls: List[str] = []

    def _fail(self, operation: str):
        self.calls.append(operation)
        raise RemoteError("connection refused", collection=self.collection, operation=operation)

    def query(self, filters=None, order_by=None, limit=None):
        self._fail("query")

    def insert(self, record):
        self._fail("insert")

    def update(self, record_id, fields):
        self._fail("update")

    def delete(self, record_id):
        self._fail("delete")

    def subscribe(self, filters, on_event, on_error=None):
        self._fail("subscribe")


class InMemoryRemote:
    """
    Remote client backed by a list, with Supabase-like behaviour: UUID ids,
    server-side created_at, not-found on missing rows. Rows come back in
    reverse insertion order so tests can tell that results get re-sorted.
    """

    def __init__(self, collection: str = "", rows: Optional[List[Dict[str, Any]]] = None):
        self.collection = collection
        self.rows: List[Dict[str, Any]] = [dict(r) for r in rows or []]
        self.calls: List[str] = []
        self.subscriptions: List[Dict[str, Any]] = []
        self.last_limit: Optional[int] = None

    def query(self, filters=None, order_by=None, limit=None):
        self.calls.append("query")
        self.last_limit = limit
        found = [dict(r) for r in reversed(self.rows) if matches(r, filters)]
        return found[:limit] if limit is not None else found

    def insert(self, record):
        self.calls.append("insert")
        row = dict(record)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        self.rows.append(row)
        return dict(row)

    def update(self, record_id, fields):
        self.calls.append("update")
        for row in self.rows:
            if str(row["id"]) == str(record_id):
                row.update(fields)
                return dict(row)
        raise RemoteNotFoundError(f"No row {record_id}", record_id=record_id)

    def delete(self, record_id):
        self.calls.append("delete")
        for row in list(self.rows):
            if str(row["id"]) == str(record_id):
                self.rows.remove(row)
                return True
        raise RemoteNotFoundError(f"No row {record_id}", record_id=record_id)

    def subscribe(self, filters, on_event, on_error=None):
        self.calls.append("subscribe")
        handle = MagicMock()
        self.subscriptions.append({
            "filters": filters,
            "on_event": on_event,
            "on_error": on_error,
            "handle": handle,
        })
        return handle


class BrokenMedium(StorageMedium):
    """Storage medium that is always unavailable (quota, disabled storage)."""

    def read(self, key):
        raise OSError("storage disabled")

    def write(self, key, value):
        raise OSError("quota exceeded")

    def remove(self, key):
        raise OSError("storage disabled")

    def keys(self):
        raise OSError("storage disabled")


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def memory_cache():
    """Empty in-memory local cache store"""
    return LocalCacheStore(MemoryMedium())


@pytest.fixture
def broken_cache():
    """Local cache whose medium always fails"""
    return LocalCacheStore(BrokenMedium())


@pytest.fixture
def failing_remote():
    """Single failing remote shared by every collection"""
    return FailingRemote()


@pytest.fixture
def memory_remote():
    """Single in-memory remote shared by every collection"""
    return InMemoryRemote()


@pytest.fixture
def make_repository(memory_cache):
    """Factory: repository over the given remote and (default) memory cache"""
    from content_core.offline.repository import ContentRepository

    def factory(remote, local=None):
        return ContentRepository(
            local=local if local is not None else memory_cache,
            remote_factory=lambda collection: remote,
        )

    return factory


@pytest.fixture
def ticking_clock(monkeypatch):
    """Deterministic, strictly increasing timestamps for local writes"""
    start = datetime(2025, 1, 1, tzinfo=timezone.utc)
    counter = itertools.count()

    def fake_now() -> str:
        return (start + timedelta(seconds=next(counter))).isoformat()

    monkeypatch.setattr("content_core.offline.local_cache.now_iso", fake_now)
    monkeypatch.setattr("content_core.offline.repository.now_iso", fake_now)
    return fake_now


@pytest.fixture
def mock_streamlit(monkeypatch):
    """Replace the Streamlit calls used for user notifications"""
    mock_st = MagicMock()
    mock_st.session_state = {}
    monkeypatch.setattr("content_core.errors.handlers.st", mock_st)
    return mock_st


@pytest.fixture
def sample_posts():
    """Three draft blog posts with distinct creation dates"""
    return [
        {"id": "p1", "title": "First", "status": "draft",
         "created_at": "2024-01-01T09:00:00+00:00", "updated_at": "2024-01-01T09:00:00+00:00"},
        {"id": "p2", "title": "Second", "status": "draft",
         "created_at": "2024-02-01T09:00:00+00:00", "updated_at": "2024-02-01T09:00:00+00:00"},
        {"id": "p3", "title": "Third", "status": "draft",
         "created_at": "2024-03-01T09:00:00+00:00", "updated_at": "2024-03-01T09:00:00+00:00"},
    ]
