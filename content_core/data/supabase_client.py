# =============================================================================
# content_core/data/supabase_client.py
# Supabase Client Configuration and the Remote Store Client
# Handles PostgREST CRUD calls and realtime change subscriptions
# =============================================================================

from __future__ import annotations
import asyncio
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional
import logging

import streamlit as st
from supabase import Client, ClientOptions, create_client

from content_core.config import ContentStoreSettings, get_settings
from content_core.errors import RemoteError, RemoteNotFoundError, RemoteUnavailableError

if TYPE_CHECKING:
    from content_core.offline.collections import SortSpec

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000  # PostgREST default max rows per response


def get_supabase_client(url: str, key: str, timeout: float) -> Optional[Client]:
    """
    Create a Supabase client with a bounded PostgREST timeout.

    Returns:
        Supabase client instance or None if it could not be created
    """
    try:
        options = ClientOptions(postgrest_client_timeout=timeout)
        return create_client(url, key, options=options)
    except Exception as e:
        logger.error(f"Failed to initialize Supabase client: {e}")
        return None


@st.cache_resource(ttl=3600)  # Refresh hourly to avoid stale connections
def get_cached_supabase_client(url: str, key: str, timeout: float) -> Optional[Client]:
    """Supabase client shared across sessions and reruns."""
    return get_supabase_client(url, key, timeout)


# =============================================================================
# REALTIME TYPES
# =============================================================================

@dataclass
class ChangeEvent:
    """One postgres_changes notification."""
    type: str                                   # INSERT, UPDATE, DELETE
    table: str
    record: Optional[Dict[str, Any]] = None     # new row (INSERT/UPDATE)
    old_record: Optional[Dict[str, Any]] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], table: str) -> ChangeEvent:
        """Accept both the nested ``data`` payload and the flat one."""
        data = payload.get("data", payload)
        event_type = data.get("type") or data.get("eventType") or ""
        record = data.get("record") or data.get("new") or None
        old_record = data.get("old_record") or data.get("old") or None
        return cls(
            type=str(event_type).upper(),
            table=data.get("table") or table,
            record=dict(record) if record else None,
            old_record=dict(old_record) if old_record else None,
        )


@dataclass
class Subscription:
    """Handle for a running realtime channel."""
    name: str
    cancelled: threading.Event = field(default_factory=threading.Event)
    failed: threading.Event = field(default_factory=threading.Event)
    thread: Optional[threading.Thread] = None

    @property
    def active(self) -> bool:
        return not (self.cancelled.is_set() or self.failed.is_set())

    def cancel(self, timeout: float = 2.0) -> None:
        """Stop delivering events and wait for the channel to close."""
        self.cancelled.set()
        if self.thread is not None and self.thread is not threading.current_thread():
            self.thread.join(timeout)


def realtime_filter(filters: Optional[Mapping[str, Any]]) -> Optional[str]:
    """
    Build a realtime filter string (``column=eq.value``).

    Raises:
        ValueError: Realtime channels accept a single filter only
    """
    if not filters:
        return None
    if len(filters) > 1:
        raise ValueError(
            f"Realtime subscriptions support one equality filter, got {sorted(filters)}"
        )
    (column, value), = filters.items()
    return f"{column}=eq.{value}"


def postgrest_order(sort: Optional[SortSpec]) -> str:
    """
    PostgREST ``order`` value matching the local comparator.

    Missing values rank lowest locally, so nulls go first on ascending
    keys and last on descending ones. ``id`` closes every ordering so
    pages never overlap. A key's fallback field is ordered right after it.
    """
    parts: List[str] = []
    for key in sort or ():
        direction = "desc.nullslast" if key.descending else "asc.nullsfirst"
        parts.append(f"{key.field}.{direction}")
        if key.fallback:
            parts.append(f"{key.fallback}.{direction}")
    parts.append("id")
    return ",".join(parts)


# =============================================================================
# REMOTE STORE CLIENT
# =============================================================================

class RemoteStoreClient:
    """
    Uniform request wrapper around one Supabase table.

    Every failure is raised as RemoteError; a query that succeeds with no
    rows returns [] so callers can tell "empty" from "failed".

    Usage:
        remote = RemoteStoreClient("events")
        rows = remote.query(filters={"status": "published"})
    """

    def __init__(
        self,
        collection: str,
        client: Optional[Client] = None,
        table: Optional[str] = None,
        settings: Optional[ContentStoreSettings] = None,
    ):
        self.collection = collection
        self.table_name = table or collection
        self.settings = settings or get_settings()
        self.client = client
        if self.client is None and self.settings.remote_configured:
            self.client = get_cached_supabase_client(
                self.settings.supabase_url,
                self.settings.supabase_key,
                self.settings.remote_timeout,
            )

    def is_connected(self) -> bool:
        """Check if a Supabase client is available."""
        return self.client is not None

    def _table(self, operation: str):
        if not self.is_connected():
            raise RemoteUnavailableError(
                "Supabase is not configured",
                collection=self.collection,
                operation=operation,
            )
        return self.client.table(self.table_name)

    def _execute(self, operation: str, builder) -> List[Dict[str, Any]]:
        """Run a PostgREST request and validate the response rows."""
        try:
            response = builder.execute()
        except Exception as e:
            raise RemoteError(
                f"{operation} on {self.table_name} failed: {e}",
                collection=self.collection,
                operation=operation,
            ) from e

        rows = getattr(response, "data", None)
        if rows is None:
            return []
        if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
            raise RemoteError(
                f"Malformed response from {self.table_name}",
                collection=self.collection,
                operation=operation,
                details={"data_type": type(rows).__name__},
            )
        return rows

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    def query(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[SortSpec] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch rows matching equality ``filters``.

        Pages through the 1000-row response cap unless ``limit`` is given.
        Rows are always ordered, with ``id`` as the final key.

        Raises:
            RemoteError: On any non-success condition
        """
        table = self._table("query")
        order = postgrest_order(order_by)

        def build():
            query = table.select("*")
            for column, value in (filters or {}).items():
                query = query.eq(column, value)
            return query.order(order)

        if limit is not None:
            return self._execute("query", build().limit(limit))

        all_rows: List[Dict[str, Any]] = []
        offset = 0
        while True:
            rows = self._execute("query", build().range(offset, offset + PAGE_SIZE - 1))
            all_rows.extend(rows)
            if len(rows) < PAGE_SIZE:
                break
            offset += PAGE_SIZE
        return all_rows

    def insert(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Insert one row and return it as stored (with the remote id).

        Raises:
            RemoteError: If the insert fails or returns no row
        """
        rows = self._execute("insert", self._table("insert").insert(dict(record)))
        if not rows:
            raise RemoteError(
                f"Insert into {self.table_name} returned no row",
                collection=self.collection,
                operation="insert",
            )
        return rows[0]

    def update(self, record_id: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Update one row by id.

        Raises:
            RemoteNotFoundError: If no row has this id
            RemoteError: On any other failure
        """
        builder = self._table("update").update(dict(fields)).eq("id", record_id)
        rows = self._execute("update", builder)
        if not rows:
            raise RemoteNotFoundError(
                f"No row {record_id} in {self.table_name}",
                record_id=record_id,
                collection=self.collection,
                operation="update",
            )
        return rows[0]

    def delete(self, record_id: str) -> bool:
        """
        Delete one row by id.

        Raises:
            RemoteNotFoundError: If no row has this id
            RemoteError: On any other failure
        """
        builder = self._table("delete").delete().eq("id", record_id)
        rows = self._execute("delete", builder)
        if not rows:
            raise RemoteNotFoundError(
                f"No row {record_id} in {self.table_name}",
                record_id=record_id,
                collection=self.collection,
                operation="delete",
            )
        return True

    # -------------------------------------------------------------------------
    # REALTIME
    # -------------------------------------------------------------------------

    def subscribe(
        self,
        filters: Optional[Mapping[str, Any]],
        on_event: Callable[[ChangeEvent], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> Subscription:
        """
        Listen for postgres_changes on this table in a background thread.

        The channel runs on its own async client, so it needs the Supabase
        URL and key from settings even when a sync client was injected.

        Raises:
            RemoteUnavailableError: If there is no client or no credentials
            ValueError: If more than one filter is given
        """
        if not (self.is_connected() and self.settings.remote_configured):
            raise RemoteUnavailableError(
                "Realtime needs the Supabase URL and key",
                collection=self.collection,
                operation="subscribe",
            )

        filter_expr = realtime_filter(filters)
        subscription = Subscription(name=f"{self.table_name}_changes")
        subscription.thread = threading.Thread(
            target=self._run_channel,
            args=(subscription, filter_expr, on_event, on_error),
            daemon=True,
            name=f"Realtime-{self.table_name}",
        )
        subscription.thread.start()
        logger.debug(f"Realtime subscription started: {subscription.name}")
        return subscription

    def _run_channel(self, subscription, filter_expr, on_event, on_error) -> None:
        try:
            asyncio.run(self._listen(subscription, filter_expr, on_event))
        except Exception as e:
            subscription.failed.set()
            logger.warning(f"Realtime channel {subscription.name} stopped: {e}")
            if on_error:
                on_error(RemoteError(
                    f"Realtime channel failed: {e}",
                    collection=self.collection,
                    operation="subscribe",
                ))

    async def _listen(self, subscription, filter_expr, on_event) -> None:
        from supabase import AsyncClientOptions, acreate_client

        client = await acreate_client(
            self.settings.supabase_url,
            self.settings.supabase_key,
            options=AsyncClientOptions(postgrest_client_timeout=self.settings.remote_timeout),
        )
        channel = client.channel(subscription.name)
        errors: List[str] = []

        def handle(payload):
            if subscription.active:
                on_event(ChangeEvent.from_payload(payload, self.table_name))

        def on_status(status, err=None):
            state = str(getattr(status, "value", status)).upper()
            if state in ("CHANNEL_ERROR", "TIMED_OUT", "CLOSED"):
                errors.append(f"{state}: {err}" if err else state)

        channel.on_postgres_changes(
            "*",
            callback=handle,
            table=self.table_name,
            schema="public",
            filter=filter_expr,
        )
        await channel.subscribe(on_status)

        try:
            while not subscription.cancelled.is_set():
                if errors:
                    raise RuntimeError(errors[0])
                await asyncio.sleep(0.25)
        finally:
            await client.remove_channel(channel)
