# =============================================================================
# content_core/offline/realtime.py
# Realtime Bridge - remote change notifications for rendered content
# =============================================================================
"""
RealtimeBridge - pushes remote-origin changes into a consumer's view state.

The bridge sits beside the repository, not behind it: it never reads or
writes the local cache. When a stream errors it goes quiet; reconnecting
is left to the consumer.

Usage:
    bridge = RealtimeBridge()
    cancel = bridge.subscribe(
        "page_content",
        {"page_id": "membership"},
        on_change=lambda record: state.update(content=record),
    )
    ...
    cancel()
"""

from __future__ import annotations
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence
import logging

from content_core.config import ContentStoreSettings, get_settings
from content_core.offline.collections import (
    SortSpec,
    get_collection_spec,
    normalize_record,
    sort_records,
)

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class RealtimeBridge:
    """Wraps the remote client's change stream with consumer callbacks."""

    def __init__(
        self,
        remote_factory: Optional[Callable[[str], Any]] = None,
        settings: Optional[ContentStoreSettings] = None,
    ):
        self._remote_factory = remote_factory
        self._settings = settings
        self._cancellers: List[Callable[[], None]] = []
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        """False when CONTENT_REALTIME_ENABLED turns push updates off."""
        settings = self._settings or get_settings()
        return settings.realtime_enabled

    def _get_remote(self, collection: str):
        if self._remote_factory is not None:
            return self._remote_factory(collection)
        from content_core.data.supabase_client import RemoteStoreClient
        return RemoteStoreClient(collection, table=get_collection_spec(collection).table)

    def subscribe(
        self,
        collection: str,
        filters: Optional[Mapping[str, Any]],
        on_change: Callable[[Record], None],
        on_delete: Optional[Callable[[Record], None]] = None,
    ) -> Callable[[], None]:
        """
        Deliver remote INSERT/UPDATE rows to ``on_change``.

        DELETE events go to ``on_delete`` when given and are dropped
        otherwise. With realtime disabled nothing is opened.

        Returns:
            A cancel() function; calling it more than once is harmless

        Raises:
            RemoteError: If the remote store cannot open a channel
            ValueError: If more than one filter is given
        """
        if not self.enabled:
            logger.debug(f"Realtime disabled, not subscribing to {collection}")
            return lambda: None

        closed = threading.Event()

        def handle_event(event) -> None:
            if closed.is_set():
                return
            try:
                if event.type in ("INSERT", "UPDATE") and event.record:
                    on_change(normalize_record(event.record))
                elif event.type == "DELETE" and on_delete and event.old_record:
                    on_delete(normalize_record(event.old_record))
            except Exception as e:
                logger.error(f"Error in realtime callback for {collection}: {e}", exc_info=True)

        def handle_error(error: Exception) -> None:
            if not closed.is_set():
                logger.warning(f"Realtime stream for {collection} closed: {error}")
            closed.set()

        subscription = self._get_remote(collection).subscribe(
            filters, handle_event, handle_error
        )

        def cancel() -> None:
            closed.set()
            subscription.cancel()
            with self._lock:
                if cancel in self._cancellers:
                    self._cancellers.remove(cancel)

        with self._lock:
            self._cancellers.append(cancel)
        logger.info(f"Subscribed to realtime changes: {collection}")
        return cancel

    @property
    def active_count(self) -> int:
        """Subscriptions opened through this bridge and not yet cancelled."""
        with self._lock:
            return len(self._cancellers)

    def close(self) -> None:
        """Cancel every subscription opened through this bridge."""
        with self._lock:
            pending = list(self._cancellers)
        for cancel in pending:
            cancel()


def merge_change(
    view: Sequence[Mapping[str, Any]],
    record: Mapping[str, Any],
    sort: Optional[SortSpec] = None,
    removed: bool = False,
) -> List[Record]:
    """
    Fold one pushed record into already-rendered records.

    The record replaces the entry with the same id (or is appended), or
    is dropped when ``removed``; the result is re-sorted.
    """
    record_id = str(record.get("id"))
    merged = [dict(r) for r in view if str(r.get("id")) != record_id]
    if not removed:
        merged.append(normalize_record(record))
    return sort_records(merged, sort)
