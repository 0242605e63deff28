# =============================================================================
# content_core/services/content_service.py
# Content Service - what admin managers and public pages call
# =============================================================================

from __future__ import annotations
from typing import Any, Dict, Mapping, Optional

from content_core.offline.collections import SortSpec
from content_core.offline.repository import ContentRepository, get_repository
from content_core.services.base_service import BaseService, ServiceResult


class ContentService(BaseService):
    """
    CRUD for one content collection, returning ServiceResult objects.

    Reads always succeed (an empty list or None data is a normal outcome).
    A mutation that fails in both stores returns a failed result and shows
    a single error notification.

    Usage:
        courses = ContentService("courses")
        result = courses.save({"title": "Intro", "status": "draft"})
        if result:
            courses.set_status(result.data["id"], "published")
    """

    def __init__(
        self,
        collection: str,
        repository: Optional[ContentRepository] = None,
        notify_user: bool = True,
    ):
        super().__init__(notify_user=notify_user)
        self.collection = collection
        self.repository = repository or get_repository()

    def fetch_all(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None,
    ) -> ServiceResult:
        """All matching records, tagged with the store that answered."""
        fetched = self.repository.list_with_source(self.collection, sort, filters, limit)
        return ServiceResult.ok(fetched.records, source=fetched.source.value)

    def fetch_published(self, limit: Optional[int] = None) -> ServiceResult:
        """Records with status 'published', as shown on public pages."""
        fetched = self.repository.collection(self.collection).list_published(limit)
        return ServiceResult.ok(fetched.records, source=fetched.source.value)

    def fetch_one(self, record_id: Optional[str] = None, **filters) -> ServiceResult:
        """One record by id or by other equality filters (e.g. slug)."""
        if record_id is not None:
            filters["id"] = str(record_id)
        if not filters:
            return ServiceResult.fail("No lookup criteria given", error_code="INVALID_ARGUMENT")
        return ServiceResult.ok(self.repository.find_one(self.collection, filters))

    def save(
        self,
        payload: Mapping[str, Any],
        record_id: Optional[str] = None,
    ) -> ServiceResult:
        """Create a record, or update it when ``record_id`` is given."""
        if record_id is None:
            return self.safe_execute(
                f"Creating {self.collection} record",
                self.repository.create, self.collection, payload,
                user_message=f"Could not save {self._label}",
            )
        return self.safe_execute(
            f"Updating {self.collection}/{record_id}",
            self.repository.update, self.collection, record_id, payload,
            user_message=f"Could not update {self._label}",
        )

    def remove(self, record_id: str) -> ServiceResult:
        """Delete a record; data is False when nothing was removed."""
        return self.safe_execute(
            f"Deleting {self.collection}/{record_id}",
            self.repository.delete, self.collection, record_id,
            user_message=f"Could not delete {self._label}",
        )

    def set_status(self, record_id: str, status: str) -> ServiceResult:
        """Change only the status field (draft/published/...)."""
        return self.save({"status": status}, record_id=record_id)

    @property
    def _label(self) -> str:
        return self.collection.replace("_", " ").rstrip("s")


_services: Dict[str, ContentService] = {}


def get_content_service(collection: str) -> ContentService:
    """Shared ContentService per collection."""
    if collection not in _services:
        _services[collection] = ContentService(collection)
    return _services[collection]
