# =============================================================================
# content_core/offline/collections.py
# Collection registry, record normalization and the shared sort comparator
# =============================================================================
"""
Every list operation is ordered here, whichever store answered, so a
consumer cannot tell local data from remote data by its ordering.

Ranking of values inside one sort key:

    missing / None  <  booleans & numbers  <  dates  <  other strings

Missing values rank lowest, the same way the site treated a missing
``created_at`` as the epoch. Ties on every key fall back to ``id``.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

COMMON_FIELDS = ("id", "created_at", "updated_at")

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}")


@dataclass(frozen=True)
class SortKey:
    """
    One field of a sort specification.

    ``fallback`` names a second field whose value is used when ``field``
    is missing, e.g. ``published_at`` falling back to ``created_at``.
    """
    field: str
    descending: bool = False
    fallback: Optional[str] = None

    @classmethod
    def asc(cls, field: str, fallback: Optional[str] = None) -> SortKey:
        return cls(field, descending=False, fallback=fallback)

    @classmethod
    def desc(cls, field: str, fallback: Optional[str] = None) -> SortKey:
        return cls(field, descending=True, fallback=fallback)

    def value(self, record: Mapping[str, Any]) -> Any:
        value = record.get(self.field)
        if value is None and self.fallback:
            value = record.get(self.fallback)
        return value


SortSpec = Sequence[SortKey]

NEWEST_FIRST: Tuple[SortKey, ...] = (SortKey.desc("created_at"),)

# Public blog listing: publication date, or creation date for undated posts
RECENTLY_PUBLISHED: Tuple[SortKey, ...] = (SortKey.desc("published_at", fallback="created_at"),)


@dataclass(frozen=True)
class CollectionSpec:
    """Registry entry for one content type."""
    name: str
    default_sort: Tuple[SortKey, ...] = NEWEST_FIRST
    public_sort: Optional[Tuple[SortKey, ...]] = None
    remote_table: Optional[str] = None
    remote_updated_at: bool = True   # remote table has an updated_at column

    @property
    def table(self) -> str:
        return self.remote_table or self.name

    @property
    def published_sort(self) -> Tuple[SortKey, ...]:
        """Order used by public pages listing published records."""
        return self.public_sort or self.default_sort


def needs_full_scan(sort: Optional[SortSpec]) -> bool:
    """True when the remote store cannot reproduce ``sort`` by itself."""
    return any(key.fallback for key in sort or ())


COLLECTIONS: Dict[str, CollectionSpec] = {
    spec.name: spec
    for spec in (
        CollectionSpec("blog_posts", public_sort=RECENTLY_PUBLISHED),
        CollectionSpec("courses"),
        CollectionSpec("tools_resources"),
        CollectionSpec(
            "portfolio_projects",
            default_sort=(SortKey.desc("featured"), SortKey.desc("created_at")),
        ),
        CollectionSpec("digital_products"),
        CollectionSpec(
            "events",
            default_sort=(SortKey.asc("event_date"),),
            remote_updated_at=False,
        ),
        CollectionSpec("orders"),
        CollectionSpec("contact_messages", remote_updated_at=False),
        CollectionSpec("onboarding_responses"),
        CollectionSpec(
            "social_media_posts",
            default_sort=(SortKey.asc("display_order"),),
        ),
        CollectionSpec("page_content", default_sort=(SortKey.asc("page_id"),)),
        CollectionSpec("newsletter_subscriptions"),
    )
}


def get_collection_spec(name: str) -> CollectionSpec:
    """Registry lookup; unknown collections get newest-first defaults."""
    return COLLECTIONS.get(name) or CollectionSpec(name)


# =============================================================================
# TIMESTAMPS & NORMALIZATION
# =============================================================================

def now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 date or datetime; naive values are read as UTC."""
    if not _ISO_DATE.match(value):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_record(record: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Give a record from either store the same shape.

    The id becomes a string, and a missing ``updated_at`` is taken from
    ``created_at`` (several remote tables only carry ``created_at``).
    """
    data = dict(record)
    if data.get("id") is not None:
        data["id"] = str(data["id"])
    data.setdefault("id", None)
    data.setdefault("created_at", None)
    if data.get("updated_at") is None:
        data["updated_at"] = data["created_at"]
    return data


def matches(record: Mapping[str, Any], filters: Optional[Mapping[str, Any]]) -> bool:
    """Equality filter, the local counterpart of PostgREST ``eq``."""
    if not filters:
        return True
    for key, expected in filters.items():
        actual = record.get(key)
        if key == "id" and actual is not None:
            actual, expected = str(actual), str(expected)
        if actual != expected:
            return False
    return True


def apply_filters(
    records: Iterable[Mapping[str, Any]],
    filters: Optional[Mapping[str, Any]],
) -> List[Dict[str, Any]]:
    return [dict(r) for r in records if matches(r, filters)]


# =============================================================================
# SORTING
# =============================================================================

def _rank(value: Any) -> Tuple[int, Any]:
    if value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (1, int(value))
    if isinstance(value, (int, float)):
        return (1, float(value))
    if isinstance(value, datetime):
        moment = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return (2, moment.timestamp())
    if isinstance(value, str):
        parsed = parse_timestamp(value)
        if parsed is not None:
            return (2, parsed.timestamp())
        return (3, value)
    return (3, str(value))


def sort_records(
    records: Iterable[Mapping[str, Any]],
    sort: Optional[SortSpec] = None,
) -> List[Dict[str, Any]]:
    """
    Order records by ``sort`` with a total order.

    Python's sort is stable, so sorting by the least significant key first
    (the id tie-breaker) and the most significant key last composes the
    keys, each with its own direction.
    """
    ordered = [dict(r) for r in records]
    ordered.sort(key=lambda r: str(r.get("id") or ""))
    for key in reversed(list(sort or ())):
        ordered.sort(key=lambda r, k=key: _rank(k.value(r)), reverse=key.descending)
    return ordered
