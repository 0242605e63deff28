# =============================================================================
# tests/unit/test_collections.py
# Unit Tests for the Collection Registry and Shared Sort
# =============================================================================

from content_core.offline.collections import (
    SortKey,
    apply_filters,
    get_collection_spec,
    matches,
    normalize_record,
    parse_timestamp,
    sort_records,
)


class TestSortRecords:
    """Shared comparator"""

    def test_newest_first(self, sample_posts):
        """created_at descending"""
        ordered = sort_records(sample_posts, [SortKey.desc("created_at")])
        assert [r["id"] for r in ordered] == ["p3", "p2", "p1"]

    def test_featured_then_date(self):
        """Featured projects first, newest first within each group"""
        projects = [
            {"id": "a", "featured": False, "created_at": "2024-05-01"},
            {"id": "b", "featured": True, "created_at": "2024-01-01"},
            {"id": "c", "featured": False, "created_at": "2024-06-01"},
            {"id": "d", "featured": True, "created_at": "2024-03-01"},
        ]
        spec = get_collection_spec("portfolio_projects").default_sort

        assert [r["id"] for r in sort_records(projects, spec)] == ["d", "b", "c", "a"]

    def test_mixed_timestamp_formats_compare_as_instants(self):
        """'Z', offsets, naive and date-only strings order chronologically"""
        records = [
            {"id": "1", "created_at": "2024-01-01T12:00:00Z"},
            {"id": "2", "created_at": "2024-01-01T13:30:00+02:00"},  # 11:30 UTC
            {"id": "3", "created_at": "2024-01-01T11:45:00.123456"},
            {"id": "4", "created_at": "2024-01-01"},
        ]
        ordered = sort_records(records, [SortKey.asc("created_at")])

        assert [r["id"] for r in ordered] == ["4", "2", "3", "1"]

    def test_missing_values_rank_lowest(self):
        """A missing date sorts like the epoch"""
        records = [
            {"id": "a", "created_at": "2024-01-01"},
            {"id": "b"},
            {"id": "c", "created_at": None},
        ]

        ascending = sort_records(records, [SortKey.asc("created_at")])
        descending = sort_records(records, [SortKey.desc("created_at")])

        assert [r["id"] for r in ascending] == ["b", "c", "a"]
        assert [r["id"] for r in descending] == ["a", "b", "c"]

    def test_fallback_field(self):
        """A missing published_at is replaced by created_at, not ranked lowest"""
        posts = [
            {"id": "a", "published_at": "2024-01-10", "created_at": "2024-01-01"},
            {"id": "b", "published_at": None, "created_at": "2024-02-15"},
            {"id": "c", "published_at": "2024-03-10", "created_at": "2024-03-01"},
        ]

        with_fallback = sort_records(posts, [SortKey.desc("published_at", fallback="created_at")])
        without = sort_records(posts, [SortKey.desc("published_at"), SortKey.desc("created_at")])

        assert [r["id"] for r in with_fallback] == ["c", "b", "a"]
        assert [r["id"] for r in without] == ["c", "a", "b"]

    def test_ties_broken_by_id(self):
        """Equal sort values fall back to id, whatever the input order"""
        records = [
            {"id": "z", "display_order": 1},
            {"id": "a", "display_order": 1},
            {"id": "m", "display_order": 0},
        ]
        expected = ["m", "a", "z"]

        assert [r["id"] for r in sort_records(records, [SortKey.asc("display_order")])] == expected
        assert [r["id"] for r in sort_records(list(reversed(records)), [SortKey.asc("display_order")])] == expected

    def test_numbers_sort_numerically(self):
        """Ratings and prices are not compared as strings"""
        records = [{"id": "a", "rating": 10}, {"id": "b", "rating": 9.5}, {"id": "c", "rating": 2}]
        ordered = sort_records(records, [SortKey.desc("rating")])

        assert [r["id"] for r in ordered] == ["a", "b", "c"]

    def test_input_is_not_mutated(self, sample_posts):
        """sort_records returns copies"""
        ordered = sort_records(sample_posts, [SortKey.desc("created_at")])
        ordered[0]["title"] = "changed"

        assert sample_posts[2]["title"] == "Third"


class TestNormalization:
    """Record shape and filters"""

    def test_integer_id_becomes_string(self):
        """Remote integer ids are exposed as strings"""
        assert normalize_record({"id": 42, "created_at": "2024-01-01"})["id"] == "42"

    def test_missing_updated_at_backfilled_from_created_at(self):
        """Tables without updated_at still expose it"""
        record = normalize_record({"id": "e1", "created_at": "2024-01-01T00:00:00+00:00"})
        assert record["updated_at"] == "2024-01-01T00:00:00+00:00"

    def test_common_fields_always_present(self):
        """All four common keys exist, even if unknown"""
        record = normalize_record({"title": "x"})
        assert {"id", "created_at", "updated_at"} <= set(record)

    def test_matches_id_regardless_of_type(self):
        """Filtering by id compares string forms"""
        assert matches({"id": 5}, {"id": "5"})
        assert not matches({"id": 5, "status": "draft"}, {"id": "5", "status": "published"})

    def test_apply_filters(self, sample_posts):
        """Equality filters select matching records"""
        sample_posts[0]["status"] = "published"
        assert [r["id"] for r in apply_filters(sample_posts, {"status": "published"})] == ["p1"]
        assert len(apply_filters(sample_posts, None)) == 3

    def test_parse_timestamp_rejects_non_dates(self):
        """Plain strings are not treated as dates"""
        assert parse_timestamp("membership") is None
        assert parse_timestamp("2024-13-45") is None
        assert parse_timestamp("2024-06-01").tzinfo is not None


class TestRegistry:
    """Collection registry"""

    def test_events_sorted_by_event_date(self):
        """Events list soonest first and have no remote updated_at"""
        spec = get_collection_spec("events")
        assert spec.default_sort == (SortKey.asc("event_date"),)
        assert spec.remote_updated_at is False

    def test_blog_public_sort(self):
        """Public blog lists use publication date with a created_at fallback"""
        spec = get_collection_spec("blog_posts")

        assert spec.published_sort == (SortKey.desc("published_at", fallback="created_at"),)
        assert get_collection_spec("courses").published_sort == get_collection_spec("courses").default_sort

    def test_unknown_collection_defaults(self):
        """Unregistered collections default to newest first"""
        spec = get_collection_spec("testimonials")
        assert spec.table == "testimonials"
        assert spec.default_sort == (SortKey.desc("created_at"),)
