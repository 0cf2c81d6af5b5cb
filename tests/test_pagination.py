"""Test pagination normalization and search result mapping"""

import pytest

from musix.core.exceptions import InvalidResponseError
from musix.spotify.mappers import Page, map_track_search, normalize_pagination, search_params
from tests.support import payloads


class TestNormalizePagination:
    """Test limit/offset clamping"""

    def test_defaults(self):
        """Test default pagination"""
        assert normalize_pagination() == Page(limit=20, offset=0)

    @pytest.mark.parametrize("limit,expected", [
        (51, 50),
        (100, 50),
        (50, 50),
        (1, 1),
        (0, 1),
        (-10, 1),
        (7, 7),
    ])
    def test_limit_clamped(self, limit, expected):
        """Test limit clamping"""
        assert normalize_pagination(limit).limit == expected

    def test_negative_offset_becomes_zero(self):
        """Test negative offsets become zero"""
        assert normalize_pagination(offset=-5).offset == 0

    def test_offset_kept(self):
        """Test valid offsets are kept"""
        assert normalize_pagination(5, 10) == Page(limit=5, offset=10)

    @pytest.mark.parametrize("limit,offset", [("5", None), (None, 1.5), (True, None)])
    def test_non_integer_rejected(self, limit, offset):
        """Test non-integer pagination values"""
        with pytest.raises(ValueError):
            normalize_pagination(limit, offset)


class TestSearchMapping:
    """Test search parameters and result mapping"""

    def test_search_params(self):
        """Test search query parameters"""
        assert search_params("hotel california", Page(5, 10)) == {
            "q": "hotel california",
            "type": "track",
            "limit": 5,
            "offset": 10,
        }

    def test_echoes_normalized_values_not_provider_values(self):
        """Test results echo the requested page"""
        raw = payloads.search_json([payloads.track_json()], total=1, limit=999, offset=999)

        result = map_track_search(raw, Page(limit=20, offset=0))

        assert result.limit == 20
        assert result.offset == 0

    def test_empty_result(self):
        """Test an empty search result"""
        result = map_track_search(payloads.search_json([], total=0), Page(20, 0))

        assert result.items == ()
        assert result.total == 0
        assert not result.has_next

    def test_missing_tracks_section_fails(self):
        """Test a search response without a tracks page is a provider error"""
        with pytest.raises(InvalidResponseError) as exc_info:
            map_track_search({"albums": {"items": [], "total": 0}}, Page(20, 0))
        assert exc_info.value.details["field"] == "tracks"

    @pytest.mark.parametrize("field", ["items", "total"])
    def test_missing_page_field_fails(self, field):
        """Test a tracks page without items or total is a provider error"""
        raw = payloads.search_json([payloads.track_json()])
        del raw["tracks"][field]

        with pytest.raises(InvalidResponseError) as exc_info:
            map_track_search(raw, Page(20, 0))
        assert exc_info.value.details["field"] == field

    def test_over_returned_items_truncated(self):
        """Test extra items are truncated to the limit"""
        tracks = [payloads.track_json(f"t{i}") for i in range(8)]

        result = map_track_search(payloads.search_json(tracks, total=100), Page(limit=5, offset=0))

        assert [t.id for t in result.items] == ["t0", "t1", "t2", "t3", "t4"]
        assert result.total == 100
        assert result.has_next

    def test_total_never_below_item_count(self):
        """Test total is at least the item count"""
        tracks = [payloads.track_json("t1"), payloads.track_json("t2")]

        result = map_track_search(payloads.search_json(tracks, total=-1), Page(20, 0))

        assert result.total == 2

    def test_invalid_track_in_results_fails(self):
        """Test an invalid track in results fails the search"""
        bad = payloads.track_json()
        bad["artists"] = []

        with pytest.raises(InvalidResponseError):
            map_track_search(payloads.search_json([bad]), Page(20, 0))
