"""
Unit tests for pagination arithmetic.
"""

import pytest

from aquafeed_admin.services.pagination import (
    PageWindow,
    clamp_page,
    normalize_page_size,
    paginate_locally,
    resolve_total,
    total_pages,
)
from aquafeed_admin.models.common import PageMeta


class TestPageCounts:
    """Tests for total_pages and clamp_page."""

    @pytest.mark.unit
    def test_total_pages_never_below_one(self):
        assert total_pages(None) == 1
        assert total_pages(0) == 1
        assert total_pages(4) == 4

    @pytest.mark.unit
    @pytest.mark.parametrize("page,pages,expected", [(0, 5, 1), (3, 5, 3), (9, 5, 5), (2, 0, 1)])
    def test_clamp_page(self, page, pages, expected):
        assert clamp_page(page, pages) == expected


class TestResolveTotal:
    """Tests for resolve_total precedence."""

    @pytest.mark.unit
    def test_meta_total_wins(self):
        assert resolve_total(PageMeta(total=57), 12, 10) == 57

    @pytest.mark.unit
    def test_filtered_total_without_meta(self):
        assert resolve_total(None, 12, 10) == 12

    @pytest.mark.unit
    def test_row_count_as_last_resort(self):
        assert resolve_total(None, None, 7) == 7


class TestPageSize:
    """Tests for normalize_page_size."""

    @pytest.mark.unit
    def test_offered_size_is_kept(self):
        assert normalize_page_size(50, [10, 20, 50], 10) == 50

    @pytest.mark.unit
    def test_unknown_size_falls_back(self):
        assert normalize_page_size(33, [10, 20, 50], 10) == 10
        assert normalize_page_size(None, [10, 20, 50], 20) == 20


class TestPageWindow:
    """Tests for the pagination bar."""

    @pytest.mark.unit
    def test_first_page_label(self):
        window = PageWindow(page=1, total_pages=3, total_items=25, page_size=10, item_label="ingredients")
        assert window.label == "Showing 1-10 of 25 ingredients"
        assert not window.can_prev
        assert window.can_next

    @pytest.mark.unit
    def test_last_page_is_short(self):
        window = PageWindow(page=3, total_pages=3, total_items=25, page_size=10)
        assert window.start == 21
        assert window.end == 25
        assert window.can_prev
        assert not window.can_next

    @pytest.mark.unit
    def test_out_of_range_page_is_clamped(self):
        window = PageWindow(page=99, total_pages=2, total_items=15, page_size=10)
        assert window.safe_page == 2
        assert window.label.startswith("Showing 11-15")

    @pytest.mark.unit
    def test_hidden_when_empty(self):
        window = PageWindow(page=1, total_pages=1, total_items=0, page_size=10)
        assert not window.visible


class TestPaginateLocally:
    """Tests for slicing unpaginated results."""

    @pytest.mark.unit
    def test_slices_requested_page(self):
        rows, page, pages = paginate_locally(list(range(23)), 2, 10)
        assert rows == list(range(10, 20))
        assert page == 2
        assert pages == 3

    @pytest.mark.unit
    def test_page_past_end_shows_last_page(self):
        rows, page, pages = paginate_locally(list(range(23)), 7, 10)
        assert rows == [20, 21, 22]
        assert page == 3

    @pytest.mark.unit
    def test_empty_rows(self):
        rows, page, pages = paginate_locally([], 1, 10)
        assert rows == []
        assert (page, pages) == (1, 1)
