"""Pagination arithmetic for list pages."""

from dataclasses import dataclass
from typing import Any, Optional, Sequence


def total_pages(pages: Optional[int]) -> int:
    """Page count reported by the backend, never less than one."""
    return max(1, pages or 1)


def clamp_page(page: int, pages: int) -> int:
    """Clamp ``page`` into ``[1, pages]``."""
    return max(1, min(page, max(1, pages)))


def resolve_total(meta: Optional[Any], filtered_total: Optional[int], row_count: int) -> int:
    """Total item count: ``meta.total``, then ``filteredTotal``, then the rows on hand."""
    total = getattr(meta, "total", None) if meta is not None else None
    if total is not None:
        return total
    if filtered_total is not None:
        return filtered_total
    return row_count


def normalize_page_size(size: Optional[int], options: Sequence[int], default: int) -> int:
    """Restrict page sizes to the offered options."""
    if size in options:
        return size
    return default


@dataclass(frozen=True)
class PageWindow:
    """What the pagination bar shows for one page of results."""

    page: int
    total_pages: int
    total_items: int
    page_size: int
    item_label: str = "items"

    @property
    def safe_page(self) -> int:
        return clamp_page(self.page, self.total_pages)

    @property
    def start(self) -> int:
        return (self.safe_page - 1) * self.page_size + 1

    @property
    def end(self) -> int:
        return min(self.safe_page * self.page_size, self.total_items)

    @property
    def can_prev(self) -> bool:
        return self.safe_page > 1

    @property
    def can_next(self) -> bool:
        return self.safe_page < self.total_pages

    @property
    def visible(self) -> bool:
        return self.total_items > 0

    @property
    def label(self) -> str:
        return f"Showing {self.start}-{self.end} of {self.total_items} {self.item_label}"


def paginate_locally(rows: Sequence[Any], page: int, page_size: int) -> tuple[list[Any], int, int]:
    """Slice an unpaginated result set.

    Returns the rows for the clamped page, the clamped page and the page count.
    """
    pages = total_pages(-(-len(rows) // page_size) if page_size > 0 else 1)
    safe = clamp_page(page, pages)
    start = (safe - 1) * page_size
    return list(rows[start:start + page_size]), safe, pages
