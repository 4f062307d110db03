"""List query state: search, filters, sorting and paging."""

from dataclasses import dataclass, field, replace
from typing import Literal, Optional

SortDirection = Literal["asc", "desc"]

STATUS_PARAMS = {"active": "true", "inactive": "false"}


@dataclass(frozen=True)
class ListQuery:
    """Parameters of one list page request."""

    search: str = ""
    filters: dict[str, str] = field(default_factory=dict)
    status: str = ""
    sort_key: Optional[str] = None
    sort_direction: SortDirection = "asc"
    page: int = 1
    limit: int = 10

    def to_params(self) -> list[tuple[str, str]]:
        """Query-string parameters in the order the backend expects them."""
        params: list[tuple[str, str]] = []
        if self.search:
            params.append(("search", self.search))
        for name, value in self.filters.items():
            if value:
                params.append((name, value))
        if self.status in STATUS_PARAMS:
            params.append(("active", STATUS_PARAMS[self.status]))
        if self.sort_key:
            params.append(("sortKey", self.sort_key))
            params.append(("sortDirection", self.sort_direction))
        params.append(("page", str(self.page)))
        params.append(("limit", str(self.limit)))
        return params

    def cache_key(self, family: str) -> tuple:
        return (family, *self.to_params())

    def toggle_sort(self, key: str) -> "ListQuery":
        """Same key flips the direction, a new key sorts ascending. Back to page 1."""
        if self.sort_key == key:
            direction: SortDirection = "desc" if self.sort_direction == "asc" else "asc"
            return replace(self, sort_direction=direction, page=1)
        return replace(self, sort_key=key, sort_direction="asc", page=1)

    def with_page(self, page: int) -> "ListQuery":
        return replace(self, page=page)

    def with_limit(self, limit: int) -> "ListQuery":
        return replace(self, limit=limit, page=1)

    def with_filter(self, name: str, value: str) -> "ListQuery":
        filters = dict(self.filters)
        if value:
            filters[name] = value
        else:
            filters.pop(name, None)
        return replace(self, filters=filters, page=1)

    def url_params(self) -> dict[str, str]:
        """Parameters for links back to the dashboard page itself."""
        params = {k: v for k, v in self.filters.items() if v}
        if self.search:
            params["search"] = self.search
        if self.status:
            params["status"] = self.status
        if self.sort_key:
            params["sort"] = self.sort_key
            params["direction"] = self.sort_direction
        params["page"] = str(self.page)
        params["limit"] = str(self.limit)
        return params
