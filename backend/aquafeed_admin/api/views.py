"""
Presentation helpers for the HTML pages.

List page state (search, filters, sort, page, selection, open drawer or
modal) lives entirely in the query string; ``ListView`` builds the links
that change one part of it.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional
from urllib.parse import urlencode

from fastapi.templating import Jinja2Templates

from aquafeed_admin.config import get_settings
from aquafeed_admin.services.aggregates import in_thousands
from aquafeed_admin.services.listing import ListQuery
from aquafeed_admin.services.resources import RESOURCES, ListPage, row_id
from aquafeed_admin.services.selection import SelectionSet

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

NAV_ITEMS = [
    ("Dashboard", "/"),
    ("Users", "/users"),
    ("Categories", "/categories"),
    ("Ingredients", "/ingredients"),
    ("Standards", "/standards"),
    ("Templates", "/templates"),
    ("Alternatives", "/alternatives"),
    ("Formulations", "/formulations"),
    ("Farms", "/farms"),
    ("Transactions", "/transactions"),
    ("Configuration", "/configuration"),
    ("Settings", "/settings"),
]


def nav_active(href: str, path: str) -> bool:
    return path == href


def resolve(obj: Any, dotted: str, default: Any = None) -> Any:
    """Read ``a.b.c`` from nested models or dicts."""
    value = obj
    for part in dotted.split("."):
        if value is None:
            return default
        if isinstance(value, dict):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return default if value is None else value


def flatten(payload: Any, prefix: str = "") -> dict[str, Any]:
    """Nested payload as dotted form-field names (lists are kept whole)."""
    flat: dict[str, Any] = {}
    if isinstance(payload, dict):
        for key, value in payload.items():
            name = f"{prefix}.{key}" if prefix else key
            if isinstance(value, dict):
                if "_id" in value:
                    flat[name] = value["_id"]
                flat.update(flatten(value, name))
            else:
                flat[name] = value
    return flat


def naira(amount: Any) -> str:
    try:
        return f"₦{float(amount or 0):,.2f}"
    except (TypeError, ValueError):
        return "₦0.00"


def short_date(value: Any) -> str:
    if not value:
        return "-"
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).strftime("%b %d, %Y")
    except ValueError:
        return str(value)


def option_label(options: Iterable[tuple[str, str]], value: Any) -> str:
    for key, label in options or ():
        if key == value:
            return label
    return str(value or "")


class ListView:
    """Links for one rendered list page."""

    def __init__(self, page: ListPage, drawer_id: Optional[str] = None, modal: Optional[str] = None):
        self.page = page
        self.spec = page.spec
        self.query: ListQuery = page.query
        self.selection: SelectionSet = page.selection
        self.drawer_id = drawer_id
        self.modal = modal
        self.base = f"/{self.spec.name}"

    def _url(self, query: ListQuery, selection: Optional[Iterable[str]] = None, **extra: Any) -> str:
        params = list(query.url_params().items())
        for selected in self.selection if selection is None else selection:
            params.append(("selected", selected))
        params.extend((k, v) for k, v in extra.items() if v not in (None, ""))
        return f"{self.base}?{urlencode(params)}"

    def action(self, path: str) -> str:
        """Form action under this resource that returns to the same list state."""
        url = self._url(self.query, view=self.drawer_id)
        return f"{self.base}/{path}?{url.split('?', 1)[1]}"

    @property
    def current(self) -> str:
        """The page itself with drawer and modal closed."""
        return self._url(self.query)

    def sort_url(self, key: str) -> str:
        return self._url(self.query.toggle_sort(key))

    def sort_indicator(self, key: str) -> str:
        if self.query.sort_key != key:
            return ""
        return "▲" if self.query.sort_direction == "asc" else "▼"

    def filter_url(self, name: str, value: str) -> str:
        """Apply a filter value, or clear it when it is already applied."""
        current = self.query.filters.get(name)
        return self._url(self.query.with_filter(name, "" if current == value else value))

    def page_url(self, page: int) -> str:
        return self._url(self.query.with_page(page))

    def limit_url(self, limit: int) -> str:
        return self._url(self.query.with_limit(limit))

    def toggle_url(self, item_id: str) -> str:
        selection = SelectionSet(self.selection)
        selection.toggle(item_id)
        return self._url(self.query, selection, view=self.drawer_id)

    def toggle_all_url(self) -> str:
        selection = SelectionSet(self.selection)
        selection.toggle_all(self.page.visible_ids)
        return self._url(self.query, selection, view=self.drawer_id)

    def clear_selection_url(self) -> str:
        return self._url(self.query, ())

    def view_url(self, row: Any) -> str:
        return self._url(self.query, view=row_id(row, self.spec.id_field))

    def edit_url(self, row: Any = None, **extra: Any) -> str:
        target = "new" if row is None else row_id(row, self.spec.id_field)
        return self._url(self.query, edit=target, **extra)

    def confirm_url(self, row: Any = None) -> str:
        target = "bulk" if row is None else row_id(row, self.spec.id_field)
        return self._url(self.query, confirm=target, view=self.drawer_id)

    def is_selected(self, row: Any) -> bool:
        return row_id(row, self.spec.id_field) in self.selection


def create_templates() -> Jinja2Templates:
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    env = templates.env
    env.filters["naira"] = naira
    env.filters["thousands"] = in_thousands
    env.filters["short_date"] = short_date
    env.globals["resolve"] = resolve
    env.globals["option_label"] = option_label
    env.globals["row_id"] = row_id
    env.globals["nav_items"] = NAV_ITEMS
    env.globals["nav_active"] = nav_active
    env.globals["resources"] = RESOURCES
    env.globals["settings"] = get_settings()
    return templates


templates = create_templates()
