"""
Resource registry and the list/mutation service behind every table page.

Each dashboard page is the same list view, detail drawer and form modal; a
ResourceSpec describes what differs: endpoint, response shape, columns,
filters, sort keys and which mutations the backend allows.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from pydantic import ValidationError

from aquafeed_admin.config import get_settings
from aquafeed_admin.errors import BackendError
from aquafeed_admin.models.alternatives import RuleListResponse
from aquafeed_admin.models.categories import CATEGORY_TYPE_LABELS, Category, CategoryListResponse
from aquafeed_admin.models.common import BackendModel
from aquafeed_admin.models.configuration import ConfigListResponse
from aquafeed_admin.models.farms import FarmListResponse
from aquafeed_admin.models.formulations import Formulation, FormulationListResponse
from aquafeed_admin.models.ingredients import Ingredient, IngredientListResponse
from aquafeed_admin.models.standards import StandardListResponse
from aquafeed_admin.models.templates import TemplateListResponse
from aquafeed_admin.models.transactions import Transaction, TransactionListResponse
from aquafeed_admin.models.users import UserListResponse
from aquafeed_admin.services import aggregates
from aquafeed_admin.services.backend import BackendClient
from aquafeed_admin.services.listing import ListQuery
from aquafeed_admin.services.pagination import (
    PageWindow,
    normalize_page_size,
    paginate_locally,
    resolve_total,
    total_pages,
)
from aquafeed_admin.services.query_cache import QueryCache
from aquafeed_admin.services.selection import SelectionSet

logger = logging.getLogger(__name__)

DASHBOARD_FAMILIES = ("admin-stats", "admin-chart-data", "recent-users", "recent-formulations",
                      "recent-transactions", "standards-count", "categories-count")

STATUS_OPTIONS = (("active", "Active"), ("inactive", "Inactive"))


@dataclass(frozen=True)
class Column:
    """A table column; ``kind`` picks the cell renderer."""

    key: str
    header: str
    sort_key: Optional[str] = None
    kind: str = "text"


@dataclass(frozen=True)
class FilterSpec:
    """A filter control. ``local`` filters are applied here, not by the backend."""

    param: str
    label: str
    options: tuple[tuple[str, str], ...] = ()
    options_source: Optional[str] = None
    local: bool = False


@dataclass(frozen=True)
class ResourceSpec:
    name: str
    label: str
    singular: str
    description: str
    endpoint: str
    list_key: str
    response_model: type[BackendModel]
    family: str
    columns: tuple[Column, ...]
    filters: tuple[FilterSpec, ...] = ()
    default_sort: Optional[str] = None
    status_filter: bool = False
    searchable: bool = True
    local_search: bool = False
    server_paginated: bool = True
    fixed_limit: Optional[int] = None
    form: Optional[str] = None
    form_options: tuple[str, ...] = ()
    can_create: bool = False
    can_update: bool = False
    can_delete: bool = False
    can_bulk_delete: bool = False
    update_method: str = "PUT"
    id_field: str = "id"
    invalidates: tuple[str, ...] = ()
    stats: Optional[Callable[..., aggregates.StatCards]] = None

    @property
    def sort_keys(self) -> tuple[str, ...]:
        return tuple(c.sort_key for c in self.columns if c.sort_key)

    @property
    def item_label(self) -> str:
        return self.label.lower()

    @property
    def server_filters(self) -> tuple[FilterSpec, ...]:
        return tuple(f for f in self.filters if not f.local)

    @property
    def local_filters(self) -> tuple[FilterSpec, ...]:
        return tuple(f for f in self.filters if f.local)

    def item_path(self, item_id: str) -> str:
        return f"{self.endpoint}/{item_id}"


RESOURCES: dict[str, ResourceSpec] = {}


def register(spec: ResourceSpec) -> ResourceSpec:
    RESOURCES[spec.name] = spec
    return spec


def get_resource(name: str) -> Optional[ResourceSpec]:
    return RESOURCES.get(name)


register(ResourceSpec(
    name="ingredients",
    label="Ingredients",
    singular="Ingredient",
    description="Manage feed ingredients, prices and nutrient profiles",
    endpoint="/admin/ingredients",
    list_key="ingredients",
    response_model=IngredientListResponse,
    family="admin-ingredients",
    columns=(
        Column("name", "Name", "name"),
        Column("category", "Category", "category"),
        Column("default_price", "Price", "price", kind="money"),
        Column("nutrients.protein", "Protein", "protein"),
        Column("is_active", "Status", "status", kind="active"),
    ),
    filters=(FilterSpec("category", "Category", options_source="ingredient-categories"),),
    default_sort="name",
    status_filter=True,
    form="ingredient",
    form_options=("ingredient-categories",),
    can_create=True,
    can_update=True,
    can_delete=True,
    can_bulk_delete=True,
    invalidates=("ingredients-minimal", "admin-stats"),
    stats=lambda response, rows, total: aggregates.ingredient_stats(response.summary),
))

register(ResourceSpec(
    name="categories",
    label="Categories",
    singular="Category",
    description="Taxonomies for ingredients, fish types and feed stages",
    endpoint="/admin/categories",
    list_key="categories",
    response_model=CategoryListResponse,
    family="admin-categories",
    columns=(
        Column("name", "Name", "name"),
        Column("display_name", "Display Name", "displayName"),
        Column("type", "Type", "type", kind="badge"),
        Column("sort_order", "Sort Order", "sortOrder"),
        Column("is_active", "Status", "status", kind="active"),
    ),
    filters=(FilterSpec("type", "Type", options=tuple(CATEGORY_TYPE_LABELS.items())),),
    default_sort="name",
    status_filter=True,
    form="category",
    can_create=True,
    can_update=True,
    can_delete=True,
    can_bulk_delete=True,
    invalidates=("categories", "ingredient-categories", "categories-count"),
    stats=lambda response, rows, total: aggregates.category_stats(response.summary),
))

register(ResourceSpec(
    name="standards",
    label="Standards",
    singular="Standard",
    description="Nutrient target ranges used to judge formulation compliance",
    endpoint="/admin/standards",
    list_key="standards",
    response_model=StandardListResponse,
    family="admin-standards",
    columns=(
        Column("name", "Name", "name"),
        Column("feed_category", "Feed Type", "feedType"),
        Column("stage", "Stage", "stage"),
        Column("target_nutrients.protein", "Protein", "protein", kind="range"),
        Column("is_active", "Status", "status", kind="active"),
    ),
    filters=(
        FilterSpec("feedType", "Feed Type", options=(("fish", "Fish"), ("poultry", "Poultry"))),
        FilterSpec("stage", "Stage", options_source="stages"),
    ),
    default_sort="name",
    status_filter=True,
    form="standard",
    form_options=("stages",),
    can_create=True,
    can_update=True,
    can_delete=True,
    can_bulk_delete=True,
    invalidates=("standards-count",),
    stats=lambda response, rows, total: aggregates.standard_stats(response.summary),
))

register(ResourceSpec(
    name="templates",
    label="Templates",
    singular="Template",
    description="Ingredient-ratio recipes used as formulation starting points",
    endpoint="/admin/templates",
    list_key="templates",
    response_model=TemplateListResponse,
    family="templates",
    columns=(
        Column("name", "Name"),
        Column("feed_category", "Feed Category"),
        Column("stage", "Stage"),
        Column("items", "Ingredients", kind="count"),
        Column("is_active", "Status", kind="active"),
    ),
    filters=(
        FilterSpec("feedCategory", "Feed Category", options=(("Catfish", "Catfish"), ("Poultry", "Poultry")), local=True),
    ),
    local_search=True,
    server_paginated=False,
    form="template",
    form_options=("ingredients", "fish-types", "stages", "poultry-types"),
    can_create=True,
    can_update=True,
    can_delete=True,
    stats=lambda response, rows, total: aggregates.template_stats(response.templates),
))

register(ResourceSpec(
    name="alternatives",
    label="Alternatives",
    singular="Rule",
    description="Rules for substituting one ingredient with another",
    endpoint="/admin/alternatives/rules",
    list_key="rules",
    response_model=RuleListResponse,
    family="admin-alternative-rules",
    columns=(
        Column("original_name", "Original", "original"),
        Column("alternative_name", "Alternative", "alternative"),
        Column("feed_type", "Feed Type", "feedType"),
        Column("max_blend_percent", "Max Blend %", "maxBlendPercent"),
        Column("is_active", "Status", "status", kind="active"),
    ),
    filters=(
        FilterSpec("feedType", "Feed Type", options=(("fish", "Fish"), ("poultry", "Poultry"), ("both", "Both"))),
    ),
    default_sort="original",
    status_filter=True,
    form="rule",
    form_options=("ingredients",),
    can_create=True,
    can_update=True,
    can_delete=True,
    can_bulk_delete=True,
    stats=lambda response, rows, total: aggregates.rule_stats(response.summary),
))

register(ResourceSpec(
    name="users",
    label="Users",
    singular="User",
    description="Platform accounts, wallets and access",
    endpoint="/admin/users",
    list_key="data",
    response_model=UserListResponse,
    family="users",
    columns=(
        Column("name", "Name"),
        Column("email", "Email"),
        Column("role", "Role", kind="badge"),
        Column("wallet_balance", "Wallet", kind="money"),
        Column("formula_count", "Formulas"),
        Column("is_active", "Status", kind="active"),
    ),
    filters=(
        FilterSpec("role", "Role", options=(("farmer", "Farmer"), ("admin", "Admin"), ("consultant", "Consultant"))),
    ),
    fixed_limit=10,
    form="user",
    can_update=True,
    update_method="PATCH",
    invalidates=("recent-users", "admin-stats"),
))

register(ResourceSpec(
    name="farms",
    label="Farms",
    singular="Farm",
    description="Farm profiles and their ponds",
    endpoint="/admin/farms",
    list_key="data",
    response_model=FarmListResponse,
    family="admin-farms",
    columns=(
        Column("name", "Farm"),
        Column("user_id.name", "Owner"),
        Column("location_text", "Location"),
        Column("ponds", "Ponds", kind="count"),
        Column("total_fish", "Fish"),
    ),
    local_search=True,
    fixed_limit=10,
    stats=lambda response, rows, total: aggregates.farm_stats(response.data, total),
))

register(ResourceSpec(
    name="formulations",
    label="Formulations",
    singular="Formulation",
    description="Feed formulations computed for farmers",
    endpoint="/admin/formulations",
    list_key="data",
    response_model=FormulationListResponse,
    family="admin-formulations",
    columns=(
        Column("batch_name", "Batch"),
        Column("user_id.name", "User"),
        Column("target_weight_kg", "Weight (kg)"),
        Column("cost_per_kg", "Cost/kg", kind="money"),
        Column("compliance_color", "Compliance", kind="badge"),
        Column("status", "Status", kind="badge"),
    ),
    filters=(
        FilterSpec("status", "Status", options=(("unlocked", "Unlocked"), ("demo", "Demo"), ("locked", "Locked")), local=True),
        FilterSpec("compliance", "Compliance", options=(("Green", "Green"), ("Blue", "Blue"), ("Red", "Red")), local=True),
    ),
    fixed_limit=10,
    can_delete=True,
    invalidates=("recent-formulations", "admin-stats", "user-formulations"),
    stats=lambda response, rows, total: aggregates.formulation_stats(response.data, total),
))

register(ResourceSpec(
    name="transactions",
    label="Transactions",
    singular="Transaction",
    description="All platform financial transactions",
    endpoint="/admin/transactions",
    list_key="data",
    response_model=TransactionListResponse,
    family="admin-transactions",
    columns=(
        Column("user_id.name", "User"),
        Column("type", "Type", kind="badge"),
        Column("amount", "Amount", kind="money"),
        Column("status", "Status", kind="badge"),
        Column("created_at", "Date", kind="date"),
    ),
    filters=(
        FilterSpec("type", "Type", options=(("credit", "Credit"), ("debit", "Debit"))),
        FilterSpec("status", "Status", options=(("pending", "Pending"), ("success", "Success"), ("failed", "Failed"))),
    ),
    searchable=False,
    fixed_limit=10,
    stats=lambda response, rows, total: aggregates.transaction_stats(response.summary),
))

register(ResourceSpec(
    name="configuration",
    label="Configuration",
    singular="Setting",
    description="Tunable system parameters",
    endpoint="/admin/config",
    list_key="configs",
    response_model=ConfigListResponse,
    family="admin-config",
    columns=(
        Column("key", "Key"),
        Column("value", "Value"),
        Column("type", "Type", kind="badge"),
        Column("description", "Description"),
    ),
    form="config",
    can_update=True,
    id_field="key",
))


# Option lists used by filters and forms: (endpoint, params, list key, cache family)
OPTION_SOURCES: dict[str, tuple[str, dict, str, tuple]] = {
    "ingredient-categories": ("/ingredients/categories", {"type": "ingredient"}, "categories", ("ingredient-categories",)),
    "stages": ("/admin/categories", {"type": "stage"}, "categories", ("categories", "stage")),
    "fish-types": ("/admin/categories", {"type": "fish_type"}, "categories", ("categories", "fish_type")),
    "poultry-types": ("/admin/categories", {"type": "other"}, "categories", ("categories", "other")),
    "ingredients": ("/admin/ingredients", {}, "ingredients", ("ingredients-minimal",)),
}

# Feed documents store these categories by display name.
LABEL_VALUED_SOURCES = frozenset({"stages", "fish-types", "poultry-types"})


@dataclass
class ListPage:
    """Everything a list page renders."""

    spec: ResourceSpec
    query: ListQuery
    rows: list[Any]
    window: PageWindow
    stats: aggregates.StatCards = field(default_factory=list)
    response: Optional[BackendModel] = None
    options: dict[str, list[tuple[str, str]]] = field(default_factory=dict)
    selection: SelectionSet = field(default_factory=SelectionSet)
    error: Optional[str] = None

    @property
    def visible_ids(self) -> list[str]:
        return [row_id(row, self.spec.id_field) for row in self.rows]

    @property
    def all_selected(self) -> bool:
        return self.selection.all_visible_selected(self.visible_ids)

    def find(self, item_id: Optional[str]) -> Optional[Any]:
        if not item_id:
            return None
        return next((row for row in self.rows if row_id(row, self.spec.id_field) == item_id), None)


@dataclass
class BulkDeleteResult:
    deleted: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def message(self) -> str:
        """Summary shown after a partially failed bulk delete."""
        total = len(self.deleted) + len(self.failed)
        first = next(iter(self.failed.values()), "")
        return f"Deleted {len(self.deleted)} of {total}. {first}".strip()


def row_id(row: Any, id_field: str = "id") -> str:
    return str(getattr(row, id_field, None) or "")


def _option_pair(item: dict, by_label: bool = False) -> tuple[str, str]:
    if "displayName" in item or "type" in item:
        category = Category.model_validate(item)
        return (category.label if by_label else category.name), category.label
    return item.get("_id", ""), item.get("name", "")


class ResourceService:
    """Reads through the query cache; writes to the backend and invalidates."""

    def __init__(self, backend: BackendClient, cache: QueryCache, session_id: Optional[str] = None):
        self.backend = backend
        self.cache = cache
        self.session_id = session_id
        self.settings = get_settings()

    async def _get(self, key: tuple, path: str, params: Any = None):
        async def fetch():
            return await self.backend.get(path, params=params, session_id=self.session_id)

        return await self.cache.fetch(key, fetch)

    async def options(self, source: str) -> list[tuple[str, str]]:
        """(value, label) pairs for a select box; empty when the backend fails."""
        path, params, list_key, key = OPTION_SOURCES[source]
        try:
            result = await self._get(key, path, params or None)
        except BackendError as e:
            logger.warning("Could not load %s options: %s", source, e)
            return []
        items = result.data.get(list_key, []) if isinstance(result.data, dict) else []
        by_label = source in LABEL_VALUED_SOURCES
        return [_option_pair(item, by_label) for item in items if isinstance(item, dict)]

    async def load_options(self, spec: ResourceSpec, include_form: bool = False) -> dict[str, list[tuple[str, str]]]:
        sources = [f.options_source for f in spec.filters if f.options_source]
        if include_form:
            sources.extend(spec.form_options)
        sources = list(dict.fromkeys(sources))
        loaded = await asyncio.gather(*(self.options(s) for s in sources))
        return dict(zip(sources, loaded))

    def build_query(
        self,
        spec: ResourceSpec,
        *,
        search: str = "",
        filters: Optional[dict[str, str]] = None,
        status: str = "",
        sort: Optional[str] = None,
        direction: str = "asc",
        page: int = 1,
        limit: Optional[int] = None,
    ) -> ListQuery:
        """Sanitized list query for ``spec`` from raw request parameters."""
        size = spec.fixed_limit or normalize_page_size(
            limit, self.settings.page_size_options, self.settings.default_page_size
        )
        allowed = {f.param for f in spec.filters}
        filters = {k: v for k, v in (filters or {}).items() if k in allowed and v}
        sort_key = sort if sort in spec.sort_keys else spec.default_sort
        return ListQuery(
            search=search.strip() if spec.searchable else "",
            filters=filters,
            status=status if spec.status_filter and status in ("active", "inactive") else "",
            sort_key=sort_key,
            sort_direction="desc" if direction == "desc" else "asc",
            page=max(1, page),
            limit=size,
        )

    def _server_query(self, spec: ResourceSpec, query: ListQuery) -> ListQuery:
        """The part of the query the backend understands."""
        local = {f.param for f in spec.local_filters}
        return ListQuery(
            search="" if spec.local_search else query.search,
            filters={k: v for k, v in query.filters.items() if k not in local},
            status=query.status,
            sort_key=query.sort_key,
            sort_direction=query.sort_direction,
            page=query.page,
            limit=query.limit,
        )

    async def list_page(
        self,
        spec: ResourceSpec,
        query: ListQuery,
        selection: Optional[SelectionSet] = None,
        include_form_options: bool = False,
    ) -> ListPage:
        options_task = asyncio.ensure_future(self.load_options(spec, include_form=include_form_options))
        error = None
        data: Any = {}

        if spec.server_paginated:
            server = self._server_query(spec, query)
            key, params = server.cache_key(spec.family), server.to_params()
        else:
            key, params = (spec.family,), None

        try:
            result = await self._get(key, spec.endpoint, params)
            data, error = result.data, result.error
        except BackendError as e:
            error = e.message

        try:
            response = spec.response_model.model_validate(data if isinstance(data, dict) else {})
        except ValidationError as e:
            logger.error("Unexpected %s list from the backend: %s", spec.name, e)
            error = f"Could not read the {spec.item_label} returned by the server"
            response = spec.response_model()
        rows = list(getattr(response, spec.list_key, []) or [])

        if spec.local_search and query.search:
            if spec.name == "farms":
                rows = aggregates.filter_farms(rows, query.search)
            else:
                rows = aggregates.filter_templates(rows, search=query.search)
        if spec.name == "templates":
            rows = aggregates.filter_templates(rows, feed_category=query.filters.get("feedCategory", ""))
        elif spec.name == "formulations":
            rows = aggregates.filter_formulations(
                rows, query.filters.get("status", ""), query.filters.get("compliance", "")
            )

        meta = getattr(response, "meta", None)
        if spec.server_paginated:
            total = resolve_total(meta, getattr(response, "filtered_total", None), len(rows))
            pages = total_pages(meta.pages if meta else None)
            page = query.page
        else:
            total = len(rows)
            rows, page, pages = paginate_locally(rows, query.page, query.limit)

        window = PageWindow(
            page=page, total_pages=pages, total_items=total, page_size=query.limit, item_label=spec.item_label
        )
        stats = spec.stats(response, rows, total) if spec.stats else []

        return ListPage(
            spec=spec,
            query=query,
            rows=rows,
            window=window,
            stats=stats,
            response=response,
            options=await options_task,
            selection=selection or SelectionSet(),
            error=error,
        )

    def invalidate(self, spec: ResourceSpec):
        for family in (spec.family, *spec.invalidates, *DASHBOARD_FAMILIES):
            self.cache.invalidate(family)

    async def create(self, spec: ResourceSpec, payload: dict) -> Any:
        if not spec.can_create:
            raise BackendError(405, f"{spec.label} cannot be created here")
        data = await self.backend.post(spec.endpoint, json=payload, session_id=self.session_id)
        self.invalidate(spec)
        logger.info("Created %s", spec.singular.lower())
        return data

    async def update(self, spec: ResourceSpec, item_id: str, payload: dict) -> Any:
        if not spec.can_update:
            raise BackendError(405, f"{spec.label} cannot be edited here")
        if spec.update_method == "PATCH":
            data = await self.backend.patch(spec.item_path(item_id), json=payload, session_id=self.session_id)
        else:
            data = await self.backend.put(spec.item_path(item_id), json=payload, session_id=self.session_id)
        self.invalidate(spec)
        logger.info("Updated %s %s", spec.singular.lower(), item_id)
        return data

    async def delete(self, spec: ResourceSpec, item_id: str) -> Any:
        if not spec.can_delete:
            raise BackendError(405, f"{spec.label} cannot be deleted here")
        data = await self.backend.delete(spec.item_path(item_id), session_id=self.session_id)
        self.invalidate(spec)
        logger.info("Deleted %s %s", spec.singular.lower(), item_id)
        return data

    async def bulk_delete(self, spec: ResourceSpec, ids: list[str]) -> BulkDeleteResult:
        """Delete ``ids`` concurrently and report which ones went through.

        The cache is invalidated when at least one delete succeeded.
        """
        if not spec.can_bulk_delete:
            raise BackendError(405, f"{spec.label} cannot be bulk deleted")
        results = await asyncio.gather(
            *(self.backend.delete(spec.item_path(i), session_id=self.session_id) for i in ids),
            return_exceptions=True,
        )
        outcome = BulkDeleteResult()
        for item_id, result in zip(ids, results):
            if isinstance(result, BackendError):
                outcome.failed[item_id] = result.message
            elif isinstance(result, BaseException):
                raise result
            else:
                outcome.deleted.append(item_id)
        if outcome.deleted:
            self.invalidate(spec)
        logger.info("Bulk deleted %d/%d %s", len(outcome.deleted), len(ids), spec.item_label)
        return outcome

    async def set_user_active(self, user_id: str, is_active: bool) -> Any:
        data = await self.backend.patch(
            f"/admin/users/{user_id}/block", json={"isActive": is_active}, session_id=self.session_id
        )
        self.invalidate(RESOURCES["users"])
        logger.info("%s user %s", "Unblocked" if is_active else "Blocked", user_id)
        return data

    async def user_activity(self, user_id: str) -> tuple[list[Formulation], list[Transaction], Optional[str]]:
        """A user's last 10 formulations and transactions for the user drawer."""
        params = {"userId": user_id, "limit": 10}
        results = await asyncio.gather(
            self._get(("user-formulations", user_id), "/admin/formulations", params),
            self._get(("user-transactions", user_id), "/admin/transactions", params),
            return_exceptions=True,
        )
        lists: list[list] = []
        error = None
        for result, model in zip(results, (Formulation, Transaction)):
            if isinstance(result, BackendError):
                error = result.message
                lists.append([])
                continue
            if isinstance(result, BaseException):
                raise result
            error = error or result.error
            items = result.data.get("data", []) if isinstance(result.data, dict) else []
            try:
                lists.append([model.model_validate(item) for item in items])
            except ValidationError as e:
                logger.error("Unexpected %s activity for user %s: %s", model.__name__, user_id, e)
                error = error or "Could not read this user's activity"
                lists.append([])
        return lists[0], lists[1], error
