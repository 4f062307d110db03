"""Overview page: platform stats, charts and recent activity."""

import asyncio
import logging
from typing import Any, Callable, Optional

from pydantic import ValidationError

from aquafeed_admin.errors import BackendError
from aquafeed_admin.models.common import BackendModel
from aquafeed_admin.models.dashboard import ChartData, DashboardOverview, SystemStats
from aquafeed_admin.models.formulations import Formulation
from aquafeed_admin.models.transactions import Transaction
from aquafeed_admin.models.users import User
from aquafeed_admin.services.backend import BackendClient
from aquafeed_admin.services.query_cache import QueryCache

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5

# section -> (cache family, endpoint, params)
SECTIONS: dict[str, tuple[str, str, Optional[dict]]] = {
    "stats": ("admin-stats", "/admin/stats", None),
    "charts": ("admin-chart-data", "/admin/chart-data", None),
    "recent_users": ("recent-users", "/admin/users", {"limit": RECENT_LIMIT}),
    "recent_formulations": ("recent-formulations", "/admin/formulations", {"limit": RECENT_LIMIT}),
    "recent_transactions": ("recent-transactions", "/admin/transactions", {"limit": RECENT_LIMIT}),
    "standards": ("standards-count", "/standards", None),
    "categories": ("categories-count", "/admin/categories", None),
}

SECTION_LABELS = {
    "stats": "statistics",
    "charts": "charts",
    "recent_users": "recent users",
    "recent_formulations": "recent formulations",
    "recent_transactions": "recent transactions",
    "standards": "standards",
    "categories": "categories",
}


def _rows(data: Any, key: str) -> list:
    if isinstance(data, dict) and isinstance(data.get(key), list):
        return data[key]
    return []


def _documents(model: type[BackendModel]) -> Callable[[Any], list]:
    def parse(data: Any) -> list:
        return [model.model_validate(item) for item in _rows(data, "data")]
    return parse


# section -> parser from the raw backend body; parsers accept None for a missing section
SECTION_PARSERS: dict[str, Callable[[Any], Any]] = {
    "stats": lambda data: SystemStats.model_validate(data if isinstance(data, dict) else {}),
    "charts": lambda data: ChartData.model_validate(data if isinstance(data, dict) else {}),
    "recent_users": _documents(User),
    "recent_formulations": _documents(Formulation),
    "recent_transactions": _documents(Transaction),
    "standards": lambda data: len(_rows(data, "standards")),
    "categories": lambda data: len(_rows(data, "categories")),
}


class DashboardService:
    def __init__(self, backend: BackendClient, cache: QueryCache, session_id: Optional[str] = None):
        self.backend = backend
        self.cache = cache
        self.session_id = session_id

    async def _section(self, name: str) -> Any:
        family, path, params = SECTIONS[name]

        async def fetch():
            return await self.backend.get(path, params=params, session_id=self.session_id)

        return await self.cache.fetch((family,), fetch)

    async def overview(self) -> DashboardOverview:
        """Load every section concurrently; a failing section is left empty."""
        names = list(SECTIONS)
        results = await asyncio.gather(*(self._section(n) for n in names), return_exceptions=True)

        sections: dict[str, Any] = {}
        errors: list[str] = []
        for name, result in zip(names, results):
            if isinstance(result, BackendError):
                logger.warning("Dashboard section %s failed: %s", name, result)
                errors.append(f"Could not load {SECTION_LABELS[name]}: {result.message}")
                continue
            if isinstance(result, BaseException):
                raise result
            try:
                sections[name] = SECTION_PARSERS[name](result.data)
            except ValidationError as e:
                logger.error("Dashboard section %s returned unexpected data: %s", name, e)
                errors.append(f"Could not read {SECTION_LABELS[name]} returned by the server")
                continue
            if result.error:
                errors.append(f"Showing cached {SECTION_LABELS[name]}: {result.error}")

        for name in names:
            if name not in sections:
                sections[name] = SECTION_PARSERS[name](None)

        return DashboardOverview(
            stats=sections["stats"],
            charts=sections["charts"],
            recent_users=sections["recent_users"],
            recent_formulations=sections["recent_formulations"],
            recent_transactions=sections["recent_transactions"],
            standards_count=sections["standards"],
            categories_count=sections["categories"],
            errors=errors,
        )
