"""Overview page data."""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from .common import BackendModel
from .formulations import Formulation
from .transactions import Transaction
from .users import User


class SystemStats(BackendModel):
    users: int = 0
    active_farms: int = 0
    platform_revenue: float = 0
    ingredients: int = 0
    formulations: int = 0


class ChartPoint(BackendModel):
    name: str
    value: float = 0
    color: Optional[str] = None


class ChartData(BackendModel):
    revenue_by_month: list[ChartPoint] = Field(default_factory=list)
    formulations_by_status: list[ChartPoint] = Field(default_factory=list)
    formulations_per_day: list[ChartPoint] = Field(default_factory=list)
    user_signups: list[ChartPoint] = Field(default_factory=list)


class DashboardOverview(BackendModel):
    stats: SystemStats = Field(default_factory=SystemStats)
    charts: ChartData = Field(default_factory=ChartData)
    recent_users: list[User] = Field(default_factory=list)
    recent_formulations: list[Formulation] = Field(default_factory=list)
    recent_transactions: list[Transaction] = Field(default_factory=list)
    standards_count: int = 0
    categories_count: int = 0
    errors: list[str] = Field(default_factory=list)
