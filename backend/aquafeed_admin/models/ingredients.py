"""Ingredient documents and the ingredient list response."""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from .common import BackendModel, Document, PageMeta


class IngredientNutrients(BackendModel):
    """Nutrient profile per kg of ingredient."""

    protein: float = 0
    fat: float = 0
    carbohydrate: float = 0
    energy: float = 0
    fiber: float = 0
    ash: float = 0
    lysine: float = 0
    methionine: float = 0
    calcium: float = 0
    phosphorous: float = 0
    phosphorus_bioavailability: float = 1.0


class InclusionConstraints(BackendModel):
    """Inclusion limits, kept in the backend's snake_case keys."""

    max_inclusion: Optional[float] = Field(default=None, alias="max_inclusion")
    min_inclusion: Optional[float] = Field(default=None, alias="min_inclusion")


class Ingredient(Document):
    name: str
    category: str = ""
    default_price: float = 0
    bag_weight: Optional[float] = None
    specific_gravity: Optional[float] = None
    is_auto_calculated: bool = False
    auto_calc_ratio: Optional[float] = None
    is_active: bool = True
    nutrients: IngredientNutrients = Field(default_factory=IngredientNutrients)
    constraints: InclusionConstraints = Field(default_factory=InclusionConstraints)
    tags: list[str] = Field(default_factory=list)

    @property
    def auto_calc_grams_per_kg(self) -> Optional[int]:
        """Auto-calculation ratio as shown in the drawer (g/kg)."""
        if self.auto_calc_ratio is None:
            return None
        return round(self.auto_calc_ratio * 1000)


class IngredientSummary(BackendModel):
    total: int = 0
    active: int = 0
    inactive: int = 0
    by_category: dict[str, int] = Field(default_factory=dict)
    by_category_active: dict[str, int] = Field(default_factory=dict)


class IngredientListResponse(BackendModel):
    ingredients: list[Ingredient] = Field(default_factory=list)
    filtered_total: Optional[int] = None
    summary: IngredientSummary = Field(default_factory=IngredientSummary)
    meta: Optional[PageMeta] = None
