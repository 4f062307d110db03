"""Formulations computed by the backend, displayed read-only."""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator

from .common import BackendModel, Document, PageMeta, Ref, coerce_ref


class FormulationNutrients(BackendModel):
    protein: float = 0
    fat: float = 0
    fiber: float = 0
    ash: float = 0
    lysine: float = 0
    methionine: float = 0
    calcium: float = 0
    phosphorous: float = 0


class IngredientUsed(BackendModel):
    ingredient_id: Optional[Ref] = None
    name: str = ""
    qty_kg: float = 0
    bags: Optional[float] = None
    price_at_moment: float = 0
    nutrients_at_moment: FormulationNutrients = Field(default_factory=FormulationNutrients)

    normalize_ingredient = field_validator("ingredient_id", mode="before")(coerce_ref)


class Alternative(BackendModel):
    suggestion: str = ""
    savings: float = 0


class StandardUsed(BackendModel):
    id: Optional[str] = Field(default=None, alias="_id")
    name: str = ""
    fish_type: str = ""
    stage: str = ""


class Formulation(Document):
    batch_name: str = ""
    target_weight_kg: float = 0
    total_cost: float = 0
    cost_per_kg: float = 0
    compliance_color: str = "Red"
    quality_match_percentage: float = 0
    is_demo: bool = False
    is_unlocked: bool = False
    unlocked_at: Optional[str] = None
    actual_nutrients: FormulationNutrients = Field(default_factory=FormulationNutrients)
    ingredients_used: list[IngredientUsed] = Field(default_factory=list)
    alternatives: list[Alternative] = Field(default_factory=list)
    user_id: Optional[Ref] = None
    farm_id: Optional[Ref] = None
    standard_used: Optional[StandardUsed] = None

    normalize_refs = field_validator("user_id", "farm_id", mode="before")(coerce_ref)

    @property
    def status(self) -> str:
        if self.is_unlocked:
            return "unlocked"
        if self.is_demo:
            return "demo"
        return "locked"


class FormulationListResponse(BackendModel):
    data: list[Formulation] = Field(default_factory=list)
    meta: Optional[PageMeta] = None
