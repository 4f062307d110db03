"""Feed standards: nutrient target ranges per feed category and stage."""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from .common import BackendModel, Document, NutrientRange, PageMeta

STANDARD_NUTRIENTS = (
    "protein",
    "fat",
    "carbohydrate",
    "energy",
    "fiber",
    "ash",
    "lysine",
    "methionine",
    "calcium",
    "phosphorous",
)


class TargetNutrients(BackendModel):
    protein: NutrientRange = Field(default_factory=NutrientRange)
    fat: NutrientRange = Field(default_factory=NutrientRange)
    carbohydrate: Optional[NutrientRange] = None
    energy: Optional[NutrientRange] = None
    fiber: NutrientRange = Field(default_factory=NutrientRange)
    ash: NutrientRange = Field(default_factory=NutrientRange)
    lysine: NutrientRange = Field(default_factory=NutrientRange)
    methionine: NutrientRange = Field(default_factory=NutrientRange)
    calcium: NutrientRange = Field(default_factory=NutrientRange)
    phosphorous: NutrientRange = Field(default_factory=NutrientRange)

    def ranges(self) -> list[tuple[str, NutrientRange]]:
        """Defined ranges in display order."""
        return [(name, getattr(self, name)) for name in STANDARD_NUTRIENTS if getattr(self, name) is not None]


class FeedStandard(Document):
    name: str
    feed_type: Optional[str] = None
    feed_category: str = "Catfish"
    poultry_type: Optional[str] = None
    fish_subtype: Optional[str] = None
    stage: str = ""
    description: Optional[str] = None
    target_nutrients: TargetNutrients = Field(default_factory=TargetNutrients)
    is_active: bool = True
    is_default: bool = False


class StandardSummary(BackendModel):
    total: int = 0
    fish: int = 0
    poultry: int = 0
    active: int = 0


class StandardListResponse(BackendModel):
    standards: list[FeedStandard] = Field(default_factory=list)
    filtered_total: Optional[int] = None
    summary: StandardSummary = Field(default_factory=StandardSummary)
    meta: Optional[PageMeta] = None
