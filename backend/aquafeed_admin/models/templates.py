"""Feed templates: ingredient-ratio recipes used as formulation starting points."""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator

from .common import BackendModel, Document


class TemplateItem(BackendModel):
    ingredient_id: str = ""
    ratio: float = 0

    @field_validator("ingredient_id", mode="before")
    @classmethod
    def unwrap_ingredient(cls, value):
        if isinstance(value, dict):
            return value.get("_id") or ""
        return value


class FeedTemplate(Document):
    name: str
    feed_category: str = "Catfish"
    poultry_type: Optional[str] = None
    stage: str = ""
    description: Optional[str] = None
    total_weight: float = 100
    items: list[TemplateItem] = Field(default_factory=list)
    is_active: bool = True

    @property
    def total_ratio(self) -> float:
        return sum(item.ratio for item in self.items)


class TemplateListResponse(BackendModel):
    templates: list[FeedTemplate] = Field(default_factory=list)
