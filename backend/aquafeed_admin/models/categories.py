"""Category taxonomy documents."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import Field

from .common import BackendModel, Document, PageMeta


class CategoryType(str, Enum):
    """Taxonomies the backend keeps categories for."""

    INGREDIENT = "ingredient"
    FISH_TYPE = "fish_type"
    STAGE = "stage"
    OTHER = "other"


CATEGORY_TYPE_LABELS = {
    CategoryType.INGREDIENT.value: "Ingredient",
    CategoryType.FISH_TYPE.value: "Fish Type",
    CategoryType.STAGE.value: "Feed Stage",
    CategoryType.OTHER.value: "Other",
}


class Category(Document):
    name: str
    display_name: str = ""
    type: str = CategoryType.OTHER.value
    description: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0

    @property
    def label(self) -> str:
        return self.display_name or self.name

    @property
    def type_label(self) -> str:
        return CATEGORY_TYPE_LABELS.get(self.type, "Other")


class CategorySummary(BackendModel):
    total: int = 0
    active: int = 0
    inactive: int = 0
    by_type: dict[str, int] = Field(default_factory=dict)


class CategoryListResponse(BackendModel):
    categories: list[Category] = Field(default_factory=list)
    filtered_total: Optional[int] = None
    summary: CategorySummary = Field(default_factory=CategorySummary)
    meta: Optional[PageMeta] = None
