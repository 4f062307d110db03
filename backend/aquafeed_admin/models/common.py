"""Shared shapes of the backend's list responses."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class BackendModel(BaseModel):
    """Document as described by the backend (camelCase keys, ``_id`` identity).

    Unknown keys are kept so newer backend fields survive a round-trip.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        """Treat explicit nulls as missing so field defaults apply."""
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    def to_payload(self, **kwargs) -> dict:
        """Serialize with backend (camelCase) keys."""
        return self.model_dump(by_alias=True, exclude_none=True, **kwargs)


class Document(BackendModel):
    """Backend document with server-assigned identity."""

    id: str = Field(alias="_id")
    created_at: Optional[str] = None


class Ref(BackendModel):
    """Populated reference to another document, e.g. ``userId: {_id, name, email}``."""

    id: Optional[str] = Field(default=None, alias="_id")
    name: Optional[str] = None
    email: Optional[str] = None


class PageMeta(BackendModel):
    """Pagination block of list responses."""

    page: int = 1
    limit: int = 10
    total: int = 0
    pages: int = 1
    has_next: bool = False
    has_prev: bool = False


class NutrientRange(BackendModel):
    """Target range for one nutrient in a feed standard."""

    min: float = 0
    max: float = 0


NUTRIENT_LABELS = {
    "protein": "Protein",
    "fat": "Fat",
    "carbohydrate": "Carbohydrate",
    "energy": "Energy",
    "fiber": "Fiber",
    "ash": "Ash",
    "lysine": "Lysine",
    "methionine": "Methionine",
    "calcium": "Calcium",
    "phosphorous": "Phosphorous",
}


def coerce_ref(value):
    """Accept an unpopulated reference (bare id string) as a Ref."""
    if isinstance(value, str):
        return {"_id": value}
    return value

