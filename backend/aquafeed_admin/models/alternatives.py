"""Alternative-ingredient substitution rules."""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator

from .common import BackendModel, Document, PageMeta, Ref, coerce_ref


class AlternativeRule(Document):
    original_ingredient_id: Optional[Ref] = None
    alternative_ingredient_id: Optional[Ref] = None
    feed_type: str = "both"
    max_blend_percent: float = 100
    notes: Optional[str] = None
    is_active: bool = True

    normalize_refs = field_validator("original_ingredient_id", "alternative_ingredient_id", mode="before")(coerce_ref)

    @property
    def original_name(self) -> str:
        return (self.original_ingredient_id.name if self.original_ingredient_id else None) or "-"

    @property
    def alternative_name(self) -> str:
        return (self.alternative_ingredient_id.name if self.alternative_ingredient_id else None) or "-"


class RuleSummary(BackendModel):
    total: int = 0
    active: int = 0
    inactive: int = 0
    fish: int = 0
    poultry: int = 0
    both: int = 0


class RuleListResponse(BackendModel):
    rules: list[AlternativeRule] = Field(default_factory=list)
    filtered_total: Optional[int] = None
    summary: RuleSummary = Field(default_factory=RuleSummary)
    meta: Optional[PageMeta] = None
