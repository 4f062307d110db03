"""Farm profiles with their ponds."""

from __future__ import annotations

from typing import Optional, Union

from pydantic import Field, field_validator

from .common import BackendModel, Document, PageMeta, Ref, coerce_ref


class Pond(BackendModel):
    pond_number: int = 0
    size_in_meters: float = 0
    fish_count: int = 0
    fish_type: str = ""
    stage: str = ""


class FarmLocation(BackendModel):
    state: Optional[str] = None
    lga: Optional[str] = None
    address: Optional[str] = None


class FarmProfile(Document):
    user_id: Optional[Ref] = None
    name: str = ""
    location: Union[FarmLocation, str, None] = None
    ponds: list[Pond] = Field(default_factory=list)
    updated_at: Optional[str] = None

    normalize_owner = field_validator("user_id", mode="before")(coerce_ref)

    @property
    def location_text(self) -> str:
        """Searchable location: ``"lga state address"`` for structured locations."""
        if isinstance(self.location, FarmLocation):
            loc = self.location
            return f"{loc.lga or ''} {loc.state or ''} {loc.address or ''}"
        return str(self.location or "")

    @property
    def total_fish(self) -> int:
        return sum(p.fish_count or 0 for p in self.ponds)

    @property
    def total_area(self) -> float:
        return sum(p.size_in_meters or 0 for p in self.ponds)


class FarmListResponse(BackendModel):
    data: list[FarmProfile] = Field(default_factory=list)
    meta: Optional[PageMeta] = None
