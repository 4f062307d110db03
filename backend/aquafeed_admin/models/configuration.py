"""Tunable system configuration entries."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import Field

from .common import BackendModel, PageMeta


class ConfigEntry(BackendModel):
    id: Optional[str] = Field(default=None, alias="_id")
    key: str
    value: Any = None
    type: str = "string"
    description: Optional[str] = None
    updated_at: Optional[str] = None


class ConfigListResponse(BackendModel):
    configs: list[ConfigEntry] = Field(default_factory=list)
    meta: Optional[PageMeta] = None
