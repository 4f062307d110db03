"""Platform user accounts."""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from .common import BackendModel, Document, PageMeta


class User(Document):
    name: str = ""
    email: str = ""
    phone: Optional[str] = None
    role: str = "farmer"
    is_active: bool = True
    wallet_balance: float = 0
    has_full_access: bool = False
    free_trial_used: bool = False
    formula_count: int = 0

    @property
    def initial(self) -> str:
        return (self.name[:1] or "A").upper()


class UserListResponse(BackendModel):
    data: list[User] = Field(default_factory=list)
    meta: Optional[PageMeta] = None
