"""Authentication payloads relayed to the backend."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from .common import BackendModel


class OTPRequest(BaseModel):
    email: str = Field(..., min_length=3)


class OTPVerifyRequest(BaseModel):
    email: str = Field(..., min_length=3)
    otp: str = Field(..., min_length=1)


class SessionUser(BackendModel):
    """User as returned by ``/auth/me`` and ``/auth/verify-otp``."""

    id: Optional[str] = Field(default=None, alias="_id")
    email: str = ""
    name: str = ""
    role: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def initial(self) -> str:
        return (self.name[:1] or "A").upper()
