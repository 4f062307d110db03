"""Wallet transactions."""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator

from .common import BackendModel, Document, PageMeta, Ref, coerce_ref


class Transaction(Document):
    type: str = "credit"
    amount: float = 0
    description: str = ""
    status: str = "pending"
    balance_after: Optional[float] = None
    paystack_reference: Optional[str] = None
    user_id: Optional[Ref] = None

    normalize_owner = field_validator("user_id", mode="before")(coerce_ref)


class TransactionSummary(BackendModel):
    credits: float = 0
    debits: float = 0

    @property
    def net_revenue(self) -> float:
        return self.credits - self.debits


class TransactionListResponse(BackendModel):
    data: list[Transaction] = Field(default_factory=list)
    summary: TransactionSummary = Field(default_factory=TransactionSummary)
    meta: Optional[PageMeta] = None
