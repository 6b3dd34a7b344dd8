from __future__ import annotations
from pydantic import Field
from uuid import UUID
from economy.schemas.base import CamelModel
from economy.schemas.wallet import CoinTransactionPublic

class SendTipRequest(CamelModel):
    recipient_id: UUID | None = None
    amount: int = Field(gt=0)
    context_type: str | None = Field(default=None, max_length=50)
    context_id: str | None = Field(default=None, max_length=64)
    message: str | None = Field(default=None, max_length=500)

class TipPublic(CamelModel):
    id: UUID
    sender_id: UUID
    recipient_id: UUID
    amount: int
    context_type: str | None = None
    context_id: str | None = None
    message: str | None = None
    debit: CoinTransactionPublic
    credit: CoinTransactionPublic
