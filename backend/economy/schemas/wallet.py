from __future__ import annotations
from pydantic import AnyHttpUrl, Field
from uuid import UUID
from datetime import datetime
from economy.schemas.base import CamelModel

class WalletPublic(CamelModel):
    id: UUID
    user_id: UUID
    coin_balance: int
    lifetime_earned: int
    lifetime_spent: int
    is_frozen: bool
    created_at: datetime
    updated_at: datetime

class CoinTransactionPublic(CamelModel):
    id: UUID
    wallet_id: UUID
    type: str
    amount: int
    balance_after: int
    description: str | None = None
    reference_id: str | None = None
    reference_type: str | None = None
    created_at: datetime

class AddCoinsRequest(CamelModel):
    amount: int
    type: str | None = None
    description: str | None = Field(default=None, max_length=500)

class WalletAudit(CamelModel):
    user_id: UUID
    coin_balance: int
    ledger_total: int
    transaction_count: int
    drift: int

class CreatePurchaseRequest(CamelModel):
    coins: int = Field(gt=0, description="Number of coins to buy")
    success_url: AnyHttpUrl
    cancel_url: AnyHttpUrl

class CreatePurchaseResponse(CamelModel):
    checkout_url: str
    session_id: str
