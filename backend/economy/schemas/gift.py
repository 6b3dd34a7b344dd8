from __future__ import annotations
from pydantic import Field
from uuid import UUID
from datetime import datetime
from economy.schemas.base import CamelModel

class GiftTypePublic(CamelModel):
    id: UUID
    name: str
    description: str | None = None
    icon_url: str
    animation_url: str | None = None
    coin_cost: int
    net_worth_value: int
    is_active: bool
    category: str | None = None
    sort_order: int

class CreateGiftTypeRequest(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    icon_url: str
    coin_cost: int = Field(gt=0)
    description: str | None = None
    animation_url: str | None = None
    net_worth_value: int = Field(default=0, ge=0)
    category: str | None = Field(default=None, max_length=50)
    sort_order: int = 0

class SendGiftRequest(CamelModel):
    recipient_id: UUID | None = None
    gift_type_id: UUID | None = None
    quantity: int = Field(default=1, ge=1, le=1000)
    context_type: str | None = Field(default=None, max_length=50)
    context_id: str | None = Field(default=None, max_length=64)
    message: str | None = Field(default=None, max_length=500)

class GiftTransactionPublic(CamelModel):
    id: UUID
    sender_id: UUID
    recipient_id: UUID
    gift_type_id: UUID
    quantity: int
    total_coins: int
    context_type: str | None = None
    context_id: str | None = None
    message: str | None = None
    created_at: datetime

class GiftSender(CamelModel):
    id: UUID
    username: str
    display_name: str | None = None

class ReceivedGift(GiftTransactionPublic):
    sender: GiftSender
    gift_type: GiftTypePublic
