from __future__ import annotations
from pydantic import Field
from uuid import UUID
from datetime import datetime
from economy.schemas.base import CamelModel

class SubscriptionTierPublic(CamelModel):
    id: UUID
    creator_id: UUID
    name: str
    description: str | None = None
    monthly_price_coins: int
    yearly_price_coins: int | None = None
    benefits: list[str] = []
    is_active: bool
    subscriber_count: int
    sort_order: int

class CreateTierRequest(CamelModel):
    name: str | None = Field(default=None, max_length=100)
    monthly_price_coins: int | None = None
    description: str | None = None
    benefits: list[str] | None = None

class SubscribeRequest(CamelModel):
    creator_id: UUID | None = None
    tier_id: UUID | None = None

class SubscriptionPublic(CamelModel):
    id: UUID
    subscriber_id: UUID
    creator_id: UUID
    tier_id: UUID
    status: str
    is_yearly: bool
    current_period_start: datetime
    current_period_end: datetime
    cancelled_at: datetime | None = None

class SubscriptionCheck(CamelModel):
    is_subscribed: bool
