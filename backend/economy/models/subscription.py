from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import JSON, String, Text, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint, Uuid, func
from economy.db import Base
from economy.models.user import utcnow

ACTIVE = "ACTIVE"
CANCELLED = "CANCELLED"
EXPIRED = "EXPIRED"
PAUSED = "PAUSED"

class SubscriptionTier(Base):
    __tablename__ = "subscription_tiers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    creator_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    monthly_price_coins: Mapped[int] = mapped_column(Integer, nullable=False)
    yearly_price_coins: Mapped[int | None] = mapped_column(Integer, nullable=True)
    benefits: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    is_active: Mapped[bool] = mapped_column(Boolean, index=True, nullable=False, default=True, server_default="true")
    subscriber_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)


class Subscription(Base):
    """
    Paid follow of a creator. Period is set once at purchase time;
    nothing in this service renews it or flips status on expiry.
    """
    __tablename__ = "subscriptions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    subscriber_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    creator_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    tier_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("subscription_tiers.id", ondelete="CASCADE"), nullable=False)

    status: Mapped[str] = mapped_column(String(16), index=True, nullable=False, default=ACTIVE, server_default=ACTIVE)  # ACTIVE | CANCELLED | EXPIRED | PAUSED
    is_yearly: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    current_period_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    current_period_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("subscriber_id", "creator_id", name="uq_subscriptions_subscriber_creator"),
    )
