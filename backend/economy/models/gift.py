from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Integer, BigInteger, Boolean, DateTime, ForeignKey, Index, Uuid, func
from economy.db import Base
from economy.models.user import utcnow

class GiftType(Base):
    __tablename__ = "gift_types"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon_url: Mapped[str] = mapped_column(Text, nullable=False)
    animation_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    coin_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    net_worth_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    is_active: Mapped[bool] = mapped_column(Boolean, index=True, nullable=False, default=True, server_default="true")
    category: Mapped[str | None] = mapped_column(String(50), index=True, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)


class GiftTransaction(Base):
    """One row per gift-send event. total_coins = coin_cost * quantity at send time."""
    __tablename__ = "gift_transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    sender_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    recipient_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    gift_type_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("gift_types.id", ondelete="CASCADE"), nullable=False)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    total_coins: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # e.g. ("post", <post id>) or ("stream", <stream id>)
    context_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    context_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_gift_transactions_context", "context_type", "context_id"),
    )
