from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, BigInteger, Boolean, DateTime, ForeignKey, Index, Uuid, func, text
from economy.db import Base
from economy.models.user import utcnow

# Ledger line reasons. Credits carry a positive amount, debits a negative one.
PURCHASE = "PURCHASE"
GIFT_SENT = "GIFT_SENT"
GIFT_RECEIVED = "GIFT_RECEIVED"
REFUND = "REFUND"
ADMIN_CREDIT = "ADMIN_CREDIT"
ADMIN_DEBIT = "ADMIN_DEBIT"
SUBSCRIPTION_PAYMENT = "SUBSCRIPTION_PAYMENT"

COIN_TRANSACTION_TYPES = (
    PURCHASE, GIFT_SENT, GIFT_RECEIVED, REFUND, ADMIN_CREDIT, ADMIN_DEBIT, SUBSCRIPTION_PAYMENT,
)
CREDIT_TYPES = (PURCHASE, GIFT_RECEIVED, REFUND, ADMIN_CREDIT)
DEBIT_TYPES = (GIFT_SENT, ADMIN_DEBIT, SUBSCRIPTION_PAYMENT)


class Wallet(Base):
    """
    Coin balance per user, created lazily on first access.
    Only the ledger primitives (add_coins / deduct_coins) write to it, so
    coin_balance == Σ(CoinTransaction.amount) for the wallet.
    """
    __tablename__ = "wallets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True, nullable=False
    )

    coin_balance: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    lifetime_earned: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    lifetime_spent: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    is_frozen: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)


class CoinTransaction(Base):
    """
    Immutable ledger line.
      - amount        => signed (credit > 0, debit < 0)
      - balance_after => wallet balance right after this line, never recomputed
      - reference_*   => loose pointer to the gift / subscription / tip / stripe payment
    """
    __tablename__ = "coin_transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    wallet_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("wallets.id", ondelete="CASCADE"), index=True, nullable=False
    )

    type: Mapped[str] = mapped_column(String(32), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    balance_after: Mapped[int] = mapped_column(BigInteger, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    reference_id: Mapped[str | None] = mapped_column(String(64), index=True, nullable=True)
    reference_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True, nullable=False
    )

    __table_args__ = (
        # One stripe payment credits at most once
        Index(
            "uq_coin_transactions_stripe_ref", "reference_id", unique=True,
            postgresql_where=text("reference_type = 'stripe'"),
            sqlite_where=text("reference_type = 'stripe'"),
        ),
    )
