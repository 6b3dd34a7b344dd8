from __future__ import annotations
from datetime import datetime
from uuid import UUID
import structlog
from sqlalchemy import select, update, func, text
from sqlalchemy.ext.asyncio import AsyncSession

from economy.config import settings
from economy.db import is_postgres
from economy.models.user import utcnow
from economy.models.wallet import Wallet, CoinTransaction, PURCHASE
from economy.services.wallet import InsufficientFunds, WalletFrozen, get_wallet, get_or_create_wallet

log = structlog.get_logger(__name__)

STRIPE_REFERENCE = "stripe"


async def _advisory_lock_wallet(session: AsyncSession, user_id: UUID):
    """Serialise debits per wallet on PostgreSQL; the conditional update covers other backends."""
    if is_postgres(session):
        await session.execute(text("SELECT pg_advisory_xact_lock(hashtext(:k))"), {"k": f"wallet:{user_id}"})


def _record(wallet: Wallet, type: str, amount: int, balance_after: int, description, reference_id, reference_type) -> CoinTransaction:
    return CoinTransaction(
        wallet_id=wallet.id,
        type=type,
        amount=int(amount),
        balance_after=int(balance_after),
        description=description,
        reference_id=str(reference_id) if reference_id is not None else None,
        reference_type=reference_type,
    )


async def add_coins(
    session: AsyncSession,
    user_id: UUID,
    amount: int,
    type: str,
    description: str | None = None,
    reference_id: str | UUID | None = None,
    reference_type: str | None = None,
) -> CoinTransaction:
    """
    Credit `amount` coins and write the matching ledger line.
    Balance update and ledger insert share the caller's transaction; nothing is committed here.
    """
    if amount <= 0:
        raise ValueError("amount must be > 0")

    wallet = await get_or_create_wallet(session, user_id)
    if wallet.is_frozen:
        raise WalletFrozen()

    new_balance = await session.scalar(
        update(Wallet)
        .where(Wallet.id == wallet.id)
        .values(
            coin_balance=Wallet.coin_balance + amount,
            lifetime_earned=Wallet.lifetime_earned + amount,
            updated_at=utcnow(),
        )
        .returning(Wallet.coin_balance)
        .execution_options(synchronize_session=False)
    )

    tx = _record(wallet, type, amount, new_balance, description, reference_id, reference_type)
    session.add(tx)
    await session.flush()
    log.info("coins_added", user_id=str(user_id), amount=amount, type=type, balance=int(new_balance))
    return tx


async def deduct_coins(
    session: AsyncSession,
    user_id: UUID,
    amount: int,
    type: str,
    description: str | None = None,
    reference_id: str | UUID | None = None,
    reference_type: str | None = None,
) -> CoinTransaction:
    """
    Debit `amount` coins. The balance check and the decrement are one
    conditional UPDATE, so two concurrent debits can never overspend.
    Raises InsufficientFunds (balance untouched, no ledger line) if balance < amount.
    """
    if amount <= 0:
        raise ValueError("amount must be > 0")

    await _advisory_lock_wallet(session, user_id)
    wallet = await get_or_create_wallet(session, user_id)
    if wallet.is_frozen:
        raise WalletFrozen()

    new_balance = await session.scalar(
        update(Wallet)
        .where(Wallet.id == wallet.id, Wallet.coin_balance >= amount)
        .values(
            coin_balance=Wallet.coin_balance - amount,
            lifetime_spent=Wallet.lifetime_spent + amount,
            updated_at=utcnow(),
        )
        .returning(Wallet.coin_balance)
        .execution_options(synchronize_session=False)
    )
    if new_balance is None:
        log.info("coins_deduct_rejected", user_id=str(user_id), amount=amount, balance=int(wallet.coin_balance))
        raise InsufficientFunds(f"need {amount}, have {wallet.coin_balance}")

    tx = _record(wallet, type, -amount, new_balance, description, reference_id, reference_type)
    session.add(tx)
    await session.flush()
    log.info("coins_deducted", user_id=str(user_id), amount=amount, type=type, balance=int(new_balance))
    return tx


async def get_coin_transactions(session: AsyncSession, user_id: UUID, limit: int = 50) -> list[CoinTransaction]:
    wallet = await get_wallet(session, user_id)
    if not wallet:
        return []
    return (await session.execute(
        select(CoinTransaction)
        .where(CoinTransaction.wallet_id == wallet.id)
        .order_by(CoinTransaction.created_at.desc())
        .limit(limit)
    )).scalars().all()


async def audit_wallet(session: AsyncSession, user_id: UUID) -> dict:
    """Compare the stored balance with the ledger sum. drift != 0 means the ledger and balance disagree."""
    wallet = await get_wallet(session, user_id)
    if not wallet:
        return {"user_id": user_id, "coin_balance": 0, "ledger_total": 0, "transaction_count": 0, "drift": 0}

    total, count = (await session.execute(
        select(func.coalesce(func.sum(CoinTransaction.amount), 0), func.count(CoinTransaction.id))
        .where(CoinTransaction.wallet_id == wallet.id)
    )).one()
    return {
        "user_id": user_id,
        "coin_balance": int(wallet.coin_balance),
        "ledger_total": int(total or 0),
        "transaction_count": int(count or 0),
        "drift": int(wallet.coin_balance) - int(total or 0),
    }


# ---------- purchases ----------

async def purchased_coins_since(session: AsyncSession, user_id: UUID, since: datetime) -> int:
    wallet = await get_wallet(session, user_id)
    if not wallet:
        return 0
    total = await session.scalar(
        select(func.coalesce(func.sum(CoinTransaction.amount), 0))
        .where(
            CoinTransaction.wallet_id == wallet.id,
            CoinTransaction.type == PURCHASE,
            CoinTransaction.created_at >= since,
        )
    )
    return int(total or 0)


async def credit_purchase_idempotent(session: AsyncSession, *, user_id: UUID, payment_intent_id: str, usd_cents: int) -> bool:
    """
    Credit coins for a paid Stripe payment. Idempotent by payment intent id.
    Returns True if a new ledger line was written; False if zero coins or duplicate.
    """
    if usd_cents <= 0:
        return False

    # 1 coin = COIN_PRICE_USD_CENTS cents; default = 1
    coins = usd_cents // max(1, settings.coin_price_usd_cents)
    if coins <= 0:
        return False

    exists = await session.scalar(
        select(CoinTransaction.id).where(
            CoinTransaction.reference_type == STRIPE_REFERENCE,
            CoinTransaction.reference_id == payment_intent_id,
        )
    )
    if exists:
        log.info("purchase_duplicate", user_id=str(user_id), payment_intent=payment_intent_id)
        return False

    await add_coins(
        session,
        user_id,
        coins,
        PURCHASE,
        description=f"Purchased {coins} coins",
        reference_id=payment_intent_id,
        reference_type=STRIPE_REFERENCE,
    )
    return True
