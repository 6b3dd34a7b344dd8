from __future__ import annotations
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from economy.db import is_postgres
from economy.models.wallet import Wallet


class ExchangeError(Exception):
    """Business-rule failure of a ledger or exchange operation. Nothing has been written when it is raised."""
    status_code = 400
    detail = "Exchange failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.detail)


class InsufficientFunds(ExchangeError):
    detail = "Insufficient coins"


class WalletFrozen(ExchangeError):
    detail = "Wallet is frozen"


async def get_wallet(session: AsyncSession, user_id: UUID) -> Wallet | None:
    return await session.scalar(
        select(Wallet).where(Wallet.user_id == user_id).execution_options(populate_existing=True)
    )


async def get_or_create_wallet(session: AsyncSession, user_id: UUID) -> Wallet:
    """
    Return the user's wallet, inserting a zero-balance one on first access.
    Concurrent first accesses collapse onto the unique user_id via ON CONFLICT DO NOTHING.
    """
    wallet = await get_wallet(session, user_id)
    if wallet:
        return wallet

    insert = postgresql.insert if is_postgres(session) else sqlite.insert
    await session.execute(
        insert(Wallet).values(user_id=user_id).on_conflict_do_nothing(index_elements=["user_id"])
    )
    wallet = await get_wallet(session, user_id)
    assert wallet is not None
    return wallet
