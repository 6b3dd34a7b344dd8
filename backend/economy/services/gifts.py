from __future__ import annotations
import uuid
from uuid import UUID
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from economy.models.gift import GiftType, GiftTransaction
from economy.models.user import User
from economy.models.wallet import GIFT_SENT, GIFT_RECEIVED
from economy.services.ledger import add_coins, deduct_coins
from economy.services.wallet import ExchangeError

log = structlog.get_logger(__name__)

GIFT_REFERENCE = "gift"


class GiftTypeNotFound(ExchangeError):
    detail = "Invalid gift type"


class RecipientNotFound(ExchangeError):
    detail = "Recipient not found"


class SelfExchange(ExchangeError):
    detail = "Cannot send coins to yourself"


async def ensure_counterparty(session: AsyncSession, sender_id: UUID, recipient_id: UUID) -> User:
    """Shared precondition of every exchange: a real recipient who is not the sender."""
    if sender_id == recipient_id:
        raise SelfExchange()
    recipient = await session.get(User, recipient_id)
    if not recipient:
        raise RecipientNotFound()
    return recipient


# ---------- catalog ----------

async def get_gift_types(session: AsyncSession, category: str | None = None) -> list[GiftType]:
    stmt = select(GiftType).where(GiftType.is_active.is_(True))
    if category:
        stmt = stmt.where(GiftType.category == category)
    return (await session.execute(stmt.order_by(GiftType.sort_order, GiftType.name))).scalars().all()


async def get_gift_type(session: AsyncSession, gift_type_id: UUID) -> GiftType | None:
    return await session.get(GiftType, gift_type_id)


async def create_gift_type(
    session: AsyncSession,
    *,
    name: str,
    icon_url: str,
    coin_cost: int,
    description: str | None = None,
    animation_url: str | None = None,
    net_worth_value: int = 0,
    category: str | None = None,
    sort_order: int = 0,
) -> GiftType:
    if coin_cost <= 0:
        raise ValueError("coin_cost must be > 0")
    gt = GiftType(
        name=name,
        icon_url=icon_url,
        coin_cost=coin_cost,
        description=description,
        animation_url=animation_url,
        net_worth_value=net_worth_value,
        category=category,
        sort_order=sort_order,
    )
    session.add(gt)
    await session.flush()
    return gt


# ---------- exchange ----------

async def send_gift(
    session: AsyncSession,
    sender_id: UUID,
    recipient_id: UUID,
    gift_type_id: UUID,
    quantity: int = 1,
    context_type: str | None = None,
    context_id: str | None = None,
    message: str | None = None,
) -> GiftTransaction:
    """
    Debit the sender, credit the recipient, record the gift.
    All three writes are flushed into the caller's transaction: commit once, or roll back all of them.
    Both ledger lines carry the gift transaction id as reference_id.
    """
    if quantity < 1:
        raise ValueError("quantity must be >= 1")

    gift_type = await get_gift_type(session, gift_type_id)
    if not gift_type or not gift_type.is_active:
        raise GiftTypeNotFound()
    await ensure_counterparty(session, sender_id, recipient_id)

    total_coins = int(gift_type.coin_cost) * quantity
    gift_id = uuid.uuid4()

    await deduct_coins(
        session, sender_id, total_coins, GIFT_SENT,
        description=f"Sent {quantity}x {gift_type.name}",
        reference_id=gift_id, reference_type=GIFT_REFERENCE,
    )
    await add_coins(
        session, recipient_id, total_coins, GIFT_RECEIVED,
        description=f"Received {quantity}x {gift_type.name}",
        reference_id=gift_id, reference_type=GIFT_REFERENCE,
    )

    gift = GiftTransaction(
        id=gift_id,
        sender_id=sender_id,
        recipient_id=recipient_id,
        gift_type_id=gift_type.id,
        quantity=quantity,
        total_coins=total_coins,
        context_type=context_type,
        context_id=context_id,
        message=message,
    )
    session.add(gift)
    await session.flush()
    log.info("gift_sent", gift_id=str(gift_id), sender_id=str(sender_id), recipient_id=str(recipient_id),
             gift_type_id=str(gift_type.id), quantity=quantity, total_coins=total_coins)
    return gift


# ---------- read views ----------

async def get_received_gifts(session: AsyncSession, user_id: UUID, limit: int = 50) -> list[dict]:
    """
    Newest-first gifts received by user_id, each joined to its sender and gift type.
    Senders and gift types are fetched with one IN query each.
    """
    gifts = (await session.execute(
        select(GiftTransaction)
        .where(GiftTransaction.recipient_id == user_id)
        .order_by(GiftTransaction.created_at.desc())
        .limit(limit)
    )).scalars().all()
    if not gifts:
        return []

    sender_ids = {g.sender_id for g in gifts}
    type_ids = {g.gift_type_id for g in gifts}
    senders = {u.id: u for u in (await session.execute(select(User).where(User.id.in_(sender_ids)))).scalars()}
    types = {t.id: t for t in (await session.execute(select(GiftType).where(GiftType.id.in_(type_ids)))).scalars()}

    out: list[dict] = []
    for g in gifts:
        sender = senders.get(g.sender_id)
        gift_type = types.get(g.gift_type_id)
        if sender and gift_type:
            out.append({"gift": g, "sender": sender, "gift_type": gift_type})
    return out
