from __future__ import annotations
import uuid
from uuid import UUID
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from economy.models.wallet import GIFT_SENT, GIFT_RECEIVED
from economy.services.gifts import ensure_counterparty
from economy.services.ledger import add_coins, deduct_coins

log = structlog.get_logger(__name__)

TIP_REFERENCE = "tip"


async def send_tip(
    session: AsyncSession,
    sender_id: UUID,
    recipient_id: UUID,
    amount: int,
    context_type: str | None = None,
    context_id: str | None = None,
    message: str | None = None,
) -> dict:
    """
    Move `amount` coins from sender to recipient as a tip (e.g. from a story tip sticker).
    Tips have no table of their own: the pair of ledger lines sharing tip_id is the record.
    """
    if amount <= 0:
        raise ValueError("amount must be > 0")
    await ensure_counterparty(session, sender_id, recipient_id)

    tip_id = uuid.uuid4()
    where = f" on {context_type}" if context_type else ""
    debit = await deduct_coins(
        session, sender_id, amount, GIFT_SENT,
        description=message or f"Tip{where}",
        reference_id=tip_id, reference_type=TIP_REFERENCE,
    )
    credit = await add_coins(
        session, recipient_id, amount, GIFT_RECEIVED,
        description=message or f"Tip received{where}",
        reference_id=tip_id, reference_type=TIP_REFERENCE,
    )
    log.info("tip_sent", tip_id=str(tip_id), sender_id=str(sender_id), recipient_id=str(recipient_id),
             amount=amount, context_type=context_type, context_id=context_id)
    return {
        "id": tip_id,
        "sender_id": sender_id,
        "recipient_id": recipient_id,
        "amount": amount,
        "context_type": context_type,
        "context_id": context_id,
        "message": message,
        "debit": debit,
        "credit": credit,
    }
