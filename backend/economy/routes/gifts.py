from __future__ import annotations
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from economy.config import settings
from economy.db import get_session, SessionLocal
from economy.auth_deps import get_current_user, require_admin
from economy.schemas.gift import (
    GiftTypePublic, CreateGiftTypeRequest, SendGiftRequest, GiftTransactionPublic, ReceivedGift, GiftSender,
)
from economy.services.gifts import get_gift_types, create_gift_type, send_gift, get_received_gifts
from economy.services.push import notify_gift_received
from economy.services.wallet import ExchangeError

router = APIRouter(prefix="/api/gifts", tags=["gifts"])

@router.get("/types", response_model=list[GiftTypePublic])
async def list_gift_types(category: str | None = Query(default=None), session: AsyncSession = Depends(get_session)):
    return await get_gift_types(session, category)

@router.post("/types", status_code=201, response_model=GiftTypePublic)
async def post_gift_type(payload: CreateGiftTypeRequest, session: AsyncSession = Depends(get_session), admin=Depends(require_admin)):
    gt = await create_gift_type(session, **payload.model_dump())
    await session.commit()
    return gt

@router.post("/send", response_model=GiftTransactionPublic)
async def post_send_gift(
    payload: SendGiftRequest,
    background: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    user=Depends(get_current_user),
):
    if not payload.recipient_id:
        raise HTTPException(status_code=400, detail="recipientId required")
    if not payload.gift_type_id:
        raise HTTPException(status_code=400, detail="giftTypeId required")
    try:
        gift = await send_gift(
            session,
            user.id,
            payload.recipient_id,
            payload.gift_type_id,
            payload.quantity,
            payload.context_type,
            payload.context_id,
            payload.message,
        )
    except ExchangeError as e:
        await session.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    await session.commit()

    background.add_task(
        notify_gift_received, SessionLocal, gift.recipient_id,
        user.display_name or user.username or "Someone", gift.quantity, gift.id,
    )
    return gift

@router.get("/received", response_model=list[ReceivedGift])
async def list_received_gifts(
    limit: int = Query(default=settings.default_page_limit, ge=1, le=settings.max_page_limit),
    session: AsyncSession = Depends(get_session),
    user=Depends(get_current_user),
):
    rows = await get_received_gifts(session, user.id, limit)
    return [
        ReceivedGift(
            **GiftTransactionPublic.model_validate(r["gift"]).model_dump(),
            sender=GiftSender.model_validate(r["sender"]),
            gift_type=GiftTypePublic.model_validate(r["gift_type"]),
        ) for r in rows
    ]
