from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from economy.db import get_session
from economy.auth_deps import get_current_user
from economy.schemas.tip import SendTipRequest, TipPublic
from economy.services.tips import send_tip
from economy.services.wallet import ExchangeError

router = APIRouter(prefix="/api/tips", tags=["tips"])

@router.post("/send", response_model=TipPublic)
async def post_send_tip(payload: SendTipRequest, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    if not payload.recipient_id:
        raise HTTPException(status_code=400, detail="recipientId required")
    try:
        tip = await send_tip(
            session, user.id, payload.recipient_id, payload.amount,
            payload.context_type, payload.context_id, payload.message,
        )
    except ExchangeError as e:
        await session.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    await session.commit()
    return tip
