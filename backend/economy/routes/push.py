from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from economy.db import get_session
from economy.auth_deps import get_current_user
from economy.schemas.push import RegisterPushTokenRequest, PushTokenPublic
from economy.services.push import register_token, unregister_token

router = APIRouter(prefix="/api/push", tags=["push"])

@router.post("/tokens", response_model=PushTokenPublic)
async def post_token(payload: RegisterPushTokenRequest, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    pt = await register_token(session, user.id, payload.token, payload.platform, payload.device_id, payload.device_name)
    await session.commit()
    return pt

@router.delete("/tokens/{token}", status_code=204)
async def delete_token(token: str, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    if not await unregister_token(session, user.id, token):
        raise HTTPException(status_code=404, detail="Token not found")
    await session.commit()
    return Response(status_code=204)
