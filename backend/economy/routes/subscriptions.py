from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from economy.db import get_session
from economy.auth_deps import get_current_user
from economy.schemas.subscription import (
    SubscriptionTierPublic, CreateTierRequest, SubscribeRequest, SubscriptionPublic, SubscriptionCheck,
)
from economy.services.subscriptions import (
    create_subscription_tier, get_creator_subscription_tiers, subscribe, is_subscribed,
)
from economy.services.wallet import ExchangeError

router = APIRouter(prefix="/api/subscriptions", tags=["subscriptions"])

@router.get("/tiers/{creator_id}", response_model=list[SubscriptionTierPublic])
async def list_tiers(creator_id: UUID, session: AsyncSession = Depends(get_session)):
    return await get_creator_subscription_tiers(session, creator_id)

@router.post("/tiers", response_model=SubscriptionTierPublic)
async def post_tier(payload: CreateTierRequest, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    if not payload.name or not payload.monthly_price_coins or payload.monthly_price_coins <= 0:
        raise HTTPException(status_code=400, detail="Name and price required")
    tier = await create_subscription_tier(
        session, user.id, payload.name, payload.monthly_price_coins, payload.description, payload.benefits,
    )
    await session.commit()
    return tier

@router.post("/subscribe", response_model=SubscriptionPublic)
async def post_subscribe(payload: SubscribeRequest, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    if not payload.creator_id or not payload.tier_id:
        raise HTTPException(status_code=400, detail="Creator and tier required")
    try:
        sub = await subscribe(session, user.id, payload.creator_id, payload.tier_id)
    except ExchangeError as e:
        await session.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    await session.commit()
    return sub

@router.get("/check/{creator_id}", response_model=SubscriptionCheck)
async def check_subscription(creator_id: UUID, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return SubscriptionCheck(is_subscribed=await is_subscribed(session, user.id, creator_id))
