from __future__ import annotations
from datetime import datetime, timezone as dt_tz, timedelta
import stripe
import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from economy.config import settings
from economy.db import get_session
from economy.auth_deps import get_current_user
from economy.models.wallet import PURCHASE, CREDIT_TYPES
from economy.schemas.wallet import (
    WalletPublic, CoinTransactionPublic, AddCoinsRequest, WalletAudit,
    CreatePurchaseRequest, CreatePurchaseResponse,
)
from economy.services.wallet import get_or_create_wallet, WalletFrozen
from economy.services.ledger import add_coins, get_coin_transactions, audit_wallet, purchased_coins_since

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/wallet", tags=["wallet"])

@router.get("", response_model=WalletPublic)
async def get_wallet(session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    wallet = await get_or_create_wallet(session, user.id)
    await session.commit()
    return wallet

@router.get("/transactions", response_model=list[CoinTransactionPublic])
async def list_transactions(
    limit: int = Query(default=settings.default_page_limit, ge=1, le=settings.max_page_limit),
    session: AsyncSession = Depends(get_session),
    user=Depends(get_current_user),
):
    return await get_coin_transactions(session, user.id, limit)

@router.get("/audit", response_model=WalletAudit)
async def get_audit(session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return await audit_wallet(session, user.id)

@router.post("/add-coins", response_model=CoinTransactionPublic)
async def post_add_coins(payload: AddCoinsRequest, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    if payload.amount <= 0:
        raise HTTPException(status_code=400, detail="Invalid amount")
    tx_type = payload.type or PURCHASE
    if tx_type not in CREDIT_TYPES:
        raise HTTPException(status_code=400, detail="Invalid transaction type")
    try:
        tx = await add_coins(session, user.id, payload.amount, tx_type, payload.description)
    except WalletFrozen as e:
        await session.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    await session.commit()
    return tx

@router.post("/purchase/checkout", response_model=CreatePurchaseResponse)
async def create_purchase_checkout(payload: CreatePurchaseRequest, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    if not settings.stripe_secret_key:
        raise HTTPException(status_code=500, detail="Stripe not configured")

    day_ago = datetime.now(dt_tz.utc) - timedelta(days=1)
    bought_today = await purchased_coins_since(session, user.id, day_ago)
    if bought_today + payload.coins > settings.max_purchase_coins_day:
        raise HTTPException(status_code=400, detail="Daily purchase limit exceeded")

    usd_cents = payload.coins * max(1, settings.coin_price_usd_cents)
    stripe.api_key = settings.stripe_secret_key

    checkout = stripe.checkout.Session.create(
        mode="payment",
        client_reference_id=str(user.id),  # read back by the webhook
        line_items=[{
            "price_data": {
                "currency": "usd",
                "product_data": {"name": f"{settings.app_display_name} Coins"},
                "unit_amount": int(usd_cents),
            },
            "quantity": 1,
        }],
        payment_intent_data={
            "metadata": {
                "user_id": str(user.id),
                "coins_requested": str(payload.coins),
            }
        },
        success_url=str(payload.success_url) + "?session_id={CHECKOUT_SESSION_ID}",
        cancel_url=str(payload.cancel_url),
    )
    log.info("purchase_checkout_created", user_id=str(user.id), coins=payload.coins, session_id=checkout["id"])
    return CreatePurchaseResponse(checkout_url=checkout["url"], session_id=checkout["id"])
