from __future__ import annotations
from uuid import UUID
import stripe
import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from economy.config import settings
from economy.db import get_session
from economy.models.user import User
from economy.services.ledger import credit_purchase_idempotent
from economy.services.wallet import WalletFrozen

log = structlog.get_logger(__name__)

router = APIRouter(tags=["stripe"])

@router.post("/stripe/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
    db: AsyncSession = Depends(get_session),
):
    if not settings.stripe_webhook_secret or not settings.stripe_secret_key:
        raise HTTPException(status_code=500, detail="Stripe not configured")

    payload = await request.body()
    try:
        event = stripe.Webhook.construct_event(
            payload=payload.decode("utf-8"),
            sig_header=stripe_signature or "",
            secret=settings.stripe_webhook_secret,
        )
    except (ValueError, stripe.SignatureVerificationError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid webhook: {e}")

    # Both paths key on the payment_intent id, so a payment seen twice is credited once.
    if event["type"] == "checkout.session.completed":
        sess = event["data"]["object"]
        if sess.get("payment_status") == "paid":
            pi_id = sess.get("payment_intent")
            user_id = sess.get("client_reference_id") or (sess.get("metadata") or {}).get("user_id")
            amount_cents = int(sess.get("amount_total") or 0)
            if pi_id and user_id and amount_cents > 0:
                await _credit(db, user_id, pi_id, amount_cents)
        return {"ok": True}

    if event["type"] == "payment_intent.succeeded":
        pi = event["data"]["object"]
        user_id = (pi.get("metadata") or {}).get("user_id")
        amount_cents = int(pi.get("amount_received") or pi.get("amount") or 0)
        if pi.get("status") == "succeeded" and user_id and amount_cents > 0:
            await _credit(db, user_id, pi["id"], amount_cents)
        return {"ok": True}

    return {"ignored": event["type"]}

async def _credit(db: AsyncSession, user_id: str, payment_intent_id: str, amount_cents: int) -> None:
    # Events that can never be credited are acknowledged with 200 and logged.
    try:
        uid = UUID(str(user_id))
    except ValueError:
        log.warning("purchase_uncreditable", reason="bad_user_id", user_id=user_id, payment_intent=payment_intent_id)
        return
    if not await db.get(User, uid):
        log.warning("purchase_uncreditable", reason="unknown_user", user_id=user_id, payment_intent=payment_intent_id)
        return
    try:
        created = await credit_purchase_idempotent(
            db, user_id=uid, payment_intent_id=payment_intent_id, usd_cents=amount_cents,
        )
    except WalletFrozen:
        await db.rollback()
        log.warning("purchase_uncreditable", reason="wallet_frozen", user_id=user_id, payment_intent=payment_intent_id)
        return
    if created:
        await db.commit()
        log.info("purchase_credited", user_id=user_id, payment_intent=payment_intent_id, usd_cents=amount_cents)
