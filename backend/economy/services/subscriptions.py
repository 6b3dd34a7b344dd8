from __future__ import annotations
import uuid
from datetime import datetime
from uuid import UUID
import structlog
from dateutil.relativedelta import relativedelta
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from economy.models.subscription import SubscriptionTier, Subscription, ACTIVE
from economy.models.user import utcnow
from economy.models.wallet import SUBSCRIPTION_PAYMENT, GIFT_RECEIVED
from economy.services.gifts import ensure_counterparty
from economy.services.ledger import add_coins, deduct_coins
from economy.services.wallet import ExchangeError

log = structlog.get_logger(__name__)

SUBSCRIPTION_REFERENCE = "subscription"


class TierNotFound(ExchangeError):
    detail = "Invalid subscription tier"


class AlreadySubscribed(ExchangeError):
    status_code = 409
    detail = "Already subscribed to this creator"


def one_month_after(start: datetime) -> datetime:
    """Same day next month, clamped to the month's last day (Jan 31 -> Feb 28/29)."""
    return start + relativedelta(months=1)


async def create_subscription_tier(
    session: AsyncSession,
    creator_id: UUID,
    name: str,
    monthly_price_coins: int,
    description: str | None = None,
    benefits: list[str] | None = None,
) -> SubscriptionTier:
    if monthly_price_coins <= 0:
        raise ValueError("monthly_price_coins must be > 0")
    tier = SubscriptionTier(
        creator_id=creator_id,
        name=name,
        monthly_price_coins=monthly_price_coins,
        description=description,
        benefits=list(benefits or []),
    )
    session.add(tier)
    await session.flush()
    return tier


async def get_creator_subscription_tiers(session: AsyncSession, creator_id: UUID) -> list[SubscriptionTier]:
    return (await session.execute(
        select(SubscriptionTier)
        .where(SubscriptionTier.creator_id == creator_id, SubscriptionTier.is_active.is_(True))
        .order_by(SubscriptionTier.sort_order, SubscriptionTier.created_at)
    )).scalars().all()


async def subscribe(session: AsyncSession, subscriber_id: UUID, creator_id: UUID, tier_id: UUID) -> Subscription:
    """
    Charge one month of the tier to the subscriber and credit the creator.
    A lapsed (non-ACTIVE) subscription to the same creator is reactivated in place.
    """
    tier = await session.get(SubscriptionTier, tier_id)
    if not tier or not tier.is_active or tier.creator_id != creator_id:
        raise TierNotFound()
    await ensure_counterparty(session, subscriber_id, creator_id)

    existing = await session.scalar(
        select(Subscription).where(
            Subscription.subscriber_id == subscriber_id,
            Subscription.creator_id == creator_id,
        )
    )
    if existing and existing.status == ACTIVE:
        raise AlreadySubscribed()

    price = int(tier.monthly_price_coins)
    # id is assigned up front so both ledger lines can reference it
    sub = existing or Subscription(id=uuid.uuid4(), subscriber_id=subscriber_id, creator_id=creator_id)

    await deduct_coins(
        session, subscriber_id, price, SUBSCRIPTION_PAYMENT,
        description=f"Subscription to {tier.name}",
        reference_id=sub.id, reference_type=SUBSCRIPTION_REFERENCE,
    )
    await add_coins(
        session, creator_id, price, GIFT_RECEIVED,
        description="Subscription payment",
        reference_id=sub.id, reference_type=SUBSCRIPTION_REFERENCE,
    )

    now = utcnow()
    sub.tier_id = tier.id
    sub.status = ACTIVE
    sub.is_yearly = False
    sub.current_period_start = now
    sub.current_period_end = one_month_after(now)
    sub.cancelled_at = None
    sub.updated_at = now
    session.add(sub)

    await session.execute(
        update(SubscriptionTier)
        .where(SubscriptionTier.id == tier.id)
        .values(subscriber_count=SubscriptionTier.subscriber_count + 1)
        .execution_options(synchronize_session=False)
    )
    await session.flush()
    log.info("subscription_created", subscription_id=str(sub.id), subscriber_id=str(subscriber_id),
             creator_id=str(creator_id), tier_id=str(tier.id), price=price)
    return sub


async def is_subscribed(session: AsyncSession, subscriber_id: UUID, creator_id: UUID) -> bool:
    found = await session.scalar(
        select(Subscription.id).where(
            Subscription.subscriber_id == subscriber_id,
            Subscription.creator_id == creator_id,
            Subscription.status == ACTIVE,
        ).limit(1)
    )
    return found is not None
