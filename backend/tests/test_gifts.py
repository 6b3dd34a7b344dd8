import uuid
import pytest
from sqlalchemy import BigInteger, func, select

from conftest import make_user, make_gift_type
from economy.models.gift import GiftTransaction
from economy.models.wallet import CoinTransaction, GIFT_SENT, GIFT_RECEIVED
from economy.services.gifts import (
    send_gift, get_received_gifts, get_gift_types, create_gift_type,
    GiftTypeNotFound, SelfExchange, RecipientNotFound,
)
from economy.services.wallet import InsufficientFunds, get_wallet


async def _balance(session, user_id) -> int:
    w = await get_wallet(session, user_id)
    return w.coin_balance if w else 0


@pytest.mark.asyncio
async def test_send_gift_moves_exact_cost(session):
    sender = await make_user(session, coins=100)
    recipient = await make_user(session, coins=5)
    rose = await make_gift_type(session, coin_cost=20)

    gift = await send_gift(session, sender.id, recipient.id, rose.id, quantity=2, context_type="post", context_id="p1", message="hi")
    await session.commit()

    assert gift.total_coins == 40
    assert gift.quantity == 2
    assert (gift.context_type, gift.context_id, gift.message) == ("post", "p1", "hi")
    assert await _balance(session, sender.id) == 60
    assert await _balance(session, recipient.id) == 45

    lines = (await session.execute(
        select(CoinTransaction).where(CoinTransaction.reference_id == str(gift.id))
    )).scalars().all()
    assert sorted((t.type, t.amount) for t in lines) == [(GIFT_RECEIVED, 40), (GIFT_SENT, -40)]
    assert {t.reference_type for t in lines} == {"gift"}


@pytest.mark.asyncio
async def test_send_gift_insufficient_leaves_everything_untouched(session):
    sender = await make_user(session, coins=30)
    recipient = await make_user(session)
    rose = await make_gift_type(session, coin_cost=20)

    sender_id, recipient_id = sender.id, recipient.id  # rollback expires the instances

    with pytest.raises(InsufficientFunds):
        await send_gift(session, sender_id, recipient_id, rose.id, quantity=2)
    await session.rollback()

    assert await _balance(session, sender_id) == 30
    assert await _balance(session, recipient_id) == 0
    assert await session.scalar(select(func.count()).select_from(GiftTransaction)) == 0


@pytest.mark.asyncio
async def test_send_gift_rejects_bad_references(session):
    sender = await make_user(session, coins=100)
    recipient = await make_user(session)
    retired = await make_gift_type(session, coin_cost=10, name="Old", is_active=False)

    with pytest.raises(GiftTypeNotFound):
        await send_gift(session, sender.id, recipient.id, uuid.uuid4())
    with pytest.raises(GiftTypeNotFound):
        await send_gift(session, sender.id, recipient.id, retired.id)

    rose = await make_gift_type(session, coin_cost=10)
    with pytest.raises(SelfExchange):
        await send_gift(session, sender.id, sender.id, rose.id)
    with pytest.raises(RecipientNotFound):
        await send_gift(session, sender.id, uuid.uuid4(), rose.id)
    assert await _balance(session, sender.id) == 100


@pytest.mark.asyncio
async def test_received_gifts_view(session):
    alice = await make_user(session, username="alice_g", coins=100)
    bob = await make_user(session, username="bob_g", coins=100)
    carol = await make_user(session)
    rose = await make_gift_type(session, coin_cost=5, name="Rose")
    star = await make_gift_type(session, coin_cost=7, name="Star")

    first = await send_gift(session, alice.id, carol.id, rose.id)
    second = await send_gift(session, bob.id, carol.id, star.id, quantity=3)
    await send_gift(session, carol.id, alice.id, rose.id)  # not received by carol
    await session.commit()

    rows = await get_received_gifts(session, carol.id)
    assert [r["gift"].id for r in rows] == [second.id, first.id]
    assert rows[0]["sender"].username == "bob_g"
    assert rows[0]["gift_type"].name == "Star"
    assert rows[1]["sender"].username == "alice_g"

    assert len(await get_received_gifts(session, carol.id, limit=1)) == 1
    assert await get_received_gifts(session, bob.id) == []


@pytest.mark.asyncio
async def test_gift_catalog_filters_and_orders(session):
    await make_gift_type(session, name="Heart", category="love", sort_order=2)
    await make_gift_type(session, name="Rose", category="love", sort_order=1)
    await make_gift_type(session, name="Cake", category="party", sort_order=0)
    await make_gift_type(session, name="Gone", category="love", is_active=False)

    assert [g.name for g in await get_gift_types(session)] == ["Cake", "Rose", "Heart"]
    assert [g.name for g in await get_gift_types(session, "love")] == ["Rose", "Heart"]


@pytest.mark.asyncio
async def test_create_gift_type_requires_positive_cost(session):
    with pytest.raises(ValueError):
        await create_gift_type(session, name="Free", icon_url="https://cdn.example.com/free.png", coin_cost=0)
    gt = await create_gift_type(session, name="Crown", icon_url="https://cdn.example.com/crown.png", coin_cost=500, category="vip")
    await session.commit()
    assert gt.id is not None and gt.is_active


@pytest.mark.asyncio
async def test_gift_total_beyond_32_bits(session):
    assert isinstance(GiftTransaction.__table__.c.total_coins.type, BigInteger)

    whale = await make_user(session, coins=5_000_000_000)
    creator = await make_user(session)
    crown = await make_gift_type(session, coin_cost=5_000_000, name="Crown")

    gift = await send_gift(session, whale.id, creator.id, crown.id, quantity=1000)
    await session.commit()

    assert gift.total_coins == 5_000_000_000
    assert await _balance(session, whale.id) == 0
    assert await _balance(session, creator.id) == 5_000_000_000
