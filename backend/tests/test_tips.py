import uuid
import pytest

from conftest import make_user
from economy.models.wallet import GIFT_SENT, GIFT_RECEIVED
from economy.services.gifts import SelfExchange, RecipientNotFound
from economy.services.tips import send_tip
from economy.services.wallet import InsufficientFunds, get_wallet


@pytest.mark.asyncio
async def test_tip_moves_coins_and_links_both_lines(session):
    fan = await make_user(session, coins=25)
    creator = await make_user(session)

    tip = await send_tip(session, fan.id, creator.id, 10, context_type="story", context_id="s1")
    await session.commit()

    assert (await get_wallet(session, fan.id)).coin_balance == 15
    assert (await get_wallet(session, creator.id)).coin_balance == 10
    assert (tip["debit"].type, tip["debit"].amount) == (GIFT_SENT, -10)
    assert (tip["credit"].type, tip["credit"].amount) == (GIFT_RECEIVED, 10)
    assert tip["debit"].reference_id == tip["credit"].reference_id == str(tip["id"])
    assert tip["debit"].description == "Tip on story"


@pytest.mark.asyncio
async def test_tip_failures_move_nothing(session):
    fan = await make_user(session, coins=5)
    creator = await make_user(session)

    with pytest.raises(InsufficientFunds):
        await send_tip(session, fan.id, creator.id, 6)
    with pytest.raises(SelfExchange):
        await send_tip(session, fan.id, fan.id, 1)
    with pytest.raises(RecipientNotFound):
        await send_tip(session, fan.id, uuid.uuid4(), 1)
    with pytest.raises(ValueError):
        await send_tip(session, fan.id, creator.id, 0)

    assert (await get_wallet(session, fan.id)).coin_balance == 5
    assert await get_wallet(session, creator.id) is None
