import uuid
import pytest
from sqlalchemy import func, select, update

from conftest import register
from economy.models.gift import GiftTransaction
from economy.models.subscription import Subscription
from economy.models.user import User
from economy.models.wallet import CoinTransaction
from economy.services.wallet import get_or_create_wallet
import economy.routes.admin as admin_routes


async def _fund(client, headers, amount):
    r = await client.post("/api/wallet/add-coins", json={"amount": amount}, headers=headers)
    assert r.status_code == 200, r.text


async def _make_admin(session, user_id):
    await session.execute(update(User).where(User.id == uuid.UUID(user_id)).values(is_admin=True))
    await session.commit()


async def _gift_type(client, session, coin_cost=20, name="Rose", category="love"):
    headers, admin_id = await register(client)
    await _make_admin(session, admin_id)
    r = await client.post("/api/gifts/types", headers=headers, json={
        "name": name, "iconUrl": f"https://cdn.example.com/{name}.png", "coinCost": coin_cost, "category": category,
    })
    assert r.status_code == 201, r.text
    return r.json()


@pytest.mark.asyncio
async def test_gift_catalog_admin_only(client, session):
    headers, _ = await register(client)
    r = await client.post("/api/gifts/types", headers=headers, json={"name": "X", "iconUrl": "https://x", "coinCost": 1})
    assert r.status_code == 403

    rose = await _gift_type(client, session)
    assert rose["coinCost"] == 20 and rose["isActive"] is True
    await _gift_type(client, session, name="Cake", category="party")

    names = [g["name"] for g in (await client.get("/api/gifts/types")).json()]
    assert sorted(names) == ["Cake", "Rose"]
    assert [g["name"] for g in (await client.get("/api/gifts/types?category=party")).json()] == ["Cake"]


@pytest.mark.asyncio
async def test_send_gift_flow(client, session):
    rose = await _gift_type(client, session)
    sender_h, sender_id = await register(client, display_name="Alice")
    recipient_h, recipient_id = await register(client)
    await _fund(client, sender_h, 100)

    r = await client.post("/api/gifts/send", headers=sender_h, json={
        "recipientId": recipient_id, "giftTypeId": rose["id"], "quantity": 2, "contextType": "live", "contextId": "l1",
    })
    assert r.status_code == 200, r.text
    gift = r.json()
    assert (gift["senderId"], gift["recipientId"], gift["totalCoins"]) == (sender_id, recipient_id, 40)

    assert (await client.get("/api/wallet", headers=sender_h)).json()["coinBalance"] == 60
    assert (await client.get("/api/wallet", headers=recipient_h)).json()["coinBalance"] == 40

    received = (await client.get("/api/gifts/received", headers=recipient_h)).json()
    assert len(received) == 1
    assert received[0]["id"] == gift["id"]
    assert received[0]["sender"]["displayName"] == "Alice"
    assert received[0]["giftType"]["name"] == "Rose"

    history = (await client.get("/api/wallet/transactions", headers=sender_h)).json()
    assert history[0]["referenceId"] == gift["id"]
    assert history[0]["referenceType"] == "gift"


@pytest.mark.asyncio
async def test_send_gift_errors(client, session):
    rose = await _gift_type(client, session, coin_cost=50)
    sender_h, _ = await register(client)
    _, recipient_id = await register(client)
    await _fund(client, sender_h, 60)

    r = await client.post("/api/gifts/send", headers=sender_h, json={"recipientId": recipient_id})
    assert (r.status_code, r.json()["detail"]) == (400, "giftTypeId required")

    r = await client.post("/api/gifts/send", headers=sender_h, json={"recipientId": recipient_id, "giftTypeId": str(uuid.uuid4())})
    assert (r.status_code, r.json()["detail"]) == (400, "Invalid gift type")

    r = await client.post("/api/gifts/send", headers=sender_h, json={"recipientId": recipient_id, "giftTypeId": rose["id"], "quantity": 2})
    assert (r.status_code, r.json()["detail"]) == (400, "Insufficient coins")

    r = await client.post("/api/gifts/send", headers=sender_h, json={"recipientId": recipient_id, "giftTypeId": rose["id"], "quantity": 0})
    assert r.status_code == 422

    assert (await client.get("/api/wallet", headers=sender_h)).json()["coinBalance"] == 60


@pytest.mark.asyncio
async def test_subscription_flow(client):
    creator_h, creator_id = await register(client)
    fan_h, _ = await register(client)
    await _fund(client, fan_h, 50)

    r = await client.post("/api/subscriptions/tiers", headers=creator_h, json={"name": "Gold"})
    assert (r.status_code, r.json()["detail"]) == (400, "Name and price required")
    r = await client.post("/api/subscriptions/tiers", headers=creator_h, json={
        "name": "Gold", "monthlyPriceCoins": 50, "benefits": ["badge", "dm"],
    })
    assert r.status_code == 200, r.text
    tier = r.json()
    assert tier["benefits"] == ["badge", "dm"]

    tiers = (await client.get(f"/api/subscriptions/tiers/{creator_id}")).json()
    assert [t["id"] for t in tiers] == [tier["id"]]

    r = await client.post("/api/subscriptions/subscribe", headers=fan_h, json={"creatorId": creator_id})
    assert (r.status_code, r.json()["detail"]) == (400, "Creator and tier required")

    assert (await client.get(f"/api/subscriptions/check/{creator_id}", headers=fan_h)).json() == {"isSubscribed": False}
    r = await client.post("/api/subscriptions/subscribe", headers=fan_h, json={"creatorId": creator_id, "tierId": tier["id"]})
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "ACTIVE"
    assert (await client.get(f"/api/subscriptions/check/{creator_id}", headers=fan_h)).json() == {"isSubscribed": True}

    assert (await client.get("/api/wallet", headers=fan_h)).json()["coinBalance"] == 0
    assert (await client.get("/api/wallet", headers=creator_h)).json()["coinBalance"] == 50

    r = await client.post("/api/subscriptions/subscribe", headers=fan_h, json={"creatorId": creator_id, "tierId": tier["id"]})
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_tip_flow(client):
    fan_h, fan_id = await register(client)
    creator_h, creator_id = await register(client)
    await _fund(client, fan_h, 10)

    r = await client.post("/api/tips/send", headers=fan_h, json={"recipientId": creator_id, "amount": 4, "contextType": "story"})
    assert r.status_code == 200, r.text
    assert (r.json()["senderId"], r.json()["amount"]) == (fan_id, 4)

    r = await client.post("/api/tips/send", headers=fan_h, json={"recipientId": fan_id, "amount": 1})
    assert r.status_code == 400
    r = await client.post("/api/tips/send", headers=fan_h, json={"recipientId": creator_id, "amount": 7})
    assert (r.status_code, r.json()["detail"]) == (400, "Insufficient coins")

    assert (await client.get("/api/wallet", headers=creator_h)).json()["coinBalance"] == 4


@pytest.mark.asyncio
async def test_push_token_endpoints(client):
    headers, _ = await register(client)
    r = await client.post("/api/push/tokens", headers=headers, json={"token": "expo-token-x", "platform": "android"})
    assert r.status_code == 200, r.text
    assert r.json()["isActive"] is True

    assert (await client.delete("/api/push/tokens/expo-token-x", headers=headers)).status_code == 204
    assert (await client.delete("/api/push/tokens/unknown", headers=headers)).status_code == 404


class _FakeQueue:
    def __init__(self):
        self.jobs = []

    def enqueue(self, func, **kwargs):
        self.jobs.append(func)
        return type("Job", (), {"id": f"job-{len(self.jobs)}"})()


@pytest.mark.asyncio
async def test_admin_reconcile_enqueues_job(client, session, monkeypatch):
    fake = _FakeQueue()
    monkeypatch.setattr(admin_routes, "q", fake)

    headers, user_id = await register(client)
    assert (await client.post("/api/admin/wallets/reconcile", headers=headers)).status_code == 403

    await _make_admin(session, user_id)
    r = await client.post("/api/admin/wallets/reconcile", headers=headers)
    assert r.status_code == 202
    assert r.json() == {"job_id": "job-1"}
    assert fake.jobs == [admin_routes.reconcile_wallets]


async def _freeze(session, user_id):
    wallet = await get_or_create_wallet(session, uuid.UUID(user_id))
    wallet.is_frozen = True
    await session.commit()


async def _count(session, model) -> int:
    return await session.scalar(select(func.count()).select_from(model))


@pytest.mark.asyncio
async def test_gift_to_frozen_wallet_rolls_back_the_debit(client, session):
    rose = await _gift_type(client, session, coin_cost=20)
    sender_h, _ = await register(client)
    _, recipient_id = await register(client)
    await _fund(client, sender_h, 100)
    await _freeze(session, recipient_id)
    lines_before = await _count(session, CoinTransaction)

    r = await client.post("/api/gifts/send", headers=sender_h, json={
        "recipientId": recipient_id, "giftTypeId": rose["id"], "quantity": 2,
    })
    assert (r.status_code, r.json()["detail"]) == (400, "Wallet is frozen")

    assert (await client.get("/api/wallet", headers=sender_h)).json()["coinBalance"] == 100
    assert await _count(session, GiftTransaction) == 0
    assert await _count(session, CoinTransaction) == lines_before


@pytest.mark.asyncio
async def test_subscribe_to_frozen_creator_rolls_back_the_debit(client, session):
    creator_h, creator_id = await register(client)
    fan_h, _ = await register(client)
    await _fund(client, fan_h, 50)
    tier = (await client.post("/api/subscriptions/tiers", headers=creator_h, json={
        "name": "Gold", "monthlyPriceCoins": 50,
    })).json()
    await _freeze(session, creator_id)
    lines_before = await _count(session, CoinTransaction)

    r = await client.post("/api/subscriptions/subscribe", headers=fan_h, json={"creatorId": creator_id, "tierId": tier["id"]})
    assert (r.status_code, r.json()["detail"]) == (400, "Wallet is frozen")

    assert (await client.get("/api/wallet", headers=fan_h)).json()["coinBalance"] == 50
    assert await _count(session, Subscription) == 0
    assert await _count(session, CoinTransaction) == lines_before
    tiers = (await client.get(f"/api/subscriptions/tiers/{creator_id}")).json()
    assert tiers[0]["subscriberCount"] == 0


@pytest.mark.asyncio
async def test_tip_to_frozen_wallet_rolls_back_the_debit(client, session):
    fan_h, _ = await register(client)
    _, creator_id = await register(client)
    await _fund(client, fan_h, 10)
    await _freeze(session, creator_id)
    lines_before = await _count(session, CoinTransaction)

    r = await client.post("/api/tips/send", headers=fan_h, json={"recipientId": creator_id, "amount": 4})
    assert (r.status_code, r.json()["detail"]) == (400, "Wallet is frozen")

    assert (await client.get("/api/wallet", headers=fan_h)).json()["coinBalance"] == 10
    assert await _count(session, CoinTransaction) == lines_before


@pytest.mark.asyncio
async def test_missing_exchange_fields_are_named(client):
    headers, _ = await register(client)
    r = await client.post("/api/gifts/send", headers=headers, json={"giftTypeId": str(uuid.uuid4())})
    assert (r.status_code, r.json()["detail"]) == (400, "recipientId required")
    r = await client.post("/api/tips/send", headers=headers, json={"amount": 1})
    assert (r.status_code, r.json()["detail"]) == (400, "recipientId required")
