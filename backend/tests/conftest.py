import os
import tempfile
import uuid

# Settings are read at import time: point them at throwaway resources first.
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{tempfile.gettempdir()}/economy-tests-{uuid.uuid4().hex}.db")
os.environ["PUSH_NOTIFICATIONS_ENABLED"] = "0"

import httpx
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from economy.db import Base, get_session
from economy.main import app
from economy.models.user import User
from economy.models.gift import GiftType
from economy.services.ledger import add_coins
from economy.models.wallet import ADMIN_CREDIT


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'economy.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as s:
        yield s


@pytest_asyncio.fixture
async def client(session_maker):
    async def _get_session():
        async with session_maker() as s:
            yield s

    app.dependency_overrides[get_session] = _get_session
    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------- seed helpers ----------

async def make_user(session, *, username: str | None = None, coins: int = 0, is_admin: bool = False) -> User:
    name = username or f"u_{uuid.uuid4().hex[:8]}"
    user = User(email=f"{name}@example.com", username=name, password_hash="x", is_admin=is_admin)
    session.add(user)
    await session.flush()
    if coins:
        await add_coins(session, user.id, coins, ADMIN_CREDIT, "seed")
    await session.commit()
    return user


async def make_gift_type(session, *, coin_cost: int = 20, name: str = "Rose", category: str | None = "love",
                         is_active: bool = True, sort_order: int = 0) -> GiftType:
    gt = GiftType(name=name, icon_url=f"https://cdn.example.com/{name}.png", coin_cost=coin_cost,
                  category=category, is_active=is_active, sort_order=sort_order)
    session.add(gt)
    await session.commit()
    return gt


async def register(ac: AsyncClient, *, display_name: str | None = None) -> tuple[dict, str]:
    """Register + login through the API. Returns (auth headers, user id)."""
    uname = f"user_{uuid.uuid4().hex[:8]}"
    email = f"{uname}@example.com"
    body = {"email": email, "username": uname, "password": "supersecret"}
    if display_name:
        body["display_name"] = display_name
    r = await ac.post("/auth/register", json=body)
    assert r.status_code == 201, r.text
    user_id = r.json()["id"]
    tokens = (await ac.post("/auth/login", json={"email": email, "password": "supersecret"})).json()
    return {"Authorization": f"Bearer {tokens['access']}"}, user_id
