from __future__ import annotations
from typing import Any, Iterable
from uuid import UUID
import httpx
import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from economy.config import settings
from economy.models.push_token import PushToken
from economy.models.user import utcnow

log = structlog.get_logger(__name__)

CHUNK_SIZE = 100
DEAD_TOKEN_ERRORS = {"DeviceNotRegistered", "InvalidCredentials"}


async def register_token(
    session: AsyncSession,
    user_id: UUID,
    token: str,
    platform: str | None = None,
    device_id: str | None = None,
    device_name: str | None = None,
) -> PushToken:
    """Attach the device token to user_id, reactivating it if it was seen before (possibly for another user)."""
    existing = await session.scalar(select(PushToken).where(PushToken.token == token))
    if existing:
        existing.user_id = user_id
        existing.is_active = True
        existing.last_used_at = utcnow()
        existing.platform = platform or existing.platform
        existing.device_id = device_id or existing.device_id
        existing.device_name = device_name or existing.device_name
        await session.flush()
        return existing

    pt = PushToken(user_id=user_id, token=token, platform=platform, device_id=device_id, device_name=device_name)
    session.add(pt)
    await session.flush()
    log.info("push_token_registered", user_id=str(user_id), platform=platform)
    return pt


async def unregister_token(session: AsyncSession, user_id: UUID, token: str) -> bool:
    res = await session.execute(
        update(PushToken)
        .where(PushToken.token == token, PushToken.user_id == user_id)
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    return (res.rowcount or 0) > 0


async def active_tokens(session: AsyncSession, user_id: UUID) -> list[str]:
    return list((await session.execute(
        select(PushToken.token).where(PushToken.user_id == user_id, PushToken.is_active.is_(True))
    )).scalars())


def _chunks(items: list, size: int) -> Iterable[list]:
    for i in range(0, len(items), size):
        yield items[i:i + size]


async def send_to_expo(client: httpx.AsyncClient, messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    POST messages to Expo in chunks of 100. Returns one ticket per message that Expo answered for.
    A failed chunk is logged and contributes no tickets.
    """
    tickets: list[dict[str, Any]] = []
    for chunk in _chunks(messages, CHUNK_SIZE):
        try:
            r = await client.post(
                settings.expo_push_url,
                json=chunk,
                headers={"Accept": "application/json", "Accept-Encoding": "gzip, deflate"},
            )
            r.raise_for_status()
            tickets.extend(r.json().get("data") or [])
        except (httpx.HTTPError, ValueError) as e:
            log.error("push_send_failed", error=str(e), batch=len(chunk))
    return tickets


async def _deactivate_dead_tokens(session: AsyncSession, tickets: list[dict[str, Any]], tokens: list[str]) -> int:
    dead = [
        token for ticket, token in zip(tickets, tokens)
        if ticket.get("status") == "error" and (ticket.get("details") or {}).get("error") in DEAD_TOKEN_ERRORS
    ]
    for ticket, token in zip(tickets, tokens):
        if ticket.get("status") == "error":
            log.warning("push_ticket_error", token=token, error=ticket.get("message"))
    if dead:
        await session.execute(
            update(PushToken).where(PushToken.token.in_(dead)).values(is_active=False)
            .execution_options(synchronize_session=False)
        )
    return len(dead)


async def send_to_user(
    session: AsyncSession,
    user_id: UUID,
    title: str,
    body: str,
    data: dict[str, Any] | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[dict[str, Any]]:
    """Push one notification to every active device of user_id. Commits token deactivations itself."""
    if not settings.push_notifications_enabled:
        return []
    tokens = await active_tokens(session, user_id)
    if not tokens:
        return []

    messages = [
        {"to": t, "title": title, "body": body, "data": data or {}, "sound": "default", "priority": "high"}
        for t in tokens
    ]
    if client is None:
        async with httpx.AsyncClient(timeout=settings.expo_push_timeout_seconds) as c:
            tickets = await send_to_expo(c, messages)
    else:
        tickets = await send_to_expo(client, messages)

    if await _deactivate_dead_tokens(session, tickets, tokens):
        await session.commit()
    return tickets


async def notify_gift_received(
    session_factory: async_sessionmaker,
    recipient_id: UUID,
    sender_name: str,
    quantity: int,
    gift_id: UUID,
) -> None:
    """Background task run after a gift commits. Never raises into the request."""
    try:
        async with session_factory() as session:
            await send_to_user(
                session,
                recipient_id,
                title="Gift Received!",
                body=f"{sender_name} sent you {quantity} gift(s)",
                data={"type": "gift_received", "transactionId": str(gift_id)},
            )
    except Exception:
        log.exception("gift_notification_failed", recipient_id=str(recipient_id), gift_id=str(gift_id))
