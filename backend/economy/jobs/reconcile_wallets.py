from __future__ import annotations
import asyncio
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker
from economy.db import SessionLocal
from economy.models.wallet import Wallet
from economy.services.ledger import audit_wallet

log = structlog.get_logger(__name__)

async def _run(session_factory: async_sessionmaker = SessionLocal) -> dict:
    """Audit every wallet; log each one whose balance disagrees with its ledger. Read only."""
    drifted: list[dict] = []
    checked = 0
    async with session_factory() as session:
        user_ids = (await session.execute(select(Wallet.user_id).order_by(Wallet.created_at))).scalars().all()
        for user_id in user_ids:
            audit = await audit_wallet(session, user_id)
            checked += 1
            if audit["drift"] != 0:
                log.warning("wallet_drift", **{k: (str(v) if k == "user_id" else v) for k, v in audit.items()})
                drifted.append(audit)
    log.info("reconcile_done", checked=checked, drifted=len(drifted))
    return {"checked": checked, "drifted": drifted}

def reconcile_wallets() -> dict:
    # RQ entry point (sync); run the async coroutine
    return asyncio.run(_run())
