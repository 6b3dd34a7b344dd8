from __future__ import annotations
import structlog
from fastapi import APIRouter, Depends, HTTPException
from redis import Redis
from redis.exceptions import RedisError
from rq import Queue

from economy.config import settings
from economy.auth_deps import require_admin
from economy.jobs.reconcile_wallets import reconcile_wallets

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

# RQ queue (lazy single instance)
_redis = Redis.from_url(settings.redis_url)
q = Queue("default", connection=_redis)

@router.post("/wallets/reconcile", status_code=202)
async def enqueue_reconcile(admin=Depends(require_admin)):
    """Queue a full ledger-vs-balance audit of every wallet."""
    try:
        job = q.enqueue(reconcile_wallets, job_timeout=600)
    except RedisError as e:
        log.error("reconcile_enqueue_failed", error=str(e))
        raise HTTPException(status_code=503, detail="Job queue unavailable")
    log.info("reconcile_enqueued", job_id=job.id, admin_id=str(admin.id))
    return {"job_id": job.id}
