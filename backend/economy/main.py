from __future__ import annotations
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from economy.config import settings
from economy.logging_setup import configure_logging
from economy.routes.system import router as system_router
from economy.routes.auth import router as auth_router
from economy.routes.wallet import router as wallet_router
from economy.routes.gifts import router as gifts_router
from economy.routes.subscriptions import router as subscriptions_router
from economy.routes.tips import router as tips_router
from economy.routes.push import router as push_router
from economy.routes.admin import router as admin_router
from economy.routes.stripe_webhooks import router as stripe_router
import structlog

configure_logging()
log = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("startup", env=settings.environment, version=settings.app_version, git_sha=settings.git_sha)
    yield
    log.info("shutdown")

app = FastAPI(
    title=f"{settings.app_display_name} API",
    version=settings.app_version,
    lifespan=lifespan,
    description=f"{settings.app_display_name} API for coins, gifts, tips and creator subscriptions",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "dev" else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(system_router)
app.include_router(auth_router)
app.include_router(wallet_router)
app.include_router(gifts_router)
app.include_router(subscriptions_router)
app.include_router(tips_router)
app.include_router(push_router)
app.include_router(admin_router)
app.include_router(stripe_router)

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    structlog.contextvars.bind_contextvars(request_id=rid, path=request.url.path)
    try:
        response: Response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()
    response.headers["X-Request-ID"] = rid
    return response

@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    log.exception("unhandled_error", method=request.method, path=request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
