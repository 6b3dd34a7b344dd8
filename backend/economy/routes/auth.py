from __future__ import annotations
import jwt
from fastapi import APIRouter, Depends, HTTPException, Header
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from economy.db import get_session
from economy.auth_deps import get_current_user
from economy.models.user import User
from economy.schemas.auth import RegisterRequest, LoginRequest, UserPublic, TokenPair
from economy.security import hash_password, verify_password, issue_token, decode_token, ACCESS, REFRESH

router = APIRouter(prefix="/auth", tags=["auth"])

def _public(user: User) -> UserPublic:
    return UserPublic(
        id=user.id, email=user.email, username=user.username,
        display_name=user.display_name, created_at=user.created_at,
    )

@router.post("/register", status_code=201, response_model=UserPublic)
async def register(payload: RegisterRequest, session: AsyncSession = Depends(get_session)):
    if await session.scalar(select(User).where(User.email == payload.email)):
        raise HTTPException(status_code=409, detail="Email already registered")
    if await session.scalar(select(User).where(User.username == payload.username)):
        raise HTTPException(status_code=409, detail="Username already taken")
    user = User(
        email=payload.email,
        username=payload.username,
        display_name=payload.display_name,
        password_hash=hash_password(payload.password),
    )
    session.add(user)
    await session.commit()
    return _public(user)

@router.post("/login", response_model=TokenPair)
async def login(payload: LoginRequest, session: AsyncSession = Depends(get_session)):
    user = await session.scalar(select(User).where(User.email == payload.email))
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return TokenPair(access=issue_token(str(user.id), ACCESS), refresh=issue_token(str(user.id), REFRESH))

@router.post("/refresh", response_model=TokenPair)
async def refresh(authorization: str | None = Header(None)):
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing refresh token")
    try:
        data = decode_token(authorization.split(" ", 1)[1], REFRESH)
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")
    sub = data.get("sub")
    return TokenPair(access=issue_token(sub, ACCESS), refresh=issue_token(sub, REFRESH))

@router.get("/me", response_model=UserPublic)
async def me(user: User = Depends(get_current_user)):
    return _public(user)
