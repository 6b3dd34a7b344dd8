from __future__ import annotations
import os
from datetime import datetime, timedelta, timezone
from typing import Any
import jwt
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
JWT_ALG = "HS256"
ACCESS_TTL_MIN = int(os.getenv("ACCESS_TTL_MIN", "15"))
REFRESH_TTL_MIN = int(os.getenv("REFRESH_TTL_MIN", "10080"))  # 7d

ACCESS = "access"
REFRESH = "refresh"

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)

def issue_token(user_id: str, token_type: str = ACCESS) -> str:
    ttl_min = ACCESS_TTL_MIN if token_type == ACCESS else REFRESH_TTL_MIN
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "type": token_type,
        "iat": now.timestamp(),  # float keeps refreshed tokens distinct
        "exp": int((now + timedelta(minutes=ttl_min)).timestamp()),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALG)

def decode_token(token: str, expected_type: str) -> dict[str, Any]:
    """Decode and check the token type. Raises jwt.InvalidTokenError on any mismatch."""
    data = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
    if data.get("type") != expected_type:
        raise jwt.InvalidTokenError(f"expected {expected_type} token")
    return data
