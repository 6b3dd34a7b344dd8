from __future__ import annotations
from pydantic import Field
from uuid import UUID
from economy.schemas.base import CamelModel

class RegisterPushTokenRequest(CamelModel):
    token: str = Field(min_length=1, max_length=255)
    platform: str | None = Field(default=None, max_length=16)
    device_id: str | None = Field(default=None, max_length=128)
    device_name: str | None = Field(default=None, max_length=128)

class PushTokenPublic(CamelModel):
    id: UUID
    token: str
    platform: str | None = None
    is_active: bool
