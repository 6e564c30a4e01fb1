from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


Role = Literal["superadmin", "admin", "member", "viewer"]


class UserCreate(BaseModel):
    username: str = Field(min_length=3, max_length=64)
    full_name: str | None = None
    email: str | None = None
    role: Role = "viewer"


class UserUpdate(BaseModel):
    username: str | None = Field(default=None, min_length=3, max_length=64)
    full_name: str | None = None
    email: str | None = None
    role: Role | None = None


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    full_name: str | None
    email: str | None
    role: Role
    created_at: datetime


class MeRead(BaseModel):
    user_id: int
    username: str
    role: Role
    permissions: list[str]
