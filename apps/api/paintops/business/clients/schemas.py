from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


ClientType = Literal["residential", "commercial", "industrial"]


class ClientCreate(BaseModel):
    name: str = Field(min_length=2)
    type: ClientType
    email: str | None = None
    phone: str | None = Field(default=None, min_length=10)
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    is_prospect: bool = True
    notes: str | None = None
    last_contact_date: date | None = None
    next_follow_up: date | None = None


class ClientUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2)
    type: ClientType | None = None
    email: str | None = None
    phone: str | None = Field(default=None, min_length=10)
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    is_prospect: bool | None = None
    notes: str | None = None
    last_contact_date: date | None = None
    next_follow_up: date | None = None


class FollowUpRecord(BaseModel):
    notes: str | None = None
    next_follow_up: date | None = None


class ClientRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: ClientType
    email: str | None
    phone: str | None
    address: str | None
    city: str | None
    state: str | None
    zip: str | None
    is_prospect: bool
    notes: str | None
    last_contact_date: date | None
    next_follow_up: date | None
    created_at: datetime
    created_by: int | None


class ClientProjectSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    status: str
    priority: str
    value: Decimal | None
    created_at: datetime


class ClientDetailRead(ClientRead):
    projects: list[ClientProjectSummary] = []
