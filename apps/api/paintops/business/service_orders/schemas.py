from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


ServiceOrderStatus = Literal["pending", "in_progress", "completed"]


class ServiceOrderCreate(BaseModel):
    project_id: int
    order_number: str | None = Field(default=None, min_length=1, max_length=32)
    description: str = Field(min_length=5)
    instructions: str | None = None


class ServiceOrderUpdate(BaseModel):
    description: str | None = Field(default=None, min_length=5)
    instructions: str | None = None


class ServiceOrderSignature(BaseModel):
    signature: str | None = None


class ServiceOrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    order_number: str
    description: str
    instructions: str | None
    start_signature: str | None
    end_signature: str | None
    created_at: datetime
    started_at: datetime | None
    completed_at: datetime | None
    created_by: int | None
    status: ServiceOrderStatus
