from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict


ActivityType = Literal["contract", "completed", "warning", "info"]
RelatedType = Literal["client", "project", "quote", "service_order", "personnel", "user"]


class ActivityRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str | None
    type: ActivityType
    related_id: int | None
    related_type: RelatedType | None
    created_by: int | None
    created_by_username: str | None = None
    created_at: datetime
