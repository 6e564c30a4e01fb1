from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from paintops.business.clients.schemas import ClientRead
from paintops.business.personnel.schemas import AssignmentRead
from paintops.business.projects.status import ProjectStatus
from paintops.business.quotes.schemas import QuoteRead
from paintops.business.service_orders.schemas import ServiceOrderRead


Priority = Literal["normal", "high", "urgent"]
ImageType = Literal["before", "after"]


class ProjectCreate(BaseModel):
    title: str = Field(min_length=3)
    description: str | None = Field(default=None, min_length=5)
    client_id: int
    status: ProjectStatus = ProjectStatus.PENDING_VISIT
    priority: Priority = "normal"
    address: str | None = None
    visit_date: date | None = None
    start_date: date | None = None
    end_date: date | None = None
    value: Decimal | None = Field(default=None, ge=0)
    notes: str | None = None


class ProjectUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=3)
    description: str | None = Field(default=None, min_length=5)
    status: ProjectStatus | None = None
    priority: Priority | None = None
    address: str | None = None
    visit_date: date | None = None
    start_date: date | None = None
    end_date: date | None = None
    value: Decimal | None = Field(default=None, ge=0)
    notes: str | None = None


class ProjectStatusUpdate(BaseModel):
    status: ProjectStatus


class ProjectRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str | None
    client_id: int
    client_name: str | None = None
    status: ProjectStatus
    priority: Priority
    address: str | None
    visit_date: date | None
    start_date: date | None
    end_date: date | None
    value: Decimal | None
    notes: str | None
    created_at: datetime
    created_by: int | None


class ProjectImageCreate(BaseModel):
    image_url: str = Field(min_length=1)
    type: ImageType = "before"
    caption: str | None = None


class ProjectImageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    image_url: str
    type: ImageType
    caption: str | None
    uploaded_at: datetime
    uploaded_by: int | None


class ProjectDetailRead(ProjectRead):
    client: ClientRead
    quotes: list[QuoteRead] = []
    service_orders: list[ServiceOrderRead] = []
    images: list[ProjectImageRead] = []
    assignments: list[AssignmentRead] = []


class BoardColumn(BaseModel):
    status: ProjectStatus
    label: str
    projects: list[ProjectRead]
