from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


PersonnelType = Literal["employee", "subcontractor"]


class PersonnelCreate(BaseModel):
    name: str = Field(min_length=2)
    type: PersonnelType
    position: str = Field(min_length=2)
    phone: str = Field(min_length=10)
    email: str | None = None
    address: str | None = None
    rate: Decimal | None = Field(default=None, ge=0)
    tax_id: str | None = None
    notes: str | None = None
    is_active: bool = True


class PersonnelUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2)
    type: PersonnelType | None = None
    position: str | None = Field(default=None, min_length=2)
    phone: str | None = Field(default=None, min_length=10)
    email: str | None = None
    address: str | None = None
    rate: Decimal | None = Field(default=None, ge=0)
    tax_id: str | None = None
    notes: str | None = None
    is_active: bool | None = None


class PersonnelRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: PersonnelType
    position: str
    phone: str
    email: str | None
    address: str | None
    rate: Decimal | None
    tax_id: str | None
    notes: str | None
    is_active: bool
    created_at: datetime


class AssignmentCreate(BaseModel):
    personnel_id: int
    start_date: date | None = None
    end_date: date | None = None
    notes: str | None = None


class AssignmentEnd(BaseModel):
    end_date: date | None = None


class AssignmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    personnel_id: int
    start_date: date
    end_date: date | None
    notes: str | None
    created_at: datetime
    personnel: PersonnelRead


class AvailabilityRead(BaseModel):
    available: int
    total: int
