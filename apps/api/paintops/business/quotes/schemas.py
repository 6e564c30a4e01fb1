from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


# Bounds mirror the Numeric(12, 2) money columns and the Numeric(6, 2) margin column.
class QuoteCostInput(BaseModel):
    materials_cost: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    labor_cost: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    additional_costs: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    margin: Decimal = Field(default=Decimal("0"), ge=0, max_digits=6, decimal_places=2)


class QuoteCreate(QuoteCostInput):
    project_id: int
    quote_number: str | None = Field(default=None, min_length=1, max_length=32)
    notes: str | None = None
    language: str = Field(default="en", min_length=2, max_length=8)


class QuotePreview(BaseModel):
    subtotal: Decimal
    margin_amount: Decimal
    total: Decimal


class QuoteRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    quote_number: str
    materials_cost: Decimal
    labor_cost: Decimal
    additional_costs: Decimal
    margin: Decimal
    total_amount: Decimal
    notes: str | None
    is_approved: bool
    approval_date: datetime | None
    language: str
    created_at: datetime
    sent_at: datetime | None
    created_by: int | None
