from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel


class MonthlyProfit(BaseModel):
    value: int
    total: int
    change: int


class ActiveProjects(BaseModel):
    total: int
    urgent: int


class PendingQuotes(BaseModel):
    total: int
    value: Decimal


class TeamAvailability(BaseModel):
    available: int
    total: int


class RevenueSplit(BaseModel):
    title: str
    value: int
    percentage: int
    estimated: bool


class DashboardRead(BaseModel):
    month_label: str
    monthly_profit: MonthlyProfit
    active_projects: ActiveProjects
    pending_quotes: PendingQuotes
    personnel: TeamAvailability
    revenue: list[RevenueSplit]
