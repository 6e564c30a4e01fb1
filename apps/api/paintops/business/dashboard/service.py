from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_FLOOR, Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from paintops.business.dashboard.schemas import (
    ActiveProjects,
    DashboardRead,
    MonthlyProfit,
    PendingQuotes,
    RevenueSplit,
    TeamAvailability,
)
from paintops.business.personnel.service import PersonnelService
from paintops.business.projects.models import Project
from paintops.business.projects.status import ACTIVE_STATUSES
from paintops.business.quotes.models import Quote


# Placeholder cost structure until real cost tracking exists.
PROFIT_SHARE = Decimal("0.43")
MATERIALS_SHARE = Decimal("0.28")
LABOR_SHARE = Decimal("0.29")

URGENT_PRIORITIES = ("high", "urgent")


def _round_whole(value: Decimal) -> int:
    # Halves go up: 2.5 -> 3, -2.5 -> -2.
    return int((value + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))


def month_bounds(day: date) -> tuple[date, date]:
    start = day.replace(day=1)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def previous_month(day: date) -> date:
    start = day.replace(day=1)
    if start.month == 1:
        return start.replace(year=start.year - 1, month=12)
    return start.replace(month=start.month - 1)


def percent_change(current: Decimal, previous: Decimal) -> int:
    if previous == 0:
        return 100
    return _round_whole((current - previous) / previous * 100)


@dataclass(slots=True)
class DashboardService:
    personnel_service: PersonnelService = field(default_factory=PersonnelService)

    def get_dashboard(self, session: Session, *, as_of: date | None = None) -> DashboardRead:
        today = as_of or date.today()
        current_revenue = self._completed_revenue(session, today)
        previous_revenue = self._completed_revenue(session, previous_month(today))
        profit = _round_whole(current_revenue * PROFIT_SHARE)
        total = _round_whole(current_revenue)

        availability = self.personnel_service.get_availability(session)
        return DashboardRead(
            month_label=today.strftime("%B %Y"),
            monthly_profit=MonthlyProfit(
                value=profit,
                total=total,
                change=percent_change(current_revenue, previous_revenue),
            ),
            active_projects=self._active_projects(session),
            pending_quotes=self._pending_quotes(session),
            personnel=TeamAvailability(available=availability.available, total=availability.total),
            revenue=[
                RevenueSplit(title="Total Revenue", value=total, percentage=100, estimated=False),
                RevenueSplit(
                    title="Materials Cost",
                    value=_round_whole(current_revenue * MATERIALS_SHARE),
                    percentage=28,
                    estimated=True,
                ),
                RevenueSplit(
                    title="Labor Cost",
                    value=_round_whole(current_revenue * LABOR_SHARE),
                    percentage=29,
                    estimated=True,
                ),
                RevenueSplit(title="Net Profit", value=profit, percentage=43, estimated=True),
            ],
        )

    @staticmethod
    def _completed_revenue(session: Session, day: date) -> Decimal:
        start, end = month_bounds(day)
        total = session.scalar(
            select(func.coalesce(func.sum(Project.value), 0)).where(
                Project.status == "completed",
                Project.end_date.is_not(None),
                Project.end_date >= start,
                Project.end_date < end,
            )
        )
        return Decimal(str(total or 0))

    @staticmethod
    def _active_projects(session: Session) -> ActiveProjects:
        active = Project.status.in_(sorted(ACTIVE_STATUSES))
        total = session.scalar(select(func.count(Project.id)).where(active)) or 0
        urgent = (
            session.scalar(select(func.count(Project.id)).where(active, Project.priority.in_(URGENT_PRIORITIES)))
            or 0
        )
        return ActiveProjects(total=total, urgent=urgent)

    @staticmethod
    def _pending_quotes(session: Session) -> PendingQuotes:
        count, value = session.execute(
            select(func.count(Quote.id), func.coalesce(func.sum(Quote.total_amount), 0)).where(
                Quote.is_approved.is_(False)
            )
        ).one()
        return PendingQuotes(total=count or 0, value=Decimal(str(value or 0)).quantize(Decimal("0.01")))


dashboard_service = DashboardService()
