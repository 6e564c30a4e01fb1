from __future__ import annotations

import secrets
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from paintops.business.quotes.models import Quote
from paintops.business.service_orders.models import ServiceOrder
from paintops.core.config import get_settings
from paintops.platform.errors import IntegrityConflictError


def format_quote_number(moment: datetime, suffix: int) -> str:
    return f"Q{moment:%y%m}-{suffix:04d}"


def format_order_number(moment: datetime, suffix: int) -> str:
    return f"WO{moment:%y%m%d}-{suffix:03d}"


def _draw_unique(
    exists: Callable[[str], bool],
    build: Callable[[int], str],
    upper: int,
    *,
    attempts: int,
    kind: str,
) -> str:
    for _ in range(attempts):
        candidate = build(secrets.randbelow(upper))
        if not exists(candidate):
            return candidate
    raise IntegrityConflictError(
        f"Could not generate a unique {kind} number after {attempts} attempts",
        details={"attempts": attempts},
    )


def next_quote_number(session: Session, *, now: datetime | None = None, attempts: int | None = None) -> str:
    moment = now or datetime.now(timezone.utc)
    return _draw_unique(
        lambda number: quote_number_taken(session, number),
        lambda suffix: format_quote_number(moment, suffix),
        10_000,
        attempts=attempts or get_settings().number_generation_attempts,
        kind="quote",
    )


def next_order_number(session: Session, *, now: datetime | None = None, attempts: int | None = None) -> str:
    moment = now or datetime.now(timezone.utc)
    return _draw_unique(
        lambda number: order_number_taken(session, number),
        lambda suffix: format_order_number(moment, suffix),
        1_000,
        attempts=attempts or get_settings().number_generation_attempts,
        kind="service order",
    )


def quote_number_taken(session: Session, number: str) -> bool:
    return session.scalar(select(Quote.id).where(Quote.quote_number == number)) is not None


def order_number_taken(session: Session, number: str) -> bool:
    return session.scalar(select(ServiceOrder.id).where(ServiceOrder.order_number == number)) is not None
