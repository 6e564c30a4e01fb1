from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any


CENT = Decimal("0.01")
HUNDRED = Decimal("100")
# Largest value a Numeric(12, 2) column holds.
MAX_AMOUNT = Decimal("9999999999.99")


@dataclass(frozen=True, slots=True)
class QuoteTotals:
    subtotal: Decimal
    margin_amount: Decimal
    total: Decimal


def coerce_amount(value: Any) -> Decimal:
    """Turn a form value into a Decimal. Missing, blank or non-numeric input counts as zero."""
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal("0")
    if isinstance(value, float):
        value = repr(value)
    text = str(value).strip()
    if not text:
        return Decimal("0")
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return Decimal("0")
    return amount if amount.is_finite() else Decimal("0")


def _q(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_quote_totals(materials: Any, labor: Any, additional: Any, margin: Any) -> QuoteTotals:
    subtotal = coerce_amount(materials) + coerce_amount(labor) + coerce_amount(additional)
    margin_amount = subtotal * coerce_amount(margin) / HUNDRED
    return QuoteTotals(
        subtotal=_q(subtotal),
        margin_amount=_q(margin_amount),
        total=_q(subtotal + margin_amount),
    )
