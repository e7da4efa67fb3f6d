"""
Domain: monetary amounts.

All money in this service is USD held as `Decimal` and rounded half-up to
whole cents. Webhook payloads deliver totals as strings ("100.00"), database
rows as floats or numerics; both normalize through `to_amount`.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def round2(value: Decimal) -> Decimal:
    """Round half-up to 2 decimal places."""

    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_amount(value: Any) -> Decimal:
    """
    Parse a loosely-typed monetary value into a cent-rounded Decimal.

    Unparseable or missing values are treated as zero, matching how the
    commerce platform omits empty totals.
    """

    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        # str() first so 0.1 becomes Decimal("0.1") rather than its binary expansion
        amount = Decimal(str(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            return ZERO
    else:
        return ZERO

    if not amount.is_finite():
        return ZERO
    return round2(amount)


def to_wire(value: Decimal) -> str:
    """Fixed two-decimal string used on the payment rail and in JSON columns."""

    return f"{round2(value):.2f}"
