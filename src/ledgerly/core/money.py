"""Decimal helpers for monetary arithmetic."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

# Precision for monetary calculations (2 decimal places)
PRECISION = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """Coerce numbers, strings and None to Decimal (None -> 0)."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return ZERO


def round_money(value: Any) -> Decimal:
    """Round to cents, half away from zero."""
    return to_decimal(value).quantize(PRECISION, rounding=ROUND_HALF_UP)


def round_whole(value: Any) -> Decimal:
    """Round to a whole unit, half away from zero."""
    return to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
