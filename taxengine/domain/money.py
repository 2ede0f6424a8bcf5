# taxengine/domain/money.py

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

ZERO = Decimal("0.00")
HUNDRED = Decimal("100")
TWO = Decimal("2")
_PAISA = Decimal("0.01")


def to_decimal(value, default: str = "0.00") -> Decimal:
    """Safely convert incoming float/str/int/Decimal/None to Decimal."""
    if value is None:
        return Decimal(default)
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return Decimal(default)


def round_money(value: Decimal) -> Decimal:
    """Quantize to paisa, half away from zero."""
    return value.quantize(_PAISA, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    """``amount * rate / 100`` rounded to paisa."""
    return round_money(amount * rate / HUNDRED)
