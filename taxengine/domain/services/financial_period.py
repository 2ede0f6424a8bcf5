# taxengine/domain/services/financial_period.py
"""
Financial-year, quarter and return-period helpers.

Indian financial year runs 1 April to 31 March and is written ``2024-25``.
TDS/TCS quarters: Q1 Apr-Jun, Q2 Jul-Sep, Q3 Oct-Dec, Q4 Jan-Mar.
Return periods are ``MMYYYY`` (e.g. ``012025``).
"""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime

from taxengine.domain.errors import InvalidInput

_PERIOD_RE = re.compile(r"^(0[1-9]|1[0-2])(\d{4})$")


def parse_transaction_date(value: str | date, field: str = "date") -> date:
    """Parse a ``YYYY-MM-DD`` string (dates pass through)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError as exc:
        raise InvalidInput(f"Invalid {field} '{value}', expected YYYY-MM-DD") from exc


def financial_year_start(d: date) -> int:
    return d.year if d.month >= 4 else d.year - 1


def financial_year(d: date) -> str:
    """2024-06-15 -> '2024-25'; 2025-02-01 -> '2024-25'."""
    start = financial_year_start(d)
    return f"{start}-{(start + 1) % 100:02d}"


def quarter(d: date) -> str:
    if 4 <= d.month <= 6:
        return "Q1"
    if 7 <= d.month <= 9:
        return "Q2"
    if 10 <= d.month <= 12:
        return "Q3"
    return "Q4"


def parse_return_period(period: str) -> tuple[int, int]:
    """'012025' -> (1, 2025)."""
    m = _PERIOD_RE.match((period or "").strip())
    if not m:
        raise InvalidInput(f"Invalid return period '{period}', expected MMYYYY")
    return int(m.group(1)), int(m.group(2))


def period_bounds(period: str) -> tuple[date, date]:
    """Calendar month window for an ``MMYYYY`` return period."""
    month, year = parse_return_period(period)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def claim_period(d: date) -> str:
    return f"{d.month:02d}{d.year:04d}"


def period_financial_year(period: str) -> str:
    month, year = parse_return_period(period)
    return financial_year(date(year, month, 1))


def format_gstn_date(d: date) -> str:
    """Portal date format DD-MM-YYYY."""
    return d.strftime("%d-%m-%Y")
