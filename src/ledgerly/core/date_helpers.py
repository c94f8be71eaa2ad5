"""Date and period helpers for transactions and reporting."""

import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time as a naive UTC datetime (matches stored timestamps)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def month_start(ref_date: date) -> date:
    """
    Normalize a date to the first day of its month.

    Examples:
        >>> month_start(date(2024, 12, 15))
        date(2024, 12, 1)
    """
    return ref_date.replace(day=1)


def add_months(ref_date: date, months: int) -> date:
    """
    Shift a date by a number of months, clamping the day to the target month.

    Examples:
        >>> add_months(date(2024, 1, 31), 1)
        date(2024, 2, 29)
        >>> add_months(date(2024, 3, 15), -3)
        date(2023, 12, 15)
    """
    month_index = ref_date.month - 1 + months
    year = ref_date.year + month_index // 12
    month = month_index % 12 + 1
    return ref_date.replace(year=year, month=month, day=min(ref_date.day, days_in_month(year, month)))


def days_in_month(year: int, month: int) -> int:
    """Number of days in a month."""
    if month == 12:
        return 31
    return (date(year, month + 1, 1) - timedelta(days=1)).day


def month_end(ref_date: date) -> date:
    """Last day of the month of ref_date."""
    return ref_date.replace(day=days_in_month(ref_date.year, ref_date.month))


def month_key(ref_date: date) -> str:
    """Format a date as a YYYY-MM bucket key."""
    return f"{ref_date.year:04d}-{ref_date.month:02d}"


def months_between(start: date, end: date) -> int:
    """Calendar month distance from start to end (ignores days)."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def parse_month(value: Optional[str], default: date) -> date:
    """
    Parse a YYYY-MM string into the first day of that month.

    Falls back to the month of `default` when value is empty or malformed.
    """
    if value and re.fullmatch(r"\d{4}-\d{2}", value):
        year, month = (int(p) for p in value.split("-"))
        if 1 <= month <= 12:
            return date(year, month, 1)
    return month_start(default)


_DMY_PATTERN = re.compile(r"^(\d{1,2})[./](\d{1,2})[./](\d{4})$")
_ISO_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def parse_search_date(text: str) -> Optional[date]:
    """
    Interpret free-text search input as a calendar day.

    Accepts ISO (2024-03-15) and day-first forms (15.03.2024, 15/03/2024).

    Examples:
        >>> parse_search_date("15/03/2024")
        date(2024, 3, 15)
        >>> parse_search_date("coffee") is None
        True
    """
    text = text.strip()
    try:
        iso = _ISO_PATTERN.match(text)
        if iso:
            return date(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))
        dmy = _DMY_PATTERN.match(text)
        if dmy:
            return date(int(dmy.group(3)), int(dmy.group(2)), int(dmy.group(1)))
    except ValueError:
        return None
    return None


def year_bounds(year: int) -> tuple[date, date]:
    """First and last day of a calendar year."""
    return date(year, 1, 1), date(year, 12, 31)
