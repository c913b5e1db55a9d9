"""Billing periods, due dates and lateness."""

import calendar
from datetime import date, datetime
from zoneinfo import ZoneInfo

MONTH_NAMES = [
    "Januari",
    "Februari",
    "Maret",
    "April",
    "Mei",
    "Juni",
    "Juli",
    "Agustus",
    "September",
    "Oktober",
    "November",
    "Desember",
]


def month_name(month: int) -> str:
    """Indonesian name for a month number (1-12)."""
    if 1 <= month <= 12:
        return MONTH_NAMES[month - 1]
    return "Invalid Month"


def parse_month_year(text: str) -> tuple[int, int] | None:
    """Parse 'Maret 2025', '03-2025' or '2025-03' into (month, year).

    Returns None if the text matches none of these forms.
    """
    parts = text.strip().split(" ")
    if len(parts) == 2 and parts[0] in MONTH_NAMES:
        try:
            return MONTH_NAMES.index(parts[0]) + 1, int(parts[1])
        except ValueError:
            return None

    numeric_parts = text.strip().split("-")
    if len(numeric_parts) != 2:
        return None
    try:
        first, second = int(numeric_parts[0]), int(numeric_parts[1])
    except ValueError:
        return None

    month, year = (second, first) if first > 12 else (first, second)
    if not 1 <= month <= 12:
        return None
    return month, year


def month_range(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def due_date(period_month: int, period_year: int, due_day: int) -> date:
    """Due date of a period's bill: due_day of the following month."""
    if period_month == 12:
        year, month = period_year + 1, 1
    else:
        year, month = period_year, period_month + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(due_day, last_day))


def months_late(due: date, on: date) -> int:
    """Whole months a payment on `on` is past `due`, counting a partial month as one."""
    if on <= due:
        return 0
    months = (on.year - due.year) * 12 + on.month - due.month
    if on.day > due.day:
        months += 1
    return months


def today(tz: str) -> date:
    """Current date in the given timezone."""
    return datetime.now(ZoneInfo(tz)).date()
