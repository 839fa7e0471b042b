from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterator, Tuple


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    """Parse YYYY-MM-DDTHH:MM[:SS] string into a naive datetime."""
    return datetime.fromisoformat(value).replace(tzinfo=None)


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def iter_working_days(start: date, end: date) -> Iterator[date]:
    """Monday to Friday days in the closed range [start, end]."""
    return (d for d in iter_days(start, end) if not is_weekend(d))


def count_working_days(start: date, end: date) -> int:
    return sum(1 for _ in iter_working_days(start, end))


def iso_week_bounds(day: date) -> Tuple[date, date]:
    """Monday and Sunday of the ISO week containing ``day``."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def hours_between(start: datetime, end: datetime) -> Decimal:
    """Exact elapsed hours (may be negative)."""
    seconds = Decimal(int((end - start).total_seconds()))
    return seconds / Decimal(3600)


def hours_between_times(start: time, end: time) -> Decimal:
    anchor = date(2000, 1, 1)
    return hours_between(datetime.combine(anchor, start), datetime.combine(anchor, end))


def round_half_up(value: Decimal, quantum: Decimal) -> Decimal:
    return value.quantize(quantum, rounding=ROUND_HALF_UP)
