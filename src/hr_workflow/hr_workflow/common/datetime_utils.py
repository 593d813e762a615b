from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Container, Iterator

from dateutil.relativedelta import relativedelta

from ..core.constants import WEEKEND_DAYS
from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date (YYYY-MM-DD): {value!r}")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def add_months(start: date, months: int) -> date:
    # relativedelta clamps to the month end (Jan 31 + 1 month = Feb 28/29)
    return start + relativedelta(months=months)


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def count_working_days(start: date, end: date, *, holidays: Container[date] = ()) -> int:
    """Inclusive count of days in [start, end] that are neither weekend days nor holidays."""
    return sum(1 for d in iter_days(start, end) if d.weekday() not in WEEKEND_DAYS and d not in holidays)
