from __future__ import annotations

from datetime import date

from ..common.datetime_utils import count_working_days
from .repository import HolidayRepository


class LeaveCalendar:
    """Working days for leave purposes: no Friday, no Saturday, no public holiday."""

    def __init__(self, holidays: HolidayRepository):
        self._holidays = holidays

    def working_days(self, start_date: date, end_date: date) -> int:
        if end_date < start_date:
            return 0
        off = {h.holiday_date for h in self._holidays.list_between(start_date, end_date)}
        return count_working_days(start_date, end_date, holidays=off)
