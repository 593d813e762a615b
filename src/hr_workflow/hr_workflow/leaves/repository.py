from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Holiday, LeaveRequestDetails


class LeaveRepository(Protocol):
    def create(self, details: LeaveRequestDetails) -> LeaveRequestDetails:
        raise NotImplementedError

    def get(self, request_id: int) -> Optional[LeaveRequestDetails]:
        raise NotImplementedError

    def find_overlapping(self, *, employee_no: int, start_date: date, end_date: date) -> Sequence[LeaveRequestDetails]:
        """Pending or approved leaves of the employee intersecting [start_date, end_date]."""

        raise NotImplementedError


class HolidayRepository(Protocol):
    def list_between(self, start_date: date, end_date: date) -> Sequence[Holiday]:
        raise NotImplementedError
