from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, ManualAttendanceDetails


class AttendanceRepository(Protocol):
    def get_for_employee_and_date(self, employee_no: int, attendance_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_record(
        self,
        *,
        employee_no: int,
        attendance_date: date,
        check_in_time: datetime,
        check_out_time: Optional[datetime],
        status: AttendanceStatus,
        note: Optional[str] = None,
    ) -> int:
        raise NotImplementedError


class ManualAttendanceRepository(Protocol):
    def create(self, details: ManualAttendanceDetails) -> ManualAttendanceDetails:
        raise NotImplementedError

    def get(self, request_id: int) -> Optional[ManualAttendanceDetails]:
        raise NotImplementedError

    def has_open_request(self, *, employee_no: int, attendance_date: date) -> bool:
        """A pending manual request already exists for that day."""

        raise NotImplementedError
