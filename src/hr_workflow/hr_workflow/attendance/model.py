from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's attendance for one day."""

    attendance_id: int
    employee_no: int
    attendance_date: date
    check_in_time: datetime
    check_out_time: Optional[datetime]
    status: AttendanceStatus
    note: Optional[str] = None


@dataclass(frozen=True)
class ManualAttendanceDetails:
    """Payload of a MANUAL_ATTENDANCE request (`manual_attendance_requests`)."""

    request_id: int
    employee_no: int
    attendance_date: date
    check_in_time: time
    check_out_time: time
    reason: Optional[str] = None
