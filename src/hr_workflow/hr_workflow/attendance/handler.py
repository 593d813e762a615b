from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, time
from typing import Any, Mapping

from ..common.datetime_utils import parse_iso_date
from ..core.enums import AttendanceStatus, RequestStatus, RequestType
from ..core.exceptions import InvalidStateError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..workflow.handler import RequestHandler
from ..workflow.model import ApprovalRequest
from .model import ManualAttendanceDetails
from .repository import AttendanceRepository, ManualAttendanceRepository

logger = logging.getLogger(__name__)


def _parse_time(value: Any, field_name: str) -> time:
    v = str(value or "").strip()
    try:
        return datetime.strptime(v, "%H:%M").time()
    except ValueError:
        raise ValidationError(f"{field_name} must be HH:MM")


class ManualAttendanceHandler(RequestHandler):
    """MANUAL_ATTENDANCE: final approval writes the missing attendance record."""

    request_type = RequestType.MANUAL_ATTENDANCE

    def __init__(self, requests: ManualAttendanceRepository, attendance: AttendanceRepository):
        self._requests = requests
        self._attendance = attendance

    def validate_submission(self, payload: Mapping[str, Any], employee: Employee, *, now: datetime) -> ManualAttendanceDetails:
        attendance_date = parse_iso_date(str(payload.get("attendance_date") or ""))
        if attendance_date > now.date():
            raise ValidationError("Attendance cannot be requested for a future date")

        check_in = _parse_time(payload.get("check_in_time"), "Check-in time")
        check_out = _parse_time(payload.get("check_out_time"), "Check-out time")
        if check_out <= check_in:
            raise ValidationError("Check-out time must be after check-in time")

        if self._attendance.get_for_employee_and_date(employee.employee_no, attendance_date):
            raise ValidationError("An attendance record already exists for this day")
        if self._requests.has_open_request(employee_no=employee.employee_no, attendance_date=attendance_date):
            raise ValidationError("A manual attendance request for this day is already pending")

        reason = (str(payload.get("reason") or "")).strip() or None
        return ManualAttendanceDetails(
            request_id=0,
            employee_no=employee.employee_no,
            attendance_date=attendance_date,
            check_in_time=check_in,
            check_out_time=check_out,
            reason=reason,
        )

    def create_details(self, request_id: int, draft: ManualAttendanceDetails) -> ManualAttendanceDetails:
        return self._requests.create(replace(draft, request_id=int(request_id)))

    def load_details(self, request_id: int) -> ManualAttendanceDetails:
        details = self._requests.get(request_id)
        if not details:
            raise NotFoundError(f"Manual attendance details for request {request_id} not found")
        return details

    def can_cancel(self, request: ApprovalRequest, details: ManualAttendanceDetails, *, now: datetime) -> bool:
        return request.status == RequestStatus.PENDING

    def on_finalize(self, request: ApprovalRequest, details: ManualAttendanceDetails, *, now: datetime) -> None:
        if self._attendance.get_for_employee_and_date(details.employee_no, details.attendance_date):
            raise InvalidStateError(f"Employee {details.employee_no} already has attendance on {details.attendance_date}")

        attendance_id = self._attendance.create_record(
            employee_no=details.employee_no,
            attendance_date=details.attendance_date,
            check_in_time=datetime.combine(details.attendance_date, details.check_in_time),
            check_out_time=datetime.combine(details.attendance_date, details.check_out_time),
            status=AttendanceStatus.MANUAL,
            note=details.reason or f"Manual attendance (request {request.request_id})",
        )
        logger.info("Manual attendance %s created for employee %s on %s", attendance_id, details.employee_no, details.attendance_date)
