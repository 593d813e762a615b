from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from ..common.datetime_utils import parse_iso_date
from ..core.enums import RequestType
from ..core.exceptions import InsufficientBalanceError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..workflow.handler import RequestHandler
from ..workflow.model import ApprovalRequest
from .calendar import LeaveCalendar
from .model import LeaveRequestDetails
from .repository import LeaveRepository

logger = logging.getLogger(__name__)


class LeaveRequestHandler(RequestHandler):
    """VAC: balance is deducted on final approval and refunded on cancellation."""

    request_type = RequestType.LEAVE

    def __init__(self, leaves: LeaveRepository, employees: EmployeeRepository, calendar: LeaveCalendar):
        self._leaves = leaves
        self._employees = employees
        self._calendar = calendar

    def validate_submission(self, payload: Mapping[str, Any], employee: Employee, *, now: datetime) -> LeaveRequestDetails:
        start = parse_iso_date(str(payload.get("leave_from_date") or ""))
        end = parse_iso_date(str(payload.get("leave_to_date") or ""))
        if start > end:
            raise ValidationError("Leave start date must be on or before the end date")
        if start < now.date():
            raise ValidationError("Leave cannot be requested for past dates")

        days = Decimal(self._calendar.working_days(start, end))
        if days <= 0:
            raise ValidationError("The selected period contains no working days")

        overlapping = self._leaves.find_overlapping(employee_no=employee.employee_no, start_date=start, end_date=end)
        if overlapping:
            first = overlapping[0]
            raise ValidationError(
                f"Leave overlaps an existing request from {first.leave_from_date} to {first.leave_to_date}"
            )

        balance = employee.leave_balance_days or Decimal("0")
        if balance < days:
            raise InsufficientBalanceError(f"Insufficient leave balance: requested {days}, available {balance}")

        reason: Optional[str] = (str(payload.get("leave_reason") or "")).strip() or None
        return LeaveRequestDetails(
            request_id=0,
            employee_no=employee.employee_no,
            leave_from_date=start,
            leave_to_date=end,
            leave_days=days,
            leave_reason=reason,
        )

    def create_details(self, request_id: int, draft: LeaveRequestDetails) -> LeaveRequestDetails:
        return self._leaves.create(replace(draft, request_id=int(request_id)))

    def load_details(self, request_id: int) -> LeaveRequestDetails:
        details = self._leaves.get(request_id)
        if not details:
            raise NotFoundError(f"Leave details for request {request_id} not found")
        return details

    def effective_date(self, draft: LeaveRequestDetails) -> Optional[date]:
        return draft.leave_from_date

    def on_finalize(self, request: ApprovalRequest, details: LeaveRequestDetails, *, now: datetime) -> None:
        # Balance may have moved since submission; the guarded UPDATE re-checks it.
        if not self._employees.adjust_leave_balance(details.employee_no, -details.leave_days):
            raise InsufficientBalanceError(
                f"Employee {details.employee_no} no longer has {details.leave_days} leave days available"
            )
        logger.info("Deducted %s leave days from employee %s (request %s)", details.leave_days, details.employee_no, request.request_id)

    def on_compensate(self, request: ApprovalRequest, details: LeaveRequestDetails, *, now: datetime) -> None:
        if not self._employees.adjust_leave_balance(details.employee_no, details.leave_days):
            raise NotFoundError(f"Employee {details.employee_no} not found")
        logger.info("Refunded %s leave days to employee %s (request %s)", details.leave_days, details.employee_no, request.request_id)
