from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..approvals.model import OrgContext
from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_int
from ..core.enums import RequestType, Role
from ..core.exceptions import ConcurrentModificationError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.org_repository import OrganizationRepository
from ..employees.repository import EmployeeRepository
from ..workflow.handler import RequestHandler
from ..workflow.model import ApprovalRequest
from .model import TransferDetails
from .repository import TransferRepository

logger = logging.getLogger(__name__)


class ProjectTransferHandler(RequestHandler):
    """PROJ_TRANSFER: approval only marks the transfer ready; `execute` moves the employee.

    Level 1 is filled from the source project, later levels from the target project.
    """

    request_type = RequestType.PROJECT_TRANSFER
    execution_roles = frozenset({Role.ADMIN, Role.HR_MANAGER})

    def __init__(self, transfers: TransferRepository, employees: EmployeeRepository, org: OrganizationRepository):
        self._transfers = transfers
        self._employees = employees
        self._org = org

    def validate_submission(self, payload: Mapping[str, Any], employee: Employee, *, now: datetime) -> TransferDetails:
        to_project = require_int(payload.get("to_project_code"), "Target project")
        raw_from = payload.get("from_project_code")
        from_project = require_int(raw_from, "Source project") if raw_from not in (None, "") else employee.project_code
        if from_project is None:
            raise ValidationError("Employee is not assigned to a project")
        if employee.project_code != from_project:
            raise ValidationError(f"Employee {employee.employee_no} is not assigned to project {from_project}")
        if from_project == to_project:
            raise ValidationError("Source and target project must differ")
        if not self._org.get_project(from_project):
            raise NotFoundError(f"Project {from_project} not found")
        if not self._org.get_project(to_project):
            raise NotFoundError(f"Project {to_project} not found")
        if self._transfers.has_pending_for_employee(employee_no=employee.employee_no):
            raise ValidationError("Employee already has a pending transfer request")

        raw_date = payload.get("transfer_date")
        transfer_date = parse_iso_date(str(raw_date)) if raw_date else now.date()
        if transfer_date < now.date():
            raise ValidationError("Transfer date cannot be in the past")

        reason = (str(payload.get("transfer_reason") or "")).strip() or None
        return TransferDetails(
            request_id=0,
            employee_no=employee.employee_no,
            from_project_code=from_project,
            to_project_code=to_project,
            transfer_date=transfer_date,
            transfer_reason=reason,
        )

    def create_details(self, request_id: int, draft: TransferDetails) -> TransferDetails:
        return self._transfers.create(replace(draft, request_id=int(request_id)))

    def load_details(self, request_id: int) -> TransferDetails:
        details = self._transfers.get(request_id)
        if not details:
            raise NotFoundError(f"Transfer details for request {request_id} not found")
        return details

    def org_context(self, draft: TransferDetails, employee: Employee) -> OrgContext:
        return OrgContext(department_code=employee.department_code, project_code=draft.from_project_code)

    def effective_date(self, draft: TransferDetails) -> Optional[date]:
        return draft.transfer_date

    def approval_context(self, details: TransferDetails, level: int) -> Optional[OrgContext]:
        if level >= 2:
            return OrgContext(department_code=None, project_code=details.to_project_code)
        return None

    def is_executed(self, details: TransferDetails) -> bool:
        return details.is_executed

    def execute(self, request: ApprovalRequest, details: TransferDetails, actor_id: int, *, now: datetime) -> None:
        if not self._transfers.mark_executed(request_id=details.request_id, executed_by=actor_id, executed_date=now):
            raise ConcurrentModificationError(f"Transfer {details.request_id} was executed by another user")
        if not self._employees.set_project(details.employee_no, details.to_project_code):
            raise NotFoundError(f"Employee {details.employee_no} not found")
        logger.info(
            "Employee %s moved from project %s to %s (request %s)",
            details.employee_no,
            details.from_project_code,
            details.to_project_code,
            details.request_id,
        )
