from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Mapping

from ..approvals.model import OrgContext
from ..common.validators import require_int, require_positive_amount
from ..core.constants import MAX_PROJECT_AMOUNT
from ..core.enums import RequestType, Role
from ..core.exceptions import ConcurrentModificationError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.org_repository import OrganizationRepository
from ..workflow.handler import RequestHandler
from ..workflow.model import ApprovalRequest
from .model import PaymentRequestDetails
from .repository import PaymentRequestRepository

logger = logging.getLogger(__name__)


class ProjectPaymentHandler(RequestHandler):
    """PROJ_PAYMENT: requests may not exceed the project's remaining budget."""

    request_type = RequestType.PROJECT_PAYMENT
    execution_roles = frozenset({Role.ADMIN, Role.FINANCE_MANAGER})

    def __init__(self, payments: PaymentRequestRepository, org: OrganizationRepository):
        self._payments = payments
        self._org = org

    def validate_submission(self, payload: Mapping[str, Any], employee: Employee, *, now: datetime) -> PaymentRequestDetails:
        project_code = require_int(payload.get("project_code"), "Project")
        amount = require_positive_amount(payload.get("payment_amount"), "Payment amount", maximum=MAX_PROJECT_AMOUNT)
        raw_supplier = payload.get("supplier_code")
        supplier_code = require_int(raw_supplier, "Supplier") if raw_supplier not in (None, "") else None

        # Lock the project row so concurrent requests see each other's totals.
        project = self._org.get_project(project_code, for_update=True)
        if not project:
            raise NotFoundError(f"Project {project_code} not found")

        if project.total_amount is not None:
            committed = self._payments.committed_total(project_code=project_code)
            remaining = project.total_amount - committed
            if amount > remaining:
                raise ValidationError(
                    f"Payment amount {amount} exceeds the remaining project budget {max(remaining, 0)}"
                )

        purpose = (str(payload.get("payment_purpose") or "")).strip() or None
        return PaymentRequestDetails(
            request_id=0,
            project_code=project_code,
            supplier_code=supplier_code,
            payment_amount=amount,
            payment_purpose=purpose,
        )

    def create_details(self, request_id: int, draft: PaymentRequestDetails) -> PaymentRequestDetails:
        return self._payments.create(replace(draft, request_id=int(request_id)))

    def load_details(self, request_id: int) -> PaymentRequestDetails:
        details = self._payments.get(request_id)
        if not details:
            raise NotFoundError(f"Payment request details for request {request_id} not found")
        return details

    def org_context(self, draft: PaymentRequestDetails, employee: Employee) -> OrgContext:
        return OrgContext(department_code=employee.department_code, project_code=draft.project_code)

    def is_executed(self, details: PaymentRequestDetails) -> bool:
        return details.is_processed

    def execute(self, request: ApprovalRequest, details: PaymentRequestDetails, actor_id: int, *, now: datetime) -> None:
        if not self._payments.mark_processed(request_id=details.request_id, processed_by=actor_id, processed_date=now):
            raise ConcurrentModificationError(f"Payment request {details.request_id} was processed by another user")
        logger.info(
            "Disbursed %s for project %s (request %s) by %s",
            details.payment_amount,
            details.project_code,
            details.request_id,
            actor_id,
        )
