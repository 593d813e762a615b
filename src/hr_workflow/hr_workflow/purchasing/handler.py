from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Mapping

from ..approvals.model import OrgContext
from ..common.validators import require_int, require_positive_amount
from ..core.constants import MAX_PROJECT_AMOUNT
from ..core.enums import RequestStatus, RequestType
from ..core.exceptions import NotFoundError
from ..employees.model import Employee
from ..employees.org_repository import OrganizationRepository
from ..workflow.handler import RequestHandler
from ..workflow.model import ApprovalRequest
from .model import PurchaseOrder
from .repository import PurchaseOrderRepository


class PurchaseOrderHandler(RequestHandler):
    request_type = RequestType.PURCHASE_ORDER

    def __init__(self, orders: PurchaseOrderRepository, org: OrganizationRepository):
        self._orders = orders
        self._org = org

    def validate_submission(self, payload: Mapping[str, Any], employee: Employee, *, now: datetime) -> PurchaseOrder:
        supplier_code = require_int(payload.get("supplier_code"), "Supplier")
        amount = require_positive_amount(payload.get("order_amount"), "Order amount", maximum=MAX_PROJECT_AMOUNT)

        raw_project = payload.get("project_code")
        project_code = require_int(raw_project, "Project") if raw_project not in (None, "") else employee.project_code
        if project_code is not None and not self._org.get_project(project_code):
            raise NotFoundError(f"Project {project_code} not found")

        description = (str(payload.get("description") or "")).strip() or None
        return PurchaseOrder(
            request_id=0,
            supplier_code=supplier_code,
            order_amount=amount,
            project_code=project_code,
            description=description,
        )

    def create_details(self, request_id: int, draft: PurchaseOrder) -> PurchaseOrder:
        return self._orders.create(replace(draft, request_id=int(request_id)))

    def load_details(self, request_id: int) -> PurchaseOrder:
        order = self._orders.get(request_id)
        if not order:
            raise NotFoundError(f"Purchase order for request {request_id} not found")
        return order

    def org_context(self, draft: PurchaseOrder, employee: Employee) -> OrgContext:
        return OrgContext(department_code=employee.department_code, project_code=draft.project_code)

    def can_cancel(self, request: ApprovalRequest, details: PurchaseOrder, *, now: datetime) -> bool:
        return request.status == RequestStatus.PENDING
