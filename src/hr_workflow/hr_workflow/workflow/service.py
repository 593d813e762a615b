from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Union

from ..approvals.model import ApprovalStep
from ..approvals.resolver import ApproverResolver
from ..common.datetime_utils import now_local
from ..common.validators import require_int, require_non_empty
from ..core.enums import RequestStatus, RequestType, Role, StepStatus, Transition
from ..core.exceptions import (
    AuthorizationError,
    ConcurrentModificationError,
    ConfigurationError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedApproverError,
    ValidationError,
)
from ..database.connection import TransactionManager
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from .factory import RequestHandlerFactory
from .handler import RequestHandler
from .model import ApprovalRequest
from .repository import RequestRepository, SideEffectLedger

logger = logging.getLogger(__name__)

# Roles that may file a request on behalf of another employee.
_PROXY_ROLES = frozenset({Role.ADMIN, Role.HR_MANAGER})
# Roles that may read any request; employees only see requests they take part in.
OVERSIGHT_ROLES = frozenset({Role.ADMIN, Role.HR_MANAGER, Role.FINANCE_MANAGER, Role.GENERAL_MANAGER, Role.MANAGER})
_DECIDED_STEPS = frozenset({StepStatus.COMPLETED, StepStatus.REJECTED})


def side_effect_subject(request_id: int) -> str:
    return f"request:{int(request_id)}"


class WorkflowService:
    """Generic submit / approve / reject / cancel / execute state machine.

    Every operation runs in one transaction: the row is read with a lock, the
    actor is checked, the new state is written with a version compare-and-swap
    and any ledger side effect is applied before commit.
    """

    def __init__(
        self,
        requests: RequestRepository,
        employees: EmployeeRepository,
        resolver: ApproverResolver,
        ledger: SideEffectLedger,
        handlers: RequestHandlerFactory,
        *,
        tx: TransactionManager,
    ):
        self._requests = requests
        self._employees = employees
        self._resolver = resolver
        self._ledger = ledger
        self._handlers = handlers
        self._tx = tx

    # -------- commands --------
    def submit(
        self,
        request_type: Union[str, RequestType],
        payload: Mapping[str, Any],
        requester_id: int,
        *,
        now: Optional[datetime] = None,
    ) -> ApprovalRequest:
        now = now or now_local()
        handler = self._handlers.for_type(request_type)
        payload = payload or {}

        with self._tx.transaction():
            requester = self._employees.get_by_id(int(requester_id))
            if not requester or not requester.is_active:
                raise ValidationError("Requester does not exist or is not active")

            employee_no = self._subject_employee_no(payload, requester)
            # Row lock serialises concurrent submissions for the same employee.
            employee = self._employees.get_by_id(employee_no, for_update=True)
            if not employee:
                raise NotFoundError(f"Employee {employee_no} not found")
            if not employee.is_active:
                raise ValidationError(f"Employee {employee_no} is not active")

            draft = handler.validate_submission(payload, employee, now=now)
            ctx = handler.org_context(draft, employee)
            first_approver = self._resolver.resolve_next_approver(
                handler.request_type.value,
                employee.employee_no,
                ctx.department_code,
                ctx.project_code,
                1,
                seat_context=handler.approval_context(draft, 1),
            )
            if first_approver is None:
                raise ConfigurationError(f"No approval chain configured for {handler.request_type.value}")

            request_id = self._requests.create(
                request_type=handler.request_type,
                requester_id=requester.employee_no,
                employee_no=employee.employee_no,
                department_code=ctx.department_code,
                project_code=ctx.project_code,
                next_app_level=1,
                next_approval=first_approver,
                effective_date=handler.effective_date(draft),
                request_date=now,
            )
            details = handler.create_details(request_id, draft)
            request = self._requests.get(request_id)
            if not request:
                raise NotFoundError(f"Request {request_id} not found after insert")

        logger.info(
            "Submitted %s request %s for employee %s by %s; level 1 -> %s",
            handler.request_type.value,
            request_id,
            employee.employee_no,
            requester.employee_no,
            first_approver,
        )
        return replace(request, details=details)

    def approve(
        self,
        request_id: int,
        approver_id: int,
        *,
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> ApprovalRequest:
        now = now or now_local()

        with self._tx.transaction():
            request = self._load_pending(request_id, expected_version)
            self._require_current_approver(request, approver_id)
            handler = self._handlers.for_type(request.request_type)
            details = handler.load_details(request.request_id)

            current_level = int(request.next_app_level or 1)
            next_level = current_level + 1
            next_approver = self._resolver.resolve_next_approver(
                request.request_type.value,
                request.employee_no,
                request.department_code,
                request.project_code,
                next_level,
                seat_context=handler.approval_context(details, next_level),
            )

            if next_approver is not None:
                updated = self._save(request, next_app_level=next_level, next_approval=next_approver)
                logger.info(
                    "Request %s approved at level %s by %s; level %s -> %s",
                    request.request_id,
                    current_level,
                    approver_id,
                    next_level,
                    next_approver,
                )
            else:
                updated = self._save(
                    request,
                    status=RequestStatus.APPROVED,
                    next_app_level=None,
                    next_approval=None,
                    approved_by=int(approver_id),
                    approved_date=now,
                    closed_at_level=current_level,
                )
                self._apply_once(
                    updated,
                    Transition.FINALIZE,
                    lambda: handler.on_finalize(updated, details, now=now),
                    now=now,
                )
                logger.info("Request %s finally approved by %s", request.request_id, approver_id)

        return replace(updated, details=details)

    def reject(
        self,
        request_id: int,
        approver_id: int,
        reason: str,
        *,
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> ApprovalRequest:
        now = now or now_local()
        reason = require_non_empty(reason, "Rejection reason")

        with self._tx.transaction():
            request = self._load_pending(request_id, expected_version)
            self._require_current_approver(request, approver_id)
            handler = self._handlers.for_type(request.request_type)
            details = handler.load_details(request.request_id)

            updated = self._save(
                request,
                status=RequestStatus.REJECTED,
                next_app_level=None,
                next_approval=None,
                rejection_reason=reason,
                closed_at_level=request.next_app_level,
            )
            handler.on_reject(updated, details, now=now)

        logger.info("Request %s rejected at level %s by %s", request.request_id, request.next_app_level, approver_id)
        return replace(updated, details=details)

    def cancel(
        self,
        request_id: int,
        requester_id: int,
        reason: str,
        *,
        now: Optional[datetime] = None,
    ) -> ApprovalRequest:
        now = now or now_local()
        reason = require_non_empty(reason, "Cancellation reason")

        with self._tx.transaction():
            request = self._load(request_id)
            if request.requester_id != int(requester_id):
                logger.warning("Employee %s tried to cancel request %s of %s", requester_id, request_id, request.requester_id)
                raise AuthorizationError("Only the original requester can cancel this request")
            if request.status not in (RequestStatus.PENDING, RequestStatus.APPROVED):
                raise InvalidStateError(f"Request {request_id} is already {request.status.name}")

            handler = self._handlers.for_type(request.request_type)
            details = handler.load_details(request.request_id)
            if handler.is_executed(details):
                raise InvalidStateError(f"Request {request_id} was already executed")
            if not handler.can_cancel(request, details, now=now):
                raise InvalidStateError(f"Request {request_id} can no longer be cancelled")

            if request.status == RequestStatus.PENDING:
                updated = self._save(
                    request,
                    status=RequestStatus.CANCELLED,
                    next_app_level=None,
                    next_approval=None,
                    cancellation_reason=reason,
                    closed_at_level=request.next_app_level,
                )
                handler.on_cancel_pending(updated, details, now=now)
            else:
                updated = self._save(request, status=RequestStatus.CANCELLED, cancellation_reason=reason)
                self._apply_once(
                    updated,
                    Transition.COMPENSATE,
                    lambda: handler.on_compensate(updated, details, now=now),
                    now=now,
                )

        logger.info("Request %s cancelled by %s (was %s)", request_id, requester_id, request.status.name)
        return replace(updated, details=details)

    def execute(self, request_id: int, actor_id: int, *, now: Optional[datetime] = None) -> ApprovalRequest:
        now = now or now_local()

        with self._tx.transaction():
            request = self._load(request_id)
            handler = self._handlers.for_type(request.request_type)
            if not handler.executable:
                raise InvalidStateError(f"{request.request_type.value} requests have no execution step")

            actor = self._employees.get_by_id(int(actor_id))
            if not actor or actor.role not in handler.execution_roles:
                logger.warning("Employee %s is not allowed to execute request %s", actor_id, request_id)
                raise AuthorizationError("You are not allowed to execute this request")

            if request.status != RequestStatus.APPROVED:
                raise InvalidStateError(f"Request {request_id} must be approved before execution")
            details = handler.load_details(request.request_id)
            if handler.is_executed(details):
                raise InvalidStateError(f"Request {request_id} was already executed")

            self._apply_once(
                request,
                Transition.EXECUTE,
                lambda: handler.execute(request, details, int(actor_id), now=now),
                now=now,
            )
            details = handler.load_details(request.request_id)

        logger.info("Request %s executed by %s", request_id, actor_id)
        return replace(request, details=details)

    # -------- reads --------
    def get(self, request_id: int, *, viewer_id: Optional[int] = None) -> ApprovalRequest:
        """`viewer_id`, when given, must be allowed to see the request."""
        request = self._load(request_id, for_update=False)
        handler = self._handlers.for_type(request.request_type)
        details = handler.load_details(request.request_id)
        if viewer_id is not None:
            self._require_viewer(request, int(viewer_id), lambda: self._steps(request, handler, details))
        return replace(request, details=details)

    def timeline(self, request_id: int, *, viewer_id: Optional[int] = None) -> list[ApprovalStep]:
        request = self._load(request_id, for_update=False)
        handler = self._handlers.for_type(request.request_type)
        details = handler.load_details(request.request_id)
        steps = self._steps(request, handler, details)
        if viewer_id is not None:
            self._require_viewer(request, int(viewer_id), lambda: steps)
        return steps

    def handler_for(self, request_type: Union[str, RequestType]) -> RequestHandler:
        return self._handlers.for_type(request_type)

    # -------- helpers --------
    def _steps(self, request: ApprovalRequest, handler: RequestHandler, details: Any) -> list[ApprovalStep]:
        return self._resolver.timeline(request, seat_context=lambda level: handler.approval_context(details, level))

    def _require_viewer(
        self,
        request: ApprovalRequest,
        viewer_id: int,
        steps: Callable[[], list[ApprovalStep]],
    ) -> None:
        if viewer_id in (request.requester_id, request.employee_no, request.next_approval, request.approved_by):
            return
        viewer = self._employees.get_by_id(viewer_id)
        if viewer and viewer.role in OVERSIGHT_ROLES:
            return
        # Earlier approvers keep read access; the timeline names the current seat holders.
        if any(s.approver_no == viewer_id for s in steps() if s.status in _DECIDED_STEPS):
            return
        logger.warning("Employee %s may not view request %s", viewer_id, request.request_id)
        raise AuthorizationError("You are not allowed to view this request")

    def _subject_employee_no(self, payload: Mapping[str, Any], requester: Employee) -> int:
        raw = payload.get("employee_no")
        if raw in (None, ""):
            return requester.employee_no
        employee_no = require_int(raw, "employee_no")
        if employee_no != requester.employee_no and requester.role not in _PROXY_ROLES:
            raise AuthorizationError("You can only submit requests for yourself")
        return employee_no

    def _load(self, request_id: int, *, for_update: bool = True) -> ApprovalRequest:
        request = self._requests.get(int(request_id), for_update=for_update)
        if not request:
            raise NotFoundError(f"Request {request_id} not found")
        return request

    def _load_pending(self, request_id: int, expected_version: Optional[int]) -> ApprovalRequest:
        request = self._load(request_id)
        if expected_version is not None and request.version != int(expected_version):
            raise ConcurrentModificationError(f"Request {request_id} was modified by another user")
        if request.status != RequestStatus.PENDING:
            raise InvalidStateError(f"Request {request_id} is already {request.status.name}")
        return request

    @staticmethod
    def _require_current_approver(request: ApprovalRequest, approver_id: int) -> None:
        if request.next_approval is None or int(approver_id) != int(request.next_approval):
            logger.warning(
                "Employee %s is not the current approver of request %s (expected %s)",
                approver_id,
                request.request_id,
                request.next_approval,
            )
            raise UnauthorizedApproverError("You are not the current approver of this request")

    def _save(self, request: ApprovalRequest, **changes: Any) -> ApprovalRequest:
        updated = replace(request, **changes)
        if not self._requests.update_state(updated, expected_version=request.version):
            raise ConcurrentModificationError(f"Request {request.request_id} was modified by another user")
        return replace(updated, version=request.version + 1)

    def _apply_once(
        self,
        request: ApprovalRequest,
        transition: Transition,
        apply: Callable[[], None],
        *,
        now: datetime,
    ) -> None:
        claimed = self._ledger.claim(
            subject=side_effect_subject(request.request_id),
            transition=transition.value,
            at=now,
        )
        if not claimed:
            raise InvalidStateError(f"{transition.value} was already applied to request {request.request_id}")
        apply()
