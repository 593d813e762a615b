from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, FrozenSet, Mapping, Optional

from ..approvals.model import OrgContext
from ..core.enums import RequestStatus, RequestType, Role
from ..core.exceptions import InvalidStateError
from ..employees.model import Employee
from .model import ApprovalRequest


class RequestHandler(ABC):
    """Strategy Pattern: everything that differs between request types.

    The workflow service owns status, levels and approvers; a handler owns the
    domain payload and the ledger writes that happen on finalization,
    compensation and execution. Hooks run inside the caller's transaction.
    """

    request_type: RequestType
    # Roles allowed to call `execute`; empty means the type has no execution step.
    execution_roles: FrozenSet[Role] = frozenset()

    @abstractmethod
    def validate_submission(self, payload: Mapping[str, Any], employee: Employee, *, now: datetime) -> Any:
        """Check preconditions and return the domain details to persist."""

        raise NotImplementedError

    @abstractmethod
    def create_details(self, request_id: int, draft: Any) -> Any:
        raise NotImplementedError

    @abstractmethod
    def load_details(self, request_id: int) -> Any:
        raise NotImplementedError

    def org_context(self, draft: Any, employee: Employee) -> OrgContext:
        """Org context that selects the approval chain."""
        return OrgContext(department_code=employee.department_code, project_code=employee.project_code)

    def effective_date(self, draft: Any) -> Optional[date]:
        return None

    def approval_context(self, details: Any, level: int) -> Optional[OrgContext]:
        """Override the org context used to fill the seat of `level`."""
        return None

    def on_finalize(self, request: ApprovalRequest, details: Any, *, now: datetime) -> None:
        pass

    def on_reject(self, request: ApprovalRequest, details: Any, *, now: datetime) -> None:
        pass

    def can_cancel(self, request: ApprovalRequest, details: Any, *, now: datetime) -> bool:
        if request.status == RequestStatus.PENDING:
            return True
        if request.status == RequestStatus.APPROVED:
            return request.effective_date is not None and request.effective_date > now.date()
        return False

    def on_cancel_pending(self, request: ApprovalRequest, details: Any, *, now: datetime) -> None:
        pass

    def on_compensate(self, request: ApprovalRequest, details: Any, *, now: datetime) -> None:
        """Reverse exactly what `on_finalize` did."""

    @property
    def executable(self) -> bool:
        return bool(self.execution_roles)

    def is_executed(self, details: Any) -> bool:
        return False

    def execute(self, request: ApprovalRequest, details: Any, actor_id: int, *, now: datetime) -> None:
        raise InvalidStateError(f"{self.request_type.value} requests have no execution step")
