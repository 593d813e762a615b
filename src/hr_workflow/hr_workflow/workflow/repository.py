from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence, Tuple

from ..core.enums import RequestType
from .model import ApprovalRequest, PageRequest, RequestFilter


class RequestRepository(Protocol):
    """Persistence of the generic workflow rows (`approval_requests`)."""

    def create(
        self,
        *,
        request_type: RequestType,
        requester_id: int,
        employee_no: int,
        department_code: Optional[int],
        project_code: Optional[int],
        next_app_level: int,
        next_approval: int,
        effective_date: Optional[date],
        request_date: datetime,
    ) -> int:
        raise NotImplementedError

    def get(self, request_id: int, *, for_update: bool = False) -> Optional[ApprovalRequest]:
        raise NotImplementedError

    def update_state(self, request: ApprovalRequest, *, expected_version: int) -> bool:
        """Write the workflow columns of `request` and bump the version.

        Compare-and-swap: returns False when the stored version is no longer
        `expected_version`.
        """

        raise NotImplementedError

    def list_pending_for_approver(
        self,
        *,
        approver_id: int,
        request_type: Optional[RequestType] = None,
        limit: int = 200,
    ) -> Sequence[ApprovalRequest]:
        raise NotImplementedError

    def list_for_employee(
        self,
        *,
        employee_no: int,
        request_type: Optional[RequestType] = None,
        limit: int = 200,
    ) -> Sequence[ApprovalRequest]:
        """All statuses, newest submission first."""

        raise NotImplementedError

    def search(self, filters: RequestFilter, page: PageRequest) -> Tuple[Sequence[ApprovalRequest], int]:
        """Return (rows of the requested page, total matching rows)."""

        raise NotImplementedError


class SideEffectLedger(Protocol):
    """At-most-once guard for ledger mutations (`workflow_side_effects`)."""

    def claim(self, *, subject: str, transition: str, at: datetime) -> bool:
        """Record (subject, transition). Returns False if it was already recorded."""

        raise NotImplementedError
