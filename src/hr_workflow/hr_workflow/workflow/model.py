from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Generic, Optional, Sequence, TypeVar

from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import RequestStatus, RequestType

T = TypeVar("T")


@dataclass(frozen=True)
class ApprovalRequest:
    """Generic workflow state shared by every request type.

    `requester_id` is who submitted; `employee_no` is whom the request is about.
    `closed_at_level` records the level at which the request left PENDING.
    """

    request_id: int
    request_type: RequestType
    requester_id: int
    employee_no: int
    status: RequestStatus
    request_date: datetime
    department_code: Optional[int] = None
    project_code: Optional[int] = None
    next_app_level: Optional[int] = None
    next_approval: Optional[int] = None
    approved_by: Optional[int] = None
    approved_date: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    cancellation_reason: Optional[str] = None
    effective_date: Optional[date] = None
    closed_at_level: Optional[int] = None
    version: int = 0
    details: Any = field(default=None, compare=False)

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING


@dataclass(frozen=True)
class RequestFilter:
    status: Optional[RequestStatus] = None
    request_type: Optional[RequestType] = None
    employee_no: Optional[int] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    size: int = DEFAULT_PAGE_SIZE
    sort_by: str = "request_date"
    direction: str = "DESC"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    total: int
    page: int
    size: int

    @property
    def pages(self) -> int:
        if self.size <= 0:
            return 0
        return (self.total + self.size - 1) // self.size


# Public sort field -> column; anything else is refused.
SORTABLE_FIELDS = {
    "request_date": "request_date",
    "request_id": "request_id",
    "effective_date": "effective_date",
    "status": "trans_status",
    "request_type": "request_type",
    "employee_no": "employee_no",
}
