from __future__ import annotations

from typing import Optional, Sequence

from ..core.constants import DEFAULT_HISTORY_LIMIT, MAX_PAGE_SIZE
from ..core.enums import RequestType
from ..core.exceptions import ValidationError
from .model import SORTABLE_FIELDS, ApprovalRequest, Page, PageRequest, RequestFilter
from .repository import RequestRepository


class RequestQueryService:
    """Read-only listings over the workflow rows. No business rules here."""

    def __init__(self, requests: RequestRepository):
        self._requests = requests

    def get_pending_for_approver(
        self,
        approver_id: int,
        request_type: Optional[RequestType] = None,
        *,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> Sequence[ApprovalRequest]:
        return self._requests.list_pending_for_approver(
            approver_id=int(approver_id),
            request_type=request_type,
            limit=int(limit),
        )

    def get_history_for_employee(
        self,
        employee_no: int,
        request_type: Optional[RequestType] = None,
        *,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> Sequence[ApprovalRequest]:
        return self._requests.list_for_employee(
            employee_no=int(employee_no),
            request_type=request_type,
            limit=int(limit),
        )

    def list_all(self, filters: RequestFilter, page: PageRequest) -> Page[ApprovalRequest]:
        page = self._normalize_page(page)
        if filters.date_from and filters.date_to and filters.date_from > filters.date_to:
            raise ValidationError("date_from must be on or before date_to")

        items, total = self._requests.search(filters, page)
        return Page(items=list(items), total=int(total), page=page.page, size=page.size)

    @staticmethod
    def _normalize_page(page: PageRequest) -> PageRequest:
        if page.page < 1:
            raise ValidationError("page must be >= 1")
        if page.size < 1 or page.size > MAX_PAGE_SIZE:
            raise ValidationError(f"size must be between 1 and {MAX_PAGE_SIZE}")
        if page.sort_by not in SORTABLE_FIELDS:
            raise ValidationError(f"Cannot sort by {page.sort_by!r}; allowed: {', '.join(sorted(SORTABLE_FIELDS))}")
        direction = (page.direction or "DESC").upper()
        if direction not in ("ASC", "DESC"):
            raise ValidationError("direction must be ASC or DESC")
        return PageRequest(page=page.page, size=page.size, sort_by=page.sort_by, direction=direction)
