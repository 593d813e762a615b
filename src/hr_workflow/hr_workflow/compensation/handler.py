from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Mapping, Tuple

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_in_range, require_int, require_positive_amount
from ..core.constants import ALLOWANCE_TYPE_CODES, DEDUCTION_TYPE_CODES
from ..core.enums import CompensationKind, RequestStatus, RequestType
from ..core.exceptions import NotFoundError
from ..employees.model import Employee
from ..workflow.handler import RequestHandler
from ..workflow.model import ApprovalRequest
from .model import CompensationEntry
from .repository import CompensationRepository


class _CompensationHandler(RequestHandler):
    """Shared ALLOW / DEDUCT rules. Approval has no ledger effect; payroll picks up approved entries."""

    kind: CompensationKind
    type_codes: Tuple[int, int]

    def __init__(self, entries: CompensationRepository):
        self._entries = entries

    def validate_submission(self, payload: Mapping[str, Any], employee: Employee, *, now: datetime) -> CompensationEntry:
        low, high = self.type_codes
        type_code = require_in_range(require_int(payload.get("type_code"), "Type code"), "Type code", low, high)
        amount = require_positive_amount(payload.get("amount"), "Amount")
        raw_date = payload.get("transaction_date")
        transaction_date = parse_iso_date(str(raw_date)) if raw_date else now.date()
        notes = (str(payload.get("notes") or "")).strip() or None
        return CompensationEntry(
            request_id=0,
            employee_no=employee.employee_no,
            kind=self.kind,
            type_code=type_code,
            transaction_date=transaction_date,
            amount=amount,
            notes=notes,
        )

    def create_details(self, request_id: int, draft: CompensationEntry) -> CompensationEntry:
        return self._entries.create(replace(draft, request_id=int(request_id)))

    def load_details(self, request_id: int) -> CompensationEntry:
        entry = self._entries.get(request_id)
        if not entry:
            raise NotFoundError(f"{self.kind.value} entry for request {request_id} not found")
        return entry

    def can_cancel(self, request: ApprovalRequest, details: CompensationEntry, *, now: datetime) -> bool:
        return request.status == RequestStatus.PENDING


class AllowanceHandler(_CompensationHandler):
    request_type = RequestType.ALLOWANCE
    kind = CompensationKind.ALLOWANCE
    type_codes = ALLOWANCE_TYPE_CODES


class DeductionHandler(_CompensationHandler):
    request_type = RequestType.DEDUCTION
    kind = CompensationKind.DEDUCTION
    type_codes = DEDUCTION_TYPE_CODES
