from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from ..common.datetime_utils import add_months, parse_iso_date
from ..common.validators import require_in_range, require_int, require_positive_amount
from ..core.constants import MAX_LOAN_INSTALLMENTS, MAX_LOAN_SALARY_MONTHS, MIN_LOAN_INSTALLMENTS
from ..core.enums import RequestStatus, RequestType
from ..core.exceptions import InsufficientBalanceError, InvalidStateError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..workflow.handler import RequestHandler
from ..workflow.model import ApprovalRequest
from .model import LoanDetails, PostponementDetails
from .repository import LoanRepository
from .schedule import build_schedule

logger = logging.getLogger(__name__)


class LoanRequestHandler(RequestHandler):
    """LOAN: the installment schedule is generated on final approval."""

    request_type = RequestType.LOAN

    def __init__(self, loans: LoanRepository):
        self._loans = loans

    def validate_submission(self, payload: Mapping[str, Any], employee: Employee, *, now: datetime) -> LoanDetails:
        amount = require_positive_amount(payload.get("loan_amount"), "Loan amount")
        count = require_in_range(
            require_int(payload.get("no_of_installments"), "Number of installments"),
            "Number of installments",
            MIN_LOAN_INSTALLMENTS,
            MAX_LOAN_INSTALLMENTS,
        )
        if amount * 100 < count:
            raise ValidationError(f"Loan amount {amount} is too small for {count} installments of at least 0.01")
        first_date = parse_iso_date(str(payload.get("first_installment_date") or ""))

        limit = (employee.monthly_salary or Decimal("0")) * MAX_LOAN_SALARY_MONTHS
        if amount > limit:
            raise InsufficientBalanceError(
                f"Loan amount {amount} exceeds the limit of {MAX_LOAN_SALARY_MONTHS} monthly salaries ({limit})"
            )

        earliest = add_months(now.date(), 1)
        if first_date < earliest:
            raise ValidationError(f"First installment must be on or after {earliest.isoformat()}")

        open_loans = self._loans.find_open_loans(employee_no=employee.employee_no)
        if open_loans:
            raise ValidationError(f"Employee already has an open loan (request {open_loans[0].request_id})")

        schedule = build_schedule(amount, count, first_date)
        return LoanDetails(
            request_id=0,
            employee_no=employee.employee_no,
            loan_amount=amount,
            no_of_installments=count,
            first_installment_date=first_date,
            installment_amount=schedule[0].installment_amount,
            remaining_balance=amount,
            is_active=False,
        )

    def create_details(self, request_id: int, draft: LoanDetails) -> LoanDetails:
        return self._loans.create_loan(replace(draft, request_id=int(request_id)))

    def load_details(self, request_id: int) -> LoanDetails:
        details = self._loans.get_loan(request_id)
        if not details:
            raise NotFoundError(f"Loan details for request {request_id} not found")
        return details

    def effective_date(self, draft: LoanDetails) -> Optional[date]:
        return draft.first_installment_date

    def on_finalize(self, request: ApprovalRequest, details: LoanDetails, *, now: datetime) -> None:
        schedule = build_schedule(details.loan_amount, details.no_of_installments, details.first_installment_date)
        created = self._loans.add_installments(request_id=details.request_id, schedule=schedule)
        self._loans.update_loan_balance(
            request_id=details.request_id,
            remaining_balance=details.loan_amount,
            is_active=True,
        )
        logger.info("Loan %s activated with %s installments", details.request_id, len(created))

    def can_cancel(self, request: ApprovalRequest, details: LoanDetails, *, now: datetime) -> bool:
        if not super().can_cancel(request, details, now=now):
            return False
        if request.status == RequestStatus.APPROVED:
            installments = self._loans.list_installments(request_id=details.request_id)
            return not any(i.is_paid for i in installments)
        return True

    def on_compensate(self, request: ApprovalRequest, details: LoanDetails, *, now: datetime) -> None:
        removed = self._loans.delete_installments(request_id=details.request_id)
        if removed != details.no_of_installments:
            raise InvalidStateError(
                f"Loan {details.request_id} has {removed} installments, expected {details.no_of_installments}"
            )
        self._loans.update_loan_balance(request_id=details.request_id, remaining_balance=Decimal("0"), is_active=False)
        logger.info("Loan %s cancelled; %s installments removed", details.request_id, removed)


class LoanPostponementHandler(RequestHandler):
    """POSTLOAN: moves one installment's due date on final approval."""

    request_type = RequestType.LOAN_POSTPONEMENT

    def __init__(self, loans: LoanRepository):
        self._loans = loans

    def validate_submission(self, payload: Mapping[str, Any], employee: Employee, *, now: datetime) -> PostponementDetails:
        loan_id = require_int(payload.get("loan_request_id"), "Loan")
        installment_id = require_int(payload.get("installment_id"), "Installment")
        new_due_date = parse_iso_date(str(payload.get("new_due_date") or ""))

        loan = self._loans.get_loan(loan_id)
        if not loan or loan.employee_no != employee.employee_no:
            raise NotFoundError(f"Loan {loan_id} not found for employee {employee.employee_no}")
        if not loan.is_active:
            raise ValidationError("Installments of an inactive loan cannot be postponed")

        installment = self._loans.get_installment(installment_id)
        if not installment or installment.request_id != loan.request_id:
            raise ValidationError("Installment does not belong to this loan")
        if installment.is_paid:
            raise ValidationError("A paid installment cannot be postponed")
        if new_due_date <= now.date():
            raise ValidationError("New due date must be in the future")
        if self._loans.has_pending_postponement(installment_id=installment_id):
            raise ValidationError("A postponement request for this installment is already pending")

        reason = (str(payload.get("postponement_reason") or "")).strip() or None
        return PostponementDetails(
            request_id=0,
            employee_no=employee.employee_no,
            loan_request_id=loan.request_id,
            installment_id=installment.installment_id,
            current_due_date=installment.due_date,
            new_due_date=new_due_date,
            postponement_reason=reason,
        )

    def create_details(self, request_id: int, draft: PostponementDetails) -> PostponementDetails:
        return self._loans.create_postponement(replace(draft, request_id=int(request_id)))

    def load_details(self, request_id: int) -> PostponementDetails:
        details = self._loans.get_postponement(request_id)
        if not details:
            raise NotFoundError(f"Postponement details for request {request_id} not found")
        return details

    def effective_date(self, draft: PostponementDetails) -> Optional[date]:
        return draft.current_due_date

    def can_cancel(self, request: ApprovalRequest, details: PostponementDetails, *, now: datetime) -> bool:
        return request.status == RequestStatus.PENDING

    def on_finalize(self, request: ApprovalRequest, details: PostponementDetails, *, now: datetime) -> None:
        if not self._loans.reschedule_installment(installment_id=details.installment_id, new_due_date=details.new_due_date):
            raise InvalidStateError(f"Installment {details.installment_id} was paid in the meantime")
        logger.info(
            "Installment %s moved from %s to %s",
            details.installment_id,
            details.current_due_date,
            details.new_due_date,
        )
