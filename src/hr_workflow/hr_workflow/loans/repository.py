from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from .model import LoanDetails, LoanInstallment, PostponementDetails, ScheduledInstallment


class LoanRepository(Protocol):
    # Loans
    def create_loan(self, details: LoanDetails) -> LoanDetails:
        raise NotImplementedError

    def get_loan(self, request_id: int, *, for_update: bool = False) -> Optional[LoanDetails]:
        raise NotImplementedError

    def find_open_loans(self, *, employee_no: int) -> Sequence[LoanDetails]:
        """Pending loans plus approved loans that still carry a balance."""

        raise NotImplementedError

    def update_loan_balance(self, *, request_id: int, remaining_balance: Decimal, is_active: bool) -> bool:
        raise NotImplementedError

    def outstanding_balance(self, *, employee_no: int) -> Decimal:
        raise NotImplementedError

    # Installments
    def add_installments(self, *, request_id: int, schedule: Sequence[ScheduledInstallment]) -> Sequence[LoanInstallment]:
        raise NotImplementedError

    def list_installments(self, *, request_id: int) -> Sequence[LoanInstallment]:
        raise NotImplementedError

    def get_installment(self, installment_id: int, *, for_update: bool = False) -> Optional[LoanInstallment]:
        raise NotImplementedError

    def delete_installments(self, *, request_id: int) -> int:
        raise NotImplementedError

    def reschedule_installment(self, *, installment_id: int, new_due_date: date) -> bool:
        """Move an unpaid installment and mark it POSTPONED."""

        raise NotImplementedError

    def mark_installment_paid(self, *, installment_id: int, paid_date: date) -> bool:
        raise NotImplementedError

    # Postponements
    def create_postponement(self, details: PostponementDetails) -> PostponementDetails:
        raise NotImplementedError

    def get_postponement(self, request_id: int) -> Optional[PostponementDetails]:
        raise NotImplementedError

    def has_pending_postponement(self, *, installment_id: int) -> bool:
        raise NotImplementedError
