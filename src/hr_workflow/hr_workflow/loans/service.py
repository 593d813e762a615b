from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.exceptions import InvalidStateError, NotFoundError
from ..database.connection import TransactionManager
from .model import LoanInstallment
from .repository import LoanRepository

logger = logging.getLogger(__name__)


class LoanService:
    """Reads over approved loans and installment payment (payroll deduction)."""

    def __init__(self, loans: LoanRepository, *, tx: TransactionManager):
        self._loans = loans
        self._tx = tx

    def get_installments(self, loan_request_id: int) -> Sequence[LoanInstallment]:
        if not self._loans.get_loan(int(loan_request_id)):
            raise NotFoundError(f"Loan {loan_request_id} not found")
        return self._loans.list_installments(request_id=int(loan_request_id))

    def get_outstanding_balance(self, employee_no: int) -> Decimal:
        return self._loans.outstanding_balance(employee_no=int(employee_no))

    def pay_installment(self, installment_id: int, *, now: Optional[datetime] = None) -> LoanInstallment:
        now = now or now_local()

        with self._tx.transaction():
            installment = self._loans.get_installment(int(installment_id), for_update=True)
            if not installment:
                raise NotFoundError(f"Installment {installment_id} not found")
            if installment.is_paid:
                raise InvalidStateError(f"Installment {installment_id} is already paid")

            loan = self._loans.get_loan(installment.request_id, for_update=True)
            if not loan or not loan.is_active:
                raise InvalidStateError(f"Loan {installment.request_id} is not active")

            if not self._loans.mark_installment_paid(installment_id=installment.installment_id, paid_date=now.date()):
                raise InvalidStateError(f"Installment {installment_id} is already paid")

            remaining = max(loan.remaining_balance - installment.installment_amount, Decimal("0"))
            self._loans.update_loan_balance(request_id=loan.request_id, remaining_balance=remaining, is_active=remaining > 0)
            paid = self._loans.get_installment(installment.installment_id)

        logger.info(
            "Installment %s of loan %s paid; remaining balance %s",
            installment_id,
            loan.request_id,
            remaining,
        )
        if remaining == 0:
            logger.info("Loan %s fully paid", loan.request_id)
        return paid
