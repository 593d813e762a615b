from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from ..core.enums import InstallmentStatus


@dataclass(frozen=True)
class LoanDetails:
    """Payload of a LOAN request (`loans`).

    `is_active` turns on at final approval and off once the balance reaches zero.
    """

    request_id: int
    employee_no: int
    loan_amount: Decimal
    no_of_installments: int
    first_installment_date: date
    installment_amount: Decimal
    remaining_balance: Decimal
    is_active: bool = False


@dataclass(frozen=True)
class LoanInstallment:
    installment_id: int
    request_id: int
    installment_no: int
    due_date: date
    installment_amount: Decimal
    payment_status: InstallmentStatus = InstallmentStatus.UNPAID
    paid_date: Optional[date] = None

    @property
    def is_paid(self) -> bool:
        return self.payment_status == InstallmentStatus.PAID


@dataclass(frozen=True)
class ScheduledInstallment:
    installment_no: int
    due_date: date
    installment_amount: Decimal


@dataclass(frozen=True)
class PostponementDetails:
    """Payload of a POSTLOAN request (`loan_postponements`)."""

    request_id: int
    employee_no: int
    loan_request_id: int
    installment_id: int
    current_due_date: date
    new_due_date: date
    postponement_reason: Optional[str] = None
