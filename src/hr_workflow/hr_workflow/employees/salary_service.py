from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..common.datetime_utils import now_local
from ..common.validators import require_positive_amount
from ..core.exceptions import NotFoundError, ValidationError
from ..database.connection import TransactionManager
from .model import SalaryRaise
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)

RATIO_PLACES = Decimal("0.0001")
HUNDRED = Decimal("100")


def calculate_raise_percentage(old_salary: Decimal, new_salary: Decimal) -> Decimal:
    """Increase as a percentage, e.g. 8000 -> 8800 gives 10.0000.

    The ratio is rounded HALF_UP to 4 places before scaling, so 1/3 gives 33.3300.
    A zero old salary has no meaningful percentage and yields 0.
    """
    if not old_salary:
        return Decimal("0")
    ratio = ((new_salary - old_salary) / old_salary).quantize(RATIO_PLACES, rounding=ROUND_HALF_UP)
    return ratio * HUNDRED


def calculate_new_salary(old_salary: Decimal, raise_percentage: Decimal) -> Decimal:
    multiplier = Decimal("1") + (raise_percentage / HUNDRED).quantize(RATIO_PLACES, rounding=ROUND_HALF_UP)
    return (old_salary * multiplier).quantize(RATIO_PLACES, rounding=ROUND_HALF_UP)


class SalaryRaiseService:
    """Applies raises to `monthly_salary` and keeps the raise history."""

    def __init__(self, employees: EmployeeRepository, *, tx: TransactionManager):
        self._employees = employees
        self._tx = tx

    def raise_salary(
        self,
        employee_no: int,
        new_salary,
        processed_by: int,
        *,
        effective_date: Optional[date] = None,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SalaryRaise:
        now = now or now_local()
        amount = require_positive_amount(new_salary, "New salary")

        with self._tx.transaction():
            employee = self._employees.get_by_id(int(employee_no), for_update=True)
            if not employee:
                raise NotFoundError(f"Employee {employee_no} not found")
            if not employee.is_active:
                raise ValidationError(f"Employee {employee_no} is not active")

            old_salary = employee.monthly_salary or Decimal("0")
            if amount <= old_salary:
                raise ValidationError(f"New salary must be greater than the current salary {old_salary}")

            if not self._employees.set_monthly_salary(employee.employee_no, amount):
                raise NotFoundError(f"Employee {employee_no} not found")

            salary_raise = SalaryRaise(
                employee_no=employee.employee_no,
                old_salary=old_salary,
                new_salary=amount,
                raise_percentage=calculate_raise_percentage(old_salary, amount),
                effective_date=effective_date or now.date(),
                processed_by=int(processed_by),
                reason=(reason or "").strip() or None,
            )
            raise_id = self._employees.record_salary_raise(salary_raise)

        logger.info(
            "Salary of employee %s raised from %s to %s (%s%%) by %s",
            salary_raise.employee_no,
            old_salary,
            amount,
            salary_raise.raise_percentage,
            processed_by,
        )
        return replace(salary_raise, raise_id=raise_id)
