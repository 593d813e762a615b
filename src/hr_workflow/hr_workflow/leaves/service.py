from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import now_local
from ..core.constants import ANNUAL_LEAVE_ACCRUAL_DAYS
from ..core.enums import Transition
from ..core.exceptions import NotFoundError, ValidationError
from ..database.connection import TransactionManager
from ..employees.repository import EmployeeRepository
from ..workflow.repository import SideEffectLedger
from .calendar import LeaveCalendar

logger = logging.getLogger(__name__)


class LeaveService:
    """Leave balance reads and the yearly accrual job."""

    def __init__(
        self,
        employees: EmployeeRepository,
        calendar: LeaveCalendar,
        ledger: SideEffectLedger,
        *,
        tx: TransactionManager,
    ):
        self._employees = employees
        self._calendar = calendar
        self._ledger = ledger
        self._tx = tx

    def get_balance(self, employee_no: int) -> Decimal:
        employee = self._employees.get_by_id(int(employee_no))
        if not employee:
            raise NotFoundError(f"Employee {employee_no} not found")
        return employee.leave_balance_days or Decimal("0")

    def working_days(self, start_date: date, end_date: date) -> int:
        if end_date < start_date:
            raise ValidationError("End date must be on or after start date")
        return self._calendar.working_days(start_date, end_date)

    def accrue_annual(self, year: int, days=ANNUAL_LEAVE_ACCRUAL_DAYS, *, now: Optional[datetime] = None) -> int:
        """Credit every active employee once per calendar year.

        Returns the number of employees credited; 0 when `year` was already accrued.
        """
        now = now or now_local()
        amount = Decimal(str(days))
        if amount <= 0:
            raise ValidationError("Accrual days must be positive")

        with self._tx.transaction():
            if not self._ledger.claim(subject=f"leave-accrual:{int(year)}", transition=Transition.ACCRUE.value, at=now):
                logger.info("Annual leave accrual for %s already applied; skipping", year)
                return 0
            credited = self._employees.add_leave_to_active(amount)

        logger.info("Annual leave accrual for %s: %s days to %s employees", year, amount, credited)
        return credited
