from __future__ import annotations

from decimal import Decimal
from typing import Optional, Protocol

from .model import Employee, SalaryRaise


class EmployeeRepository(Protocol):
    """Repository interface for employees.

    Note (DIP): services depend on this interface, not on a concrete DB.
    """

    def get_by_id(self, employee_no: int, *, for_update: bool = False) -> Optional[Employee]:
        """`for_update` takes a row lock inside the current transaction."""

        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[Employee]:
        raise NotImplementedError

    def adjust_leave_balance(self, employee_no: int, delta: Decimal) -> bool:
        """Add `delta` (may be negative) to the balance.

        Returns False, leaving the row untouched, when the result would go below zero.
        """

        raise NotImplementedError

    def set_project(self, employee_no: int, project_code: int) -> bool:
        raise NotImplementedError

    def set_monthly_salary(self, employee_no: int, salary: Decimal) -> bool:
        raise NotImplementedError

    def record_salary_raise(self, salary_raise: SalaryRaise) -> int:
        """Append to the salary history; returns the new history row id."""

        raise NotImplementedError

    def add_leave_to_active(self, days: Decimal) -> int:
        """Credit `days` to every ACTIVE employee; returns the number of rows changed."""

        raise NotImplementedError
