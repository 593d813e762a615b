from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from datetime import date
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Employee:
    """Domain entity: Employee.

    Note: plain data object (no DB access code). Workflow code only keeps
    employee numbers; names are a read-side concern.
    """

    employee_no: int
    employee_name: str
    username: str
    password_hash: str
    role: Role
    department_code: Optional[int]
    project_code: Optional[int]
    monthly_salary: Decimal = Decimal("0")
    leave_balance_days: Decimal = Decimal("0")
    employment_status: str = "ACTIVE"

    @property
    def is_active(self) -> bool:
        return self.employment_status == "ACTIVE"


@dataclass(frozen=True)
class SalaryRaise:
    """One applied raise of `monthly_salary` (`salary_raises` row)."""

    employee_no: int
    old_salary: Decimal
    new_salary: Decimal
    raise_percentage: Decimal
    effective_date: date
    processed_by: int
    reason: Optional[str] = None
    raise_id: Optional[int] = None
