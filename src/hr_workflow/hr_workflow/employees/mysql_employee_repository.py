from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, lock_clause
from .model import Employee, SalaryRaise
from .repository import EmployeeRepository

_EMPLOYEE_COLUMNS = """
    employee_no, employee_name, username, password_hash, role,
    department_code, project_code, monthly_salary, leave_balance_days, employment_status
"""


def _row_to_employee(row: dict) -> Employee:
    return Employee(
        employee_no=int(row["employee_no"]),
        employee_name=row["employee_name"],
        username=row["username"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        department_code=row.get("department_code"),
        project_code=row.get("project_code"),
        monthly_salary=Decimal(str(row.get("monthly_salary") or 0)),
        leave_balance_days=Decimal(str(row.get("leave_balance_days") or 0)),
        employment_status=row.get("employment_status") or "ACTIVE",
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_no: int, *, for_update: bool = False) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_EMPLOYEE_COLUMNS} FROM employees WHERE employee_no=%s{lock_clause(for_update)}",
                (int(employee_no),),
            )
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def get_by_username(self, username: str) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_EMPLOYEE_COLUMNS} FROM employees WHERE username=%s", (username,))
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def adjust_leave_balance(self, employee_no: int, delta: Decimal) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE employees
                SET leave_balance_days = leave_balance_days + %s
                WHERE employee_no=%s AND leave_balance_days + %s >= 0
                """,
                (delta, int(employee_no), delta),
            )
            return cur.rowcount > 0

    def set_project(self, employee_no: int, project_code: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employees SET project_code=%s WHERE employee_no=%s",
                (int(project_code), int(employee_no)),
            )
            return cur.rowcount > 0

    def set_monthly_salary(self, employee_no: int, salary: Decimal) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE employees SET monthly_salary=%s WHERE employee_no=%s", (salary, int(employee_no)))
            return cur.rowcount > 0

    def record_salary_raise(self, salary_raise: SalaryRaise) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO salary_raises(
                    employee_no, old_salary, new_salary, raise_percentage,
                    effective_date, reason, processed_by
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    salary_raise.employee_no,
                    salary_raise.old_salary,
                    salary_raise.new_salary,
                    salary_raise.raise_percentage,
                    salary_raise.effective_date,
                    salary_raise.reason,
                    salary_raise.processed_by,
                ),
            )
            return int(cur.lastrowid)

    def add_leave_to_active(self, days: Decimal) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE employees
                SET leave_balance_days = COALESCE(leave_balance_days, 0) + %s
                WHERE employment_status='ACTIVE'
                """,
                (days,),
            )
            return int(cur.rowcount)
