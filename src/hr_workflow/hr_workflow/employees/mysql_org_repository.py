from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ..core.enums import SystemRole
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, lock_clause
from .org_model import Department, Project
from .org_repository import OrganizationRepository


class MySQLOrganizationRepository(OrganizationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_department(self, department_code: int) -> Optional[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT department_code, department_name, manager_no FROM departments WHERE department_code=%s",
                (int(department_code),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Department(
                department_code=int(r["department_code"]),
                department_name=r["department_name"],
                manager_no=r.get("manager_no"),
            )

    def get_project(self, project_code: int, *, for_update: bool = False) -> Optional[Project]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT project_code, project_name, manager_no, regional_manager_no, total_amount
                FROM projects
                WHERE project_code=%s
                """
                + lock_clause(for_update),
                (int(project_code),),
            )
            r = fetchone(cur)
            if not r:
                return None
            total = r.get("total_amount")
            return Project(
                project_code=int(r["project_code"]),
                project_name=r["project_name"],
                manager_no=r.get("manager_no"),
                regional_manager_no=r.get("regional_manager_no"),
                total_amount=Decimal(str(total)) if total is not None else None,
            )

    def get_system_role_holder(self, role: SystemRole) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT employee_no FROM system_roles WHERE role_key=%s", (role.value,))
            r = fetchone(cur)
            if not r or r.get("employee_no") is None:
                return None
            return int(r["employee_no"])
