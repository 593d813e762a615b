from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_yn
from .model import ApprovalLevel
from .repository import ApprovalChainRepository


class MySQLApprovalChainRepository(ApprovalChainRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_levels(
        self,
        *,
        request_type: str,
        department_code: Optional[int] = None,
        project_code: Optional[int] = None,
    ) -> Sequence[ApprovalLevel]:
        clauses = ["request_type=%s", "is_active='Y'"]
        params: list[object] = [request_type]

        if department_code is None:
            clauses.append("department_code IS NULL")
        else:
            clauses.append("department_code=%s")
            params.append(int(department_code))
        if project_code is None:
            clauses.append("project_code IS NULL")
        else:
            clauses.append("project_code=%s")
            params.append(int(project_code))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT request_type, level_no, function_call, close_level,
                       department_code, project_code, specific_employee_no, is_active
                FROM requests_approval_set
                WHERE {where}
                ORDER BY level_no
                """,
                tuple(params),
            )
            return [
                ApprovalLevel(
                    request_type=r["request_type"],
                    level_no=int(r["level_no"]),
                    function_call=r["function_call"],
                    close_level=from_yn(r.get("close_level")),
                    department_code=r.get("department_code"),
                    project_code=r.get("project_code"),
                    specific_employee_no=r.get("specific_employee_no"),
                    is_active=from_yn(r.get("is_active")),
                )
                for r in fetchall(cur)
            ]
