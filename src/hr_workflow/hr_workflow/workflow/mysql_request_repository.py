from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence, Tuple

from ..core.enums import RequestStatus, RequestType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, lock_clause
from .model import SORTABLE_FIELDS, ApprovalRequest, PageRequest, RequestFilter
from .repository import RequestRepository, SideEffectLedger

_REQUEST_COLUMNS = """
    request_id, request_type, requester_id, employee_no, department_code, project_code,
    trans_status, next_app_level, next_approval, approved_by, approved_date,
    rejection_reason, cancellation_reason, effective_date, request_date,
    closed_at_level, version
"""


def _row_to_request(r: dict) -> ApprovalRequest:
    return ApprovalRequest(
        request_id=int(r["request_id"]),
        request_type=RequestType(r["request_type"]),
        requester_id=int(r["requester_id"]),
        employee_no=int(r["employee_no"]),
        status=RequestStatus(r["trans_status"]),
        request_date=r["request_date"],
        department_code=r.get("department_code"),
        project_code=r.get("project_code"),
        next_app_level=r.get("next_app_level"),
        next_approval=r.get("next_approval"),
        approved_by=r.get("approved_by"),
        approved_date=r.get("approved_date"),
        rejection_reason=r.get("rejection_reason"),
        cancellation_reason=r.get("cancellation_reason"),
        effective_date=r.get("effective_date"),
        closed_at_level=r.get("closed_at_level"),
        version=int(r.get("version") or 0),
    )


class MySQLRequestRepository(RequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        request_type: RequestType,
        requester_id: int,
        employee_no: int,
        department_code: Optional[int],
        project_code: Optional[int],
        next_app_level: int,
        next_approval: int,
        effective_date: Optional[date],
        request_date: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO approval_requests(
                    request_type, requester_id, employee_no, department_code, project_code,
                    trans_status, next_app_level, next_approval, effective_date, request_date, version
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,0)
                """,
                (
                    request_type.value,
                    int(requester_id),
                    int(employee_no),
                    department_code,
                    project_code,
                    RequestStatus.PENDING.value,
                    int(next_app_level),
                    int(next_approval),
                    effective_date,
                    request_date,
                ),
            )
            return int(cur.lastrowid)

    def get(self, request_id: int, *, for_update: bool = False) -> Optional[ApprovalRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_REQUEST_COLUMNS} FROM approval_requests WHERE request_id=%s{lock_clause(for_update)}",
                (int(request_id),),
            )
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def update_state(self, request: ApprovalRequest, *, expected_version: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE approval_requests
                SET trans_status=%s, next_app_level=%s, next_approval=%s,
                    approved_by=%s, approved_date=%s, rejection_reason=%s,
                    cancellation_reason=%s, closed_at_level=%s, version=version+1
                WHERE request_id=%s AND version=%s
                """,
                (
                    request.status.value,
                    request.next_app_level,
                    request.next_approval,
                    request.approved_by,
                    request.approved_date,
                    request.rejection_reason,
                    request.cancellation_reason,
                    request.closed_at_level,
                    int(request.request_id),
                    int(expected_version),
                ),
            )
            return cur.rowcount > 0

    def list_pending_for_approver(
        self,
        *,
        approver_id: int,
        request_type: Optional[RequestType] = None,
        limit: int = 200,
    ) -> Sequence[ApprovalRequest]:
        clauses = ["trans_status=%s", "next_approval=%s"]
        params: list[object] = [RequestStatus.PENDING.value, int(approver_id)]
        if request_type is not None:
            clauses.append("request_type=%s")
            params.append(request_type.value)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REQUEST_COLUMNS}
                FROM approval_requests
                WHERE {where}
                ORDER BY request_date ASC, request_id ASC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def list_for_employee(
        self,
        *,
        employee_no: int,
        request_type: Optional[RequestType] = None,
        limit: int = 200,
    ) -> Sequence[ApprovalRequest]:
        clauses = ["employee_no=%s"]
        params: list[object] = [int(employee_no)]
        if request_type is not None:
            clauses.append("request_type=%s")
            params.append(request_type.value)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REQUEST_COLUMNS}
                FROM approval_requests
                WHERE {where}
                ORDER BY request_date DESC, request_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def search(self, filters: RequestFilter, page: PageRequest) -> Tuple[Sequence[ApprovalRequest], int]:
        clauses = ["1=1"]
        params: list[object] = []

        if filters.status is not None:
            clauses.append("trans_status=%s")
            params.append(filters.status.value)
        if filters.request_type is not None:
            clauses.append("request_type=%s")
            params.append(filters.request_type.value)
        if filters.employee_no is not None:
            clauses.append("employee_no=%s")
            params.append(int(filters.employee_no))
        if filters.date_from is not None:
            clauses.append("DATE(request_date) >= %s")
            params.append(filters.date_from)
        if filters.date_to is not None:
            clauses.append("DATE(request_date) <= %s")
            params.append(filters.date_to)

        where = " AND ".join(clauses)
        # Both values are whitelisted by the query service.
        column = SORTABLE_FIELDS[page.sort_by]
        direction = "ASC" if page.direction == "ASC" else "DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM approval_requests WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)

            cur.execute(
                f"""
                SELECT {_REQUEST_COLUMNS}
                FROM approval_requests
                WHERE {where}
                ORDER BY {column} {direction}, request_id {direction}
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(page.size), int(page.offset)]),
            )
            return [_row_to_request(r) for r in fetchall(cur)], total


class MySQLSideEffectLedger(SideEffectLedger):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def claim(self, *, subject: str, transition: str, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO workflow_side_effects(subject, transition, applied_at)
                VALUES(%s,%s,%s)
                """,
                (subject, transition, at),
            )
            return cur.rowcount > 0
