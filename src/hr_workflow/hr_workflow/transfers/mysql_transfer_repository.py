from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.enums import RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, from_yn, yn
from .model import TransferDetails
from .repository import TransferRepository


class MySQLTransferRepository(TransferRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, details: TransferDetails) -> TransferDetails:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO project_transfers(
                    request_id, employee_no, from_project_code, to_project_code,
                    transfer_date, transfer_reason, is_executed
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(details.request_id),
                    int(details.employee_no),
                    int(details.from_project_code),
                    int(details.to_project_code),
                    details.transfer_date,
                    details.transfer_reason,
                    yn(False),
                ),
            )
        return details

    def get(self, request_id: int) -> Optional[TransferDetails]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT request_id, employee_no, from_project_code, to_project_code,
                       transfer_date, transfer_reason, is_executed, executed_by, executed_date
                FROM project_transfers
                WHERE request_id=%s
                """,
                (int(request_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return TransferDetails(
                request_id=int(r["request_id"]),
                employee_no=int(r["employee_no"]),
                from_project_code=int(r["from_project_code"]),
                to_project_code=int(r["to_project_code"]),
                transfer_date=r["transfer_date"],
                transfer_reason=r.get("transfer_reason"),
                is_executed=from_yn(r.get("is_executed")),
                executed_by=r.get("executed_by"),
                executed_date=r.get("executed_date"),
            )

    def has_pending_for_employee(self, *, employee_no: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS found
                FROM project_transfers t
                JOIN approval_requests r ON r.request_id = t.request_id
                WHERE t.employee_no=%s AND r.trans_status=%s
                LIMIT 1
                """,
                (int(employee_no), RequestStatus.PENDING.value),
            )
            return fetchone(cur) is not None

    def mark_executed(self, *, request_id: int, executed_by: int, executed_date: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE project_transfers
                SET is_executed='Y', executed_by=%s, executed_date=%s
                WHERE request_id=%s AND is_executed='N'
                """,
                (int(executed_by), executed_date, int(request_id)),
            )
            return cur.rowcount > 0
