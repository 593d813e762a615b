from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Holiday, LeaveRequestDetails
from .repository import HolidayRepository, LeaveRepository


def _row_to_leave(r: dict) -> LeaveRequestDetails:
    return LeaveRequestDetails(
        request_id=int(r["request_id"]),
        employee_no=int(r["employee_no"]),
        leave_from_date=r["leave_from_date"],
        leave_to_date=r["leave_to_date"],
        leave_days=Decimal(str(r["leave_days"])),
        leave_reason=r.get("leave_reason"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, details: LeaveRequestDetails) -> LeaveRequestDetails:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employee_leaves(request_id, employee_no, leave_from_date, leave_to_date, leave_days, leave_reason)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(details.request_id),
                    int(details.employee_no),
                    details.leave_from_date,
                    details.leave_to_date,
                    details.leave_days,
                    details.leave_reason,
                ),
            )
        return details

    def get(self, request_id: int) -> Optional[LeaveRequestDetails]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT request_id, employee_no, leave_from_date, leave_to_date, leave_days, leave_reason
                FROM employee_leaves
                WHERE request_id=%s
                """,
                (int(request_id),),
            )
            r = fetchone(cur)
            return _row_to_leave(r) if r else None

    def find_overlapping(self, *, employee_no: int, start_date: date, end_date: date) -> Sequence[LeaveRequestDetails]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT l.request_id, l.employee_no, l.leave_from_date, l.leave_to_date, l.leave_days, l.leave_reason
                FROM employee_leaves l
                JOIN approval_requests r ON r.request_id = l.request_id
                WHERE l.employee_no=%s
                  AND r.trans_status IN (%s, %s)
                  AND l.leave_from_date <= %s
                  AND l.leave_to_date >= %s
                ORDER BY l.leave_from_date
                """,
                (
                    int(employee_no),
                    RequestStatus.PENDING.value,
                    RequestStatus.APPROVED.value,
                    end_date,
                    start_date,
                ),
            )
            return [_row_to_leave(r) for r in fetchall(cur)]


class MySQLHolidayRepository(HolidayRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_between(self, start_date: date, end_date: date) -> Sequence[Holiday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT holiday_date, holiday_name
                FROM holidays
                WHERE holiday_date BETWEEN %s AND %s
                ORDER BY holiday_date
                """,
                (start_date, end_date),
            )
            return [Holiday(holiday_date=r["holiday_date"], holiday_name=r["holiday_name"]) for r in fetchall(cur)]
