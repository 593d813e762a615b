from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, normalize_mysql_time
from .model import AttendanceRecord, ManualAttendanceDetails
from .repository import AttendanceRepository, ManualAttendanceRepository


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_employee_and_date(self, employee_no: int, attendance_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_id, employee_no, attendance_date, check_in_time, check_out_time, status, note
                FROM attendance_records
                WHERE employee_no=%s AND attendance_date=%s
                """,
                (int(employee_no), attendance_date),
            )
            r = fetchone(cur)
            if not r:
                return None
            return AttendanceRecord(
                attendance_id=int(r["attendance_id"]),
                employee_no=int(r["employee_no"]),
                attendance_date=r["attendance_date"],
                check_in_time=r["check_in_time"],
                check_out_time=r.get("check_out_time"),
                status=AttendanceStatus(r["status"]),
                note=r.get("note"),
            )

    def create_record(
        self,
        *,
        employee_no: int,
        attendance_date: date,
        check_in_time: datetime,
        check_out_time: Optional[datetime],
        status: AttendanceStatus,
        note: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(employee_no, attendance_date, check_in_time, check_out_time, status, note)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(employee_no), attendance_date, check_in_time, check_out_time, status.value, note),
            )
            return int(cur.lastrowid)


class MySQLManualAttendanceRepository(ManualAttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, details: ManualAttendanceDetails) -> ManualAttendanceDetails:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO manual_attendance_requests(
                    request_id, employee_no, attendance_date, check_in_time, check_out_time, reason
                )
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(details.request_id),
                    int(details.employee_no),
                    details.attendance_date,
                    details.check_in_time,
                    details.check_out_time,
                    details.reason,
                ),
            )
        return details

    def get(self, request_id: int) -> Optional[ManualAttendanceDetails]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT request_id, employee_no, attendance_date, check_in_time, check_out_time, reason
                FROM manual_attendance_requests
                WHERE request_id=%s
                """,
                (int(request_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return ManualAttendanceDetails(
                request_id=int(r["request_id"]),
                employee_no=int(r["employee_no"]),
                attendance_date=r["attendance_date"],
                # TIME columns come back as timedelta from mysql-connector
                check_in_time=normalize_mysql_time(r["check_in_time"]),
                check_out_time=normalize_mysql_time(r["check_out_time"]),
                reason=r.get("reason"),
            )

    def has_open_request(self, *, employee_no: int, attendance_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS found
                FROM manual_attendance_requests m
                JOIN approval_requests r ON r.request_id = m.request_id
                WHERE m.employee_no=%s AND m.attendance_date=%s AND r.trans_status=%s
                LIMIT 1
                """,
                (int(employee_no), attendance_date, RequestStatus.PENDING.value),
            )
            return fetchone(cur) is not None
