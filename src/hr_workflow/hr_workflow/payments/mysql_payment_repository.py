from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, from_yn, yn
from .model import PaymentRequestDetails
from .repository import PaymentRequestRepository


class MySQLPaymentRequestRepository(PaymentRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, details: PaymentRequestDetails) -> PaymentRequestDetails:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO project_payment_requests(
                    request_id, project_code, supplier_code, payment_amount, payment_purpose, is_processed
                )
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(details.request_id),
                    int(details.project_code),
                    details.supplier_code,
                    details.payment_amount,
                    details.payment_purpose,
                    yn(False),
                ),
            )
        return details

    def get(self, request_id: int) -> Optional[PaymentRequestDetails]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT request_id, project_code, supplier_code, payment_amount, payment_purpose,
                       is_processed, processed_by, processed_date
                FROM project_payment_requests
                WHERE request_id=%s
                """,
                (int(request_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return PaymentRequestDetails(
                request_id=int(r["request_id"]),
                project_code=int(r["project_code"]),
                supplier_code=r.get("supplier_code"),
                payment_amount=Decimal(str(r["payment_amount"])),
                payment_purpose=r.get("payment_purpose"),
                is_processed=from_yn(r.get("is_processed")),
                processed_by=r.get("processed_by"),
                processed_date=r.get("processed_date"),
            )

    def committed_total(self, *, project_code: int) -> Decimal:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(p.payment_amount), 0) AS total
                FROM project_payment_requests p
                JOIN approval_requests r ON r.request_id = p.request_id
                WHERE p.project_code=%s AND r.trans_status IN (%s, %s)
                """,
                (int(project_code), RequestStatus.PENDING.value, RequestStatus.APPROVED.value),
            )
            r = fetchone(cur) or {}
            return Decimal(str(r.get("total") or 0))

    def mark_processed(self, *, request_id: int, processed_by: int, processed_date: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE project_payment_requests
                SET is_processed='Y', processed_by=%s, processed_date=%s
                WHERE request_id=%s AND is_processed='N'
                """,
                (int(processed_by), processed_date, int(request_id)),
            )
            return cur.rowcount > 0
