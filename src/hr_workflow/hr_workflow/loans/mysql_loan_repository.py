from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import InstallmentStatus, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_yn, lock_clause, yn
from .model import LoanDetails, LoanInstallment, PostponementDetails, ScheduledInstallment
from .repository import LoanRepository

_LOAN_COLUMNS = """
    request_id, employee_no, loan_amount, no_of_installments, first_installment_date,
    installment_amount, remaining_balance, is_active
"""
_INSTALLMENT_COLUMNS = "installment_id, request_id, installment_no, due_date, installment_amount, payment_status, paid_date"


def _row_to_loan(r: dict) -> LoanDetails:
    return LoanDetails(
        request_id=int(r["request_id"]),
        employee_no=int(r["employee_no"]),
        loan_amount=Decimal(str(r["loan_amount"])),
        no_of_installments=int(r["no_of_installments"]),
        first_installment_date=r["first_installment_date"],
        installment_amount=Decimal(str(r["installment_amount"])),
        remaining_balance=Decimal(str(r["remaining_balance"])),
        is_active=from_yn(r.get("is_active")),
    )


def _row_to_installment(r: dict) -> LoanInstallment:
    return LoanInstallment(
        installment_id=int(r["installment_id"]),
        request_id=int(r["request_id"]),
        installment_no=int(r["installment_no"]),
        due_date=r["due_date"],
        installment_amount=Decimal(str(r["installment_amount"])),
        payment_status=InstallmentStatus(r["payment_status"]),
        paid_date=r.get("paid_date"),
    )


class MySQLLoanRepository(LoanRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Loans --------
    def create_loan(self, details: LoanDetails) -> LoanDetails:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO loans(
                    request_id, employee_no, loan_amount, no_of_installments, first_installment_date,
                    installment_amount, remaining_balance, is_active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(details.request_id),
                    int(details.employee_no),
                    details.loan_amount,
                    int(details.no_of_installments),
                    details.first_installment_date,
                    details.installment_amount,
                    details.remaining_balance,
                    yn(details.is_active),
                ),
            )
        return details

    def get_loan(self, request_id: int, *, for_update: bool = False) -> Optional[LoanDetails]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_LOAN_COLUMNS} FROM loans WHERE request_id=%s{lock_clause(for_update)}",
                (int(request_id),),
            )
            r = fetchone(cur)
            return _row_to_loan(r) if r else None

    def find_open_loans(self, *, employee_no: int) -> Sequence[LoanDetails]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT l.request_id, l.employee_no, l.loan_amount, l.no_of_installments, l.first_installment_date,
                       l.installment_amount, l.remaining_balance, l.is_active
                FROM loans l
                JOIN approval_requests r ON r.request_id = l.request_id
                WHERE l.employee_no=%s
                  AND (
                        r.trans_status=%s
                     OR (r.trans_status=%s AND l.is_active='Y' AND l.remaining_balance > 0)
                  )
                """,
                (int(employee_no), RequestStatus.PENDING.value, RequestStatus.APPROVED.value),
            )
            return [_row_to_loan(r) for r in fetchall(cur)]

    def update_loan_balance(self, *, request_id: int, remaining_balance: Decimal, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE loans SET remaining_balance=%s, is_active=%s WHERE request_id=%s",
                (remaining_balance, yn(is_active), int(request_id)),
            )
            return cur.rowcount > 0

    def outstanding_balance(self, *, employee_no: int) -> Decimal:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(remaining_balance), 0) AS total
                FROM loans
                WHERE employee_no=%s AND is_active='Y'
                """,
                (int(employee_no),),
            )
            r = fetchone(cur) or {}
            return Decimal(str(r.get("total") or 0))

    # -------- Installments --------
    def add_installments(self, *, request_id: int, schedule: Sequence[ScheduledInstallment]) -> Sequence[LoanInstallment]:
        with db_cursor(self._conn_factory) as (_, cur):
            for item in schedule:
                cur.execute(
                    """
                    INSERT INTO loan_installments(request_id, installment_no, due_date, installment_amount, payment_status)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (
                        int(request_id),
                        int(item.installment_no),
                        item.due_date,
                        item.installment_amount,
                        InstallmentStatus.UNPAID.value,
                    ),
                )
        return self.list_installments(request_id=request_id)

    def list_installments(self, *, request_id: int) -> Sequence[LoanInstallment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_INSTALLMENT_COLUMNS} FROM loan_installments WHERE request_id=%s ORDER BY installment_no",
                (int(request_id),),
            )
            return [_row_to_installment(r) for r in fetchall(cur)]

    def get_installment(self, installment_id: int, *, for_update: bool = False) -> Optional[LoanInstallment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_INSTALLMENT_COLUMNS} FROM loan_installments WHERE installment_id=%s{lock_clause(for_update)}",
                (int(installment_id),),
            )
            r = fetchone(cur)
            return _row_to_installment(r) if r else None

    def delete_installments(self, *, request_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM loan_installments WHERE request_id=%s", (int(request_id),))
            return int(cur.rowcount)

    def reschedule_installment(self, *, installment_id: int, new_due_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE loan_installments
                SET due_date=%s, payment_status=%s
                WHERE installment_id=%s AND payment_status<>%s
                """,
                (new_due_date, InstallmentStatus.POSTPONED.value, int(installment_id), InstallmentStatus.PAID.value),
            )
            return cur.rowcount > 0

    def mark_installment_paid(self, *, installment_id: int, paid_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE loan_installments
                SET payment_status=%s, paid_date=%s
                WHERE installment_id=%s AND payment_status<>%s
                """,
                (InstallmentStatus.PAID.value, paid_date, int(installment_id), InstallmentStatus.PAID.value),
            )
            return cur.rowcount > 0

    # -------- Postponements --------
    def create_postponement(self, details: PostponementDetails) -> PostponementDetails:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO loan_postponements(
                    request_id, employee_no, loan_request_id, installment_id,
                    current_due_date, new_due_date, postponement_reason
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(details.request_id),
                    int(details.employee_no),
                    int(details.loan_request_id),
                    int(details.installment_id),
                    details.current_due_date,
                    details.new_due_date,
                    details.postponement_reason,
                ),
            )
        return details

    def get_postponement(self, request_id: int) -> Optional[PostponementDetails]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT request_id, employee_no, loan_request_id, installment_id,
                       current_due_date, new_due_date, postponement_reason
                FROM loan_postponements
                WHERE request_id=%s
                """,
                (int(request_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return PostponementDetails(
                request_id=int(r["request_id"]),
                employee_no=int(r["employee_no"]),
                loan_request_id=int(r["loan_request_id"]),
                installment_id=int(r["installment_id"]),
                current_due_date=r["current_due_date"],
                new_due_date=r["new_due_date"],
                postponement_reason=r.get("postponement_reason"),
            )

    def has_pending_postponement(self, *, installment_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS found
                FROM loan_postponements p
                JOIN approval_requests r ON r.request_id = p.request_id
                WHERE p.installment_id=%s AND r.trans_status=%s
                LIMIT 1
                """,
                (int(installment_id), RequestStatus.PENDING.value),
            )
            return fetchone(cur) is not None
