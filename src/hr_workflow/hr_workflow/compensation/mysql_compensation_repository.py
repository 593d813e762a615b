from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ..core.enums import CompensationKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import CompensationEntry
from .repository import CompensationRepository


class MySQLCompensationRepository(CompensationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, entry: CompensationEntry) -> CompensationEntry:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO compensation_entries(request_id, employee_no, kind, type_code, transaction_date, amount, notes)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(entry.request_id),
                    int(entry.employee_no),
                    entry.kind.value,
                    int(entry.type_code),
                    entry.transaction_date,
                    entry.amount,
                    entry.notes,
                ),
            )
        return entry

    def get(self, request_id: int) -> Optional[CompensationEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT request_id, employee_no, kind, type_code, transaction_date, amount, notes
                FROM compensation_entries
                WHERE request_id=%s
                """,
                (int(request_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return CompensationEntry(
                request_id=int(r["request_id"]),
                employee_no=int(r["employee_no"]),
                kind=CompensationKind(r["kind"]),
                type_code=int(r["type_code"]),
                transaction_date=r["transaction_date"],
                amount=Decimal(str(r["amount"])),
                notes=r.get("notes"),
            )
