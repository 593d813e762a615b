from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import PurchaseOrder
from .repository import PurchaseOrderRepository


class MySQLPurchaseOrderRepository(PurchaseOrderRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, order: PurchaseOrder) -> PurchaseOrder:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO purchase_orders(request_id, supplier_code, project_code, order_amount, description)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (
                    int(order.request_id),
                    int(order.supplier_code),
                    order.project_code,
                    order.order_amount,
                    order.description,
                ),
            )
        return order

    def get(self, request_id: int) -> Optional[PurchaseOrder]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT request_id, supplier_code, project_code, order_amount, description
                FROM purchase_orders
                WHERE request_id=%s
                """,
                (int(request_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return PurchaseOrder(
                request_id=int(r["request_id"]),
                supplier_code=int(r["supplier_code"]),
                order_amount=Decimal(str(r["order_amount"])),
                project_code=r.get("project_code"),
                description=r.get("description"),
            )
