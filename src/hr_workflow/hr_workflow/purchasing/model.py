from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class PurchaseOrder:
    """Payload of a PURCHASE_ORDER request (`purchase_orders`)."""

    request_id: int
    supplier_code: int
    order_amount: Decimal
    project_code: Optional[int] = None
    description: Optional[str] = None
