from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class PaymentRequestDetails:
    """Payload of a PROJ_PAYMENT request (`project_payment_requests`)."""

    request_id: int
    project_code: int
    supplier_code: Optional[int]
    payment_amount: Decimal
    payment_purpose: Optional[str] = None
    is_processed: bool = False
    processed_by: Optional[int] = None
    processed_date: Optional[datetime] = None
