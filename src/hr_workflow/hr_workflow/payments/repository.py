from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol

from .model import PaymentRequestDetails


class PaymentRequestRepository(Protocol):
    def create(self, details: PaymentRequestDetails) -> PaymentRequestDetails:
        raise NotImplementedError

    def get(self, request_id: int) -> Optional[PaymentRequestDetails]:
        raise NotImplementedError

    def committed_total(self, *, project_code: int) -> Decimal:
        """Sum of pending and approved payment requests for the project."""

        raise NotImplementedError

    def mark_processed(self, *, request_id: int, processed_by: int, processed_date: datetime) -> bool:
        raise NotImplementedError
