from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from .model import TransferDetails


class TransferRepository(Protocol):
    def create(self, details: TransferDetails) -> TransferDetails:
        raise NotImplementedError

    def get(self, request_id: int) -> Optional[TransferDetails]:
        raise NotImplementedError

    def has_pending_for_employee(self, *, employee_no: int) -> bool:
        raise NotImplementedError

    def mark_executed(self, *, request_id: int, executed_by: int, executed_date: datetime) -> bool:
        """Flip is_executed once; False when it was already executed."""

        raise NotImplementedError
