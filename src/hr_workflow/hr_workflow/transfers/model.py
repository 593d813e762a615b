from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class TransferDetails:
    """Payload of a PROJ_TRANSFER request (`project_transfers`)."""

    request_id: int
    employee_no: int
    from_project_code: int
    to_project_code: int
    transfer_date: date
    transfer_reason: Optional[str] = None
    is_executed: bool = False
    executed_by: Optional[int] = None
    executed_date: Optional[datetime] = None
