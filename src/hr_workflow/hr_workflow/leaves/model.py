from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class LeaveRequestDetails:
    """Payload of a VAC request (`employee_leaves`)."""

    request_id: int
    employee_no: int
    leave_from_date: date
    leave_to_date: date
    leave_days: Decimal
    leave_reason: Optional[str] = None


@dataclass(frozen=True)
class Holiday:
    holiday_date: date
    holiday_name: str
