from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from ..core.enums import CompensationKind


@dataclass(frozen=True)
class CompensationEntry:
    """Monthly allowance or deduction line (`compensation_entries`); payroll reads approved ones."""

    request_id: int
    employee_no: int
    kind: CompensationKind
    type_code: int
    transaction_date: date
    amount: Decimal
    notes: Optional[str] = None
