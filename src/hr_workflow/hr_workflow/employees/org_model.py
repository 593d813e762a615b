from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class Department:
    department_code: int
    department_name: str
    manager_no: Optional[int] = None


@dataclass(frozen=True)
class Project:
    project_code: int
    project_name: str
    manager_no: Optional[int] = None
    regional_manager_no: Optional[int] = None
    total_amount: Optional[Decimal] = None
