from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import ApproverFunction, StepStatus


@dataclass(frozen=True)
class ApprovalLevel:
    """One configured level of an approval chain (`requests_approval_set` row)."""

    request_type: str
    level_no: int
    function_call: str
    close_level: bool = False
    department_code: Optional[int] = None
    project_code: Optional[int] = None
    specific_employee_no: Optional[int] = None
    is_active: bool = True

    @property
    def function(self) -> Optional[ApproverFunction]:
        try:
            return ApproverFunction(self.function_call)
        except ValueError:
            return None


@dataclass(frozen=True)
class ApprovalStep:
    """One projected step of a request's approval timeline."""

    level_no: int
    level_name: str
    approver_no: Optional[int]
    status: StepStatus


@dataclass(frozen=True)
class OrgContext:
    """Department / project against which an approver seat is looked up."""

    department_code: Optional[int] = None
    project_code: Optional[int] = None
