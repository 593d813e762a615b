from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Employee roles used for authorization checks."""

    ADMIN = "admin"
    HR_MANAGER = "hr_manager"
    FINANCE_MANAGER = "finance_manager"
    GENERAL_MANAGER = "general_manager"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class RequestType(str, Enum):
    """Request type codes as stored in the approval chain configuration."""

    LEAVE = "VAC"
    LOAN = "LOAN"
    LOAN_POSTPONEMENT = "POSTLOAN"
    PROJECT_TRANSFER = "PROJ_TRANSFER"
    PROJECT_PAYMENT = "PROJ_PAYMENT"
    ALLOWANCE = "ALLOW"
    DEDUCTION = "DEDUCT"
    MANUAL_ATTENDANCE = "MANUAL_ATTENDANCE"
    PURCHASE_ORDER = "PURCHASE_ORDER"


class RequestStatus(str, Enum):
    """Workflow status, serialized with the single-letter codes of the stored data."""

    PENDING = "N"
    APPROVED = "A"
    REJECTED = "R"
    CANCELLED = "C"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING


class ApproverFunction(str, Enum):
    """How the approver of a chain level is looked up."""

    DIRECT_MANAGER = "GetDirectManager"
    PROJECT_MANAGER = "GetProjectManager"
    REGIONAL_MANAGER = "GetRegionalManager"
    HR_MANAGER = "GetHRManager"
    FINANCE_MANAGER = "GetFinManager"
    GENERAL_MANAGER = "GetGeneralManager"
    SPECIFIC_EMPLOYEE = "SpecificEmployee"


class SystemRole(str, Enum):
    """Company-wide seats configured in `system_roles`."""

    HR_MANAGER = "HR_MANAGER"
    FINANCE_MANAGER = "FINANCE_MANAGER"
    GENERAL_MANAGER = "GENERAL_MANAGER"


class StepStatus(str, Enum):
    """Status of one level in an approval timeline."""

    COMPLETED = "COMPLETED"
    PENDING = "PENDING"
    FUTURE = "FUTURE"
    REJECTED = "REJECTED"
    SKIPPED = "SKIPPED"
    CANCELLED = "CANCELLED"


class Transition(str, Enum):
    """Side-effect transitions guarded for at-most-once application."""

    FINALIZE = "FINALIZE"
    COMPENSATE = "COMPENSATE"
    EXECUTE = "EXECUTE"
    ACCRUE = "ACCRUE"


class InstallmentStatus(str, Enum):
    UNPAID = "UNPAID"
    PAID = "PAID"
    POSTPONED = "POSTPONED"


class CompensationKind(str, Enum):
    ALLOWANCE = "ALLOW"
    DEDUCTION = "DEDUCT"


class AttendanceStatus(str, Enum):
    """Normalized attendance status stored in the database."""

    ON_TIME = "ON_TIME"
    LATE = "LATE"
    EARLY_LEAVE = "EARLY_LEAVE"
    ABSENT = "ABSENT"
    MANUAL = "MANUAL"
    UNKNOWN = "UNKNOWN"
