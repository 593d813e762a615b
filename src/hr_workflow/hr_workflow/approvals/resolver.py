from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional, Sequence

from ..core.enums import ApproverFunction, RequestStatus, StepStatus, SystemRole
from ..core.exceptions import ConfigurationError
from ..employees.org_repository import OrganizationRepository
from .model import ApprovalLevel, ApprovalStep, OrgContext
from .repository import ApprovalChainRepository

if TYPE_CHECKING:
    from ..workflow.model import ApprovalRequest

logger = logging.getLogger(__name__)

LEVEL_NAMES = {
    ApproverFunction.DIRECT_MANAGER: "Direct Manager",
    ApproverFunction.PROJECT_MANAGER: "Project Manager",
    ApproverFunction.REGIONAL_MANAGER: "Regional Project Manager",
    ApproverFunction.HR_MANAGER: "HR Manager",
    ApproverFunction.FINANCE_MANAGER: "Finance Manager",
    ApproverFunction.GENERAL_MANAGER: "General Manager",
    ApproverFunction.SPECIFIC_EMPLOYEE: "Designated Approver",
}

_SYSTEM_SEATS = {
    ApproverFunction.HR_MANAGER: SystemRole.HR_MANAGER,
    ApproverFunction.FINANCE_MANAGER: SystemRole.FINANCE_MANAGER,
    ApproverFunction.GENERAL_MANAGER: SystemRole.GENERAL_MANAGER,
}


def level_name(level: ApprovalLevel) -> str:
    fn = level.function
    return LEVEL_NAMES.get(fn, level.function_call) if fn else level.function_call


class ApproverResolver:
    """Maps (request type, org context, level) to the employee who must act next.

    Chains are looked up department-scoped first, then project-scoped, then
    global. A level whose seat is empty is a configuration problem, never
    skipped silently.
    """

    def __init__(self, chains: ApprovalChainRepository, org: OrganizationRepository):
        self._chains = chains
        self._org = org

    def get_chain(
        self,
        request_type: str,
        department_code: Optional[int] = None,
        project_code: Optional[int] = None,
    ) -> Sequence[ApprovalLevel]:
        levels: Sequence[ApprovalLevel] = ()
        if department_code is not None:
            levels = self._chains.find_levels(request_type=request_type, department_code=department_code)
        if not levels and project_code is not None:
            levels = self._chains.find_levels(request_type=request_type, project_code=project_code)
        if not levels:
            levels = self._chains.find_levels(request_type=request_type)

        chain: list[ApprovalLevel] = []
        for level in sorted(levels, key=lambda lv: lv.level_no):
            if not level.is_active:
                continue
            chain.append(level)
            if level.close_level:
                break

        for expected, level in enumerate(chain, start=1):
            if level.level_no != expected:
                raise ConfigurationError(
                    f"Approval chain for {request_type} is not numbered 1..n (found level {level.level_no} at position {expected})"
                )
        return chain

    def require_chain(
        self,
        request_type: str,
        department_code: Optional[int] = None,
        project_code: Optional[int] = None,
    ) -> Sequence[ApprovalLevel]:
        chain = self.get_chain(request_type, department_code, project_code)
        if not chain:
            raise ConfigurationError(f"No approval chain configured for {request_type}")
        return chain

    def resolve_next_approver(
        self,
        request_type: str,
        employee_no: int,
        department_code: Optional[int],
        project_code: Optional[int],
        level: int,
        *,
        seat_context: Optional[OrgContext] = None,
    ) -> Optional[int]:
        """Approver for `level`, or None once `level` is past the end of the chain.

        `seat_context` overrides the org context used to fill the seat (the
        chain itself is always selected by the request's own context).
        """
        chain = self.require_chain(request_type, department_code, project_code)
        if level < 1:
            raise ConfigurationError(f"Invalid approval level {level}")
        if level > len(chain):
            return None

        ctx = seat_context or OrgContext(department_code=department_code, project_code=project_code)
        approver = self.resolve_level(chain[level - 1], ctx)
        logger.debug("Resolved level %s of %s for employee %s -> %s", level, request_type, employee_no, approver)
        return approver

    def resolve_level(self, level: ApprovalLevel, ctx: OrgContext) -> int:
        approver = self._lookup_seat(level, ctx)
        if approver is None:
            raise ConfigurationError(
                f"No approver assigned for level {level.level_no} ({level_name(level)}) of {level.request_type}"
            )
        return approver

    def _lookup_seat(self, level: ApprovalLevel, ctx: OrgContext) -> Optional[int]:
        fn = level.function
        if fn is None:
            raise ConfigurationError(f"Unknown approver function {level.function_call!r}")

        if fn == ApproverFunction.DIRECT_MANAGER:
            if ctx.department_code is None:
                return None
            dept = self._org.get_department(ctx.department_code)
            return dept.manager_no if dept else None

        if fn in (ApproverFunction.PROJECT_MANAGER, ApproverFunction.REGIONAL_MANAGER):
            if ctx.project_code is None:
                return None
            project = self._org.get_project(ctx.project_code)
            if not project:
                return None
            if fn == ApproverFunction.PROJECT_MANAGER:
                return project.manager_no
            return project.regional_manager_no

        if fn == ApproverFunction.SPECIFIC_EMPLOYEE:
            return level.specific_employee_no

        return self._org.get_system_role_holder(_SYSTEM_SEATS[fn])

    def timeline(
        self,
        request: "ApprovalRequest",
        *,
        seat_context: Optional[Callable[[int], Optional[OrgContext]]] = None,
    ) -> list[ApprovalStep]:
        """Projected steps for display. Vacant seats show a None approver instead of failing."""
        chain = self.get_chain(request.request_type.value, request.department_code, request.project_code)

        if request.status == RequestStatus.PENDING:
            current = request.next_app_level or 1
        elif request.approved_by is not None:
            current = len(chain) + 1
        else:
            current = request.closed_at_level or 1

        steps: list[ApprovalStep] = []
        for level in chain:
            if level.level_no < current:
                status = StepStatus.COMPLETED
            elif level.level_no > current:
                status = StepStatus.FUTURE if request.status == RequestStatus.PENDING else StepStatus.SKIPPED
            elif request.status == RequestStatus.PENDING:
                status = StepStatus.PENDING
            elif request.status == RequestStatus.REJECTED:
                status = StepStatus.REJECTED
            else:
                status = StepStatus.CANCELLED

            ctx = seat_context(level.level_no) if seat_context else None
            ctx = ctx or OrgContext(department_code=request.department_code, project_code=request.project_code)
            if status == StepStatus.PENDING:
                approver = request.next_approval
            else:
                try:
                    approver = self._lookup_seat(level, ctx)
                except ConfigurationError:
                    approver = None
            steps.append(
                ApprovalStep(level_no=level.level_no, level_name=level_name(level), approver_no=approver, status=status)
            )
        return steps
