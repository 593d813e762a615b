from __future__ import annotations

from typing import Optional, Protocol

from ..core.enums import SystemRole
from .org_model import Department, Project


class OrganizationRepository(Protocol):
    """Departments, projects and company-wide seats (HR / finance / general manager)."""

    def get_department(self, department_code: int) -> Optional[Department]:
        raise NotImplementedError

    def get_project(self, project_code: int, *, for_update: bool = False) -> Optional[Project]:
        raise NotImplementedError

    def get_system_role_holder(self, role: SystemRole) -> Optional[int]:
        raise NotImplementedError
