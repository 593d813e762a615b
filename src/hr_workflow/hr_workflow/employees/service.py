from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash

from ..common.validators import require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionEmployee:
    """What we store into Flask session after login."""

    employee_no: int
    employee_name: str
    role: Role
    department_code: Optional[int]
    project_code: Optional[int]


class AuthService:
    """Use case: authenticate employee (login)."""

    def __init__(self, employees: EmployeeRepository):
        self._employees = employees

    def authenticate(self, username: str, password: str) -> SessionEmployee:
        username = require_non_empty(username, "Username")
        employee = self._employees.get_by_username(username)
        if not employee or not employee.is_active:
            logger.warning("Login refused for unknown or inactive user %r", username)
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(employee.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            logger.warning("Login refused for %r: bad password", username)
            raise AuthenticationError("Invalid username or password")

        return SessionEmployee(
            employee_no=employee.employee_no,
            employee_name=employee.employee_name,
            role=employee.role,
            department_code=employee.department_code,
            project_code=employee.project_code,
        )
