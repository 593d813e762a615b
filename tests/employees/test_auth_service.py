from __future__ import annotations

import pytest
from werkzeug.security import generate_password_hash

from src.hr_workflow.hr_workflow.core.enums import Role
from src.hr_workflow.hr_workflow.core.exceptions import AuthenticationError, ValidationError
from src.hr_workflow.hr_workflow.employees.service import AuthService
from tests.fakes import FakeEmployees, make_employee


def _service():
    employees = FakeEmployees(
        [
            make_employee(5, "Requester", username="employee", password_hash=generate_password_hash("staff123")),
            make_employee(77, "Former", username="former", status="TERMINATED", password_hash=generate_password_hash("x")),
            make_employee(8, "Unset", username="unset", password_hash="CHANGE_ME"),
        ]
    )
    return AuthService(employees)


def test_authenticate_returns_session_employee():
    s_emp = _service().authenticate("employee", "staff123")

    assert s_emp.employee_no == 5
    assert s_emp.role == Role.EMPLOYEE
    assert s_emp.department_code == 20


@pytest.mark.parametrize(
    "username, password",
    [
        ("employee", "wrong"),
        ("nobody", "staff123"),
        ("former", "x"),
        ("unset", "CHANGE_ME"),
    ],
)
def test_authenticate_refuses_bad_credentials(username, password):
    with pytest.raises(AuthenticationError):
        _service().authenticate(username, password)


def test_username_is_required():
    with pytest.raises(ValidationError):
        _service().authenticate("  ", "staff123")
