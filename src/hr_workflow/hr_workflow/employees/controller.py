from __future__ import annotations

from datetime import timedelta

from flask import Flask, request, session

from ..common.datetime_utils import parse_iso_date
from ..common.http import current_employee_no, json_body, login_required, ok, roles_required
from ..common.validators import require_decimal, require_int, require_positive_amount
from ..core.constants import DEFAULT_SESSION_DAYS, MAX_RAISE_PERCENTAGE
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container
from .salary_service import calculate_new_salary, calculate_raise_percentage


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        s_emp = container.auth_service.authenticate(
            str(data.get("username") or ""),
            str(data.get("password") or ""),
        )

        session.clear()
        session.permanent = bool(data.get("remember_me"))
        app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)

        session["employee_no"] = s_emp.employee_no
        session["name"] = s_emp.employee_name
        session["role"] = s_emp.role.value

        return ok(
            {
                "employee_no": s_emp.employee_no,
                "employee_name": s_emp.employee_name,
                "role": s_emp.role.value,
                "department_code": s_emp.department_code,
                "project_code": s_emp.project_code,
            }
        )

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return ok({"message": "Logged out"})

    @app.route("/api/auth/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        return ok({"employee_no": current_employee_no(), "name": session.get("name"), "role": session.get("role")})

    @app.route("/api/salary-raise", methods=["POST"], endpoint="salary_raise")
    @roles_required(Role.HR_MANAGER, Role.ADMIN)
    def salary_raise():
        data = json_body()
        effective_raw = data.get("effective_date")
        applied = container.salary_raise_service.raise_salary(
            require_int(data.get("employee_no"), "employee_no"),
            data.get("new_salary"),
            current_employee_no(),
            effective_date=parse_iso_date(str(effective_raw)) if effective_raw else None,
            reason=data.get("reason"),
        )
        return ok(applied)

    @app.route("/api/salary-raise/calculate-percentage", methods=["GET"], endpoint="salary_raise_percentage")
    @roles_required(Role.HR_MANAGER, Role.ADMIN)
    def salary_raise_percentage():
        old_salary = require_positive_amount(request.args.get("old_salary"), "old_salary")
        new_salary = require_positive_amount(request.args.get("new_salary"), "new_salary")
        return ok(
            {
                "old_salary": old_salary,
                "new_salary": new_salary,
                "difference": new_salary - old_salary,
                "raise_percentage": calculate_raise_percentage(old_salary, new_salary),
            }
        )

    @app.route("/api/salary-raise/calculate-new-salary", methods=["GET"], endpoint="salary_raise_new_salary")
    @roles_required(Role.HR_MANAGER, Role.ADMIN)
    def salary_raise_new_salary():
        old_salary = require_positive_amount(request.args.get("old_salary"), "old_salary")
        percentage = require_decimal(request.args.get("raise_percentage"), "raise_percentage")
        if percentage <= -100 or percentage > MAX_RAISE_PERCENTAGE:
            raise ValidationError(f"raise_percentage must be above -100 and at most {MAX_RAISE_PERCENTAGE}")
        new_salary = calculate_new_salary(old_salary, percentage)
        return ok(
            {
                "old_salary": old_salary,
                "raise_percentage": percentage,
                "new_salary": new_salary,
                "difference": new_salary - old_salary,
            }
        )
