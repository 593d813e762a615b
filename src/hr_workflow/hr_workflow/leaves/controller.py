from __future__ import annotations

from flask import Flask, request

from ..common.http import current_employee_no, login_required, ok
from ..common.datetime_utils import parse_iso_date
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/leaves/balance", methods=["GET"], endpoint="leave_balance")
    @login_required
    def leave_balance():
        employee_no = current_employee_no()
        return ok({"employee_no": employee_no, "leave_balance_days": container.leave_service.get_balance(employee_no)})

    @app.route("/api/leaves/working-days", methods=["GET"], endpoint="leave_working_days")
    @login_required
    def leave_working_days():
        start = parse_iso_date(request.args.get("from", ""))
        end = parse_iso_date(request.args.get("to", ""))
        return ok({"from": start, "to": end, "working_days": container.leave_service.working_days(start, end)})
