from __future__ import annotations

from typing import Optional

from flask import Flask, request, session

from ..common.datetime_utils import parse_iso_date
from ..common.http import current_employee_no, json_body, login_required, ok
from ..common.validators import require_int
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import RequestStatus, RequestType
from ..core.exceptions import AuthorizationError, ValidationError
from ..container import Container
from .model import PageRequest, RequestFilter
from .service import OVERSIGHT_ROLES

_LISTING_ROLES = frozenset(r.value for r in OVERSIGHT_ROLES)


def _optional_type(container: Container, value: Optional[str]) -> Optional[RequestType]:
    if not value:
        return None
    return container.handler_factory.parse_type(value)


def _optional_status(value: Optional[str]) -> Optional[RequestStatus]:
    if not value:
        return None
    code = value.strip().upper()
    try:
        return RequestStatus(code)
    except ValueError:
        try:
            return RequestStatus[code]
        except KeyError:
            raise ValidationError(f"Unknown status: {value!r}")


def _optional_version(data: dict) -> Optional[int]:
    raw = data.get("version")
    return require_int(raw, "version") if raw not in (None, "") else None


def register(app: Flask, container: Container) -> None:
    workflow = container.workflow_service
    queries = container.request_query_service

    @app.route("/api/requests/<string:request_type>", methods=["POST"], endpoint="submit_request")
    @login_required
    def submit_request(request_type: str):
        created = workflow.submit(request_type, json_body(), current_employee_no())
        return ok(created, 201)

    @app.route("/api/requests/<int:request_id>/approve", methods=["POST"], endpoint="approve_request")
    @login_required
    def approve_request(request_id: int):
        data = json_body()
        return ok(workflow.approve(request_id, current_employee_no(), expected_version=_optional_version(data)))

    @app.route("/api/requests/<int:request_id>/reject", methods=["POST"], endpoint="reject_request")
    @login_required
    def reject_request(request_id: int):
        data = json_body()
        return ok(
            workflow.reject(
                request_id,
                current_employee_no(),
                str(data.get("reason") or ""),
                expected_version=_optional_version(data),
            )
        )

    @app.route("/api/requests/<int:request_id>/cancel", methods=["POST"], endpoint="cancel_request")
    @login_required
    def cancel_request(request_id: int):
        data = json_body()
        return ok(workflow.cancel(request_id, current_employee_no(), str(data.get("reason") or "")))

    @app.route("/api/requests/<int:request_id>/execute", methods=["POST"], endpoint="execute_request")
    @login_required
    def execute_request(request_id: int):
        return ok(workflow.execute(request_id, current_employee_no()))

    @app.route("/api/requests/<int:request_id>", methods=["GET"], endpoint="get_request")
    @login_required
    def get_request(request_id: int):
        return ok(workflow.get(request_id, viewer_id=current_employee_no()))

    @app.route("/api/requests/<int:request_id>/timeline", methods=["GET"], endpoint="request_timeline")
    @login_required
    def request_timeline(request_id: int):
        return ok(workflow.timeline(request_id, viewer_id=current_employee_no()))

    @app.route("/api/requests/pending", methods=["GET"], endpoint="pending_requests")
    @login_required
    def pending_requests():
        rt = _optional_type(container, request.args.get("type"))
        return ok(queries.get_pending_for_approver(current_employee_no(), rt))

    @app.route("/api/requests/history", methods=["GET"], endpoint="request_history")
    @login_required
    def request_history():
        rt = _optional_type(container, request.args.get("type"))
        return ok(queries.get_history_for_employee(current_employee_no(), rt))

    @app.route("/api/requests", methods=["GET"], endpoint="list_requests")
    @login_required
    def list_requests():
        args = request.args
        employee_raw = args.get("employee_no")
        employee_no = require_int(employee_raw, "employee_no") if employee_raw else None
        if session.get("role") not in _LISTING_ROLES:
            if employee_no not in (None, current_employee_no()):
                raise AuthorizationError("You can only list your own requests")
            employee_no = current_employee_no()
        filters = RequestFilter(
            status=_optional_status(args.get("status")),
            request_type=_optional_type(container, args.get("type")),
            employee_no=employee_no,
            date_from=parse_iso_date(args["from"]) if args.get("from") else None,
            date_to=parse_iso_date(args["to"]) if args.get("to") else None,
        )
        page = PageRequest(
            page=require_int(args.get("page", 1), "page"),
            size=require_int(args.get("size", DEFAULT_PAGE_SIZE), "size"),
            sort_by=args.get("sort_by", "request_date"),
            direction=args.get("direction", "DESC"),
        )
        result = queries.list_all(filters, page)
        return ok(
            {
                "items": result.items,
                "total": result.total,
                "page": result.page,
                "size": result.size,
                "pages": result.pages,
            }
        )
