from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from functools import wraps
from typing import Any

from flask import Flask, jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    DomainError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedApproverError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first: ConcurrentModificationError is an InvalidStateError.
ERROR_STATUS = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (UnauthorizedApproverError, 403),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (InvalidStateError, 409),
    (ConfigurationError, 500),
)


def status_for(error: DomainError) -> int:
    for cls, status in ERROR_STATUS:
        if isinstance(error, cls):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status = status_for(e)
        if status >= 500:
            logger.error("%s: %s", type(e).__name__, e)
        return jsonify({"error": type(e).__name__, "message": str(e)}), status


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "employee_no" not in session:
            raise AuthenticationError("Please log in to continue")
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "employee_no" not in session:
                raise AuthenticationError("Please log in to continue")
            if session.get("role") not in allowed:
                raise AuthorizationError("You do not have permission")
            return view(*args, **kwargs)

        return wrapper

    return decorator


def current_employee_no() -> int:
    return int(session["employee_no"])


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def ok(payload: Any, status: int = 200):
    return jsonify(to_jsonable(payload)), status
