from __future__ import annotations

from typing import Iterable, Sequence, Union

from ..core.enums import RequestType
from ..core.exceptions import ValidationError
from .handler import RequestHandler


class RequestHandlerFactory:
    """Factory Pattern: pick the handler for a request type code."""

    def __init__(self, handlers: Iterable[RequestHandler]):
        self._handlers = {h.request_type: h for h in handlers}

    @staticmethod
    def parse_type(value: Union[str, RequestType]) -> RequestType:
        if isinstance(value, RequestType):
            return value
        code = str(value or "").strip().upper()
        try:
            return RequestType(code)
        except ValueError:
            try:
                return RequestType[code]
            except KeyError:
                raise ValidationError(f"Unknown request type: {value!r}")

    def for_type(self, value: Union[str, RequestType]) -> RequestHandler:
        request_type = self.parse_type(value)
        handler = self._handlers.get(request_type)
        if handler is None:
            raise ValidationError(f"Request type {request_type.value} is not supported")
        return handler

    @property
    def request_types(self) -> Sequence[RequestType]:
        return list(self._handlers)
