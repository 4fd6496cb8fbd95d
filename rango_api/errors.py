from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

DEFAULT_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
}


class BootstrapError(RuntimeError):
    """Fatal startup failure. The process driver exits non-zero on any subclass."""


class ConfigError(BootstrapError):
    """One or more environment values failed validation.

    ``problems`` keeps every offending field in declaration order, so a single
    error reports the whole environment rather than the first bad value.
    """

    def __init__(self, problems: Sequence[tuple[str, str]]) -> None:
        self.problems: list[tuple[str, str]] = list(problems)
        detail = "; ".join(f"{field}: {reason}" for field, reason in self.problems)
        super().__init__(f"Invalid environment configuration: {detail}")

    @property
    def fields(self) -> list[str]:
        return [field for field, _reason in self.problems]


class UnregisteredTokenError(BootstrapError, LookupError):
    def __init__(self, token: object) -> None:
        self.token = token
        super().__init__(f"No service registered for token {token!r}")


class DuplicateTokenError(BootstrapError):
    def __init__(self, token: object) -> None:
        self.token = token
        super().__init__(f"Service token {token!r} is already registered; pass replace=True to overwrite it")


class CircularDependencyError(BootstrapError):
    def __init__(self, chain: Sequence[object]) -> None:
        self.chain = list(chain)
        path = " -> ".join(repr(token) for token in self.chain)
        super().__init__(f"Circular service dependency: {path}")


class RegistrationError(BootstrapError):
    def __init__(self, group: str, message: str) -> None:
        self.group = group
        super().__init__(f"Route group {group!r} failed to register: {message}")


def error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: Optional[Any] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    payload: dict[str, Any] = {"code": code, "message": message}
    if request_id:
        payload["request_id"] = request_id
    if details is not None:
        payload["details"] = jsonable_encoder(details)

    response_headers = dict(headers or {})
    if request_id:
        response_headers["X-Request-Id"] = request_id
    return JSONResponse(payload, status_code=status_code, headers=response_headers or None)


def http_exception_response(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = DEFAULT_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    message = str(exc.detail) if exc.detail is not None else "Request failed"
    return error_response(
        request,
        status_code=exc.status_code,
        code=code,
        message=message,
        headers=getattr(exc, "headers", None),
    )
