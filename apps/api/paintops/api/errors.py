from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from paintops.context import get_correlation_id
from paintops.platform.errors import DomainError


def _request_correlation_id(request: Request) -> str | None:
    return get_correlation_id() or getattr(request.state, "correlation_id", None)


def error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Every non-2xx body: ``{code, message, details, correlation_id}``."""
    body = {
        "code": code,
        "message": message,
        "details": details,
        "correlation_id": _request_correlation_id(request),
    }
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def domain_error_response(request: Request, exc: DomainError, *, code: str) -> JSONResponse:
    return error_response(request, status_code=exc.status_code, code=code, message=exc.message, details=exc.details)
