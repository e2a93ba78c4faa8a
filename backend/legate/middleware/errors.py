"""
Exception handlers rendering every error as ``{"ok": false, "error": ...}``.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from legate.core.tracing import TracingContext
from legate.middleware.error_codes import get_error_code
from legate.middleware.security_headers import REQUEST_ID_HEADER, SECURITY_HEADERS

logger = logging.getLogger(__name__)


class AccessDenied(HTTPException):
    """
    Access-gate denial.

    Carries an optional ``redirect_to`` so page clients can send the user to
    the login or request-access view instead of showing a bare error.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        redirect_to: Optional[str] = None,
    ):
        super().__init__(status_code=status_code, detail=detail)
        self.redirect_to = redirect_to


class RateLimited(HTTPException):
    """429 with a Retry-After header and matching ``retryAfterSeconds`` field."""

    def __init__(self, detail: str, retry_after_seconds: Optional[int] = None):
        headers = {"Retry-After": str(retry_after_seconds)} if retry_after_seconds else None
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=detail, headers=headers
        )
        self.retry_after_seconds = retry_after_seconds


def error_payload(status_code: int, message: str, **extra: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "ok": False,
        "error": message,
        "code": get_error_code(status_code).value,
    }
    payload.update({k: v for k, v in extra.items() if v is not None})
    return payload


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTPException (and its subclasses) as the standard error payload."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(
            exc.status_code,
            str(exc.detail),
            redirectTo=getattr(exc, "redirect_to", None),
            retryAfterSeconds=getattr(exc, "retry_after_seconds", None),
        ),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Path/query validation failures are plain 400s."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error.get("loc", ()))
        errors.append(f"{field}: {error.get('msg')}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_payload(status.HTTP_400_BAD_REQUEST, "Invalid request", details=errors),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Render uncaught errors as a 500.

    Starlette runs this handler outside every user middleware, so the
    response headers the middleware would add are set here as well.
    """
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    headers = dict(SECURITY_HEADERS)
    headers[REQUEST_ID_HEADER] = TracingContext.get_or_create_correlation_id()
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_payload(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"),
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
