from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from speech_auth.domain.exceptions import AuthError, AuthErrorKind


logger = logging.getLogger(__name__)

_STATUS_TO_CODE = {
    400: AuthErrorKind.VALIDATION_ERROR.value,
    401: AuthErrorKind.UNAUTHORIZED.value,
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    500: AuthErrorKind.INTERNAL_ERROR.value,
}


def error_body(
    *,
    status_code: int,
    code: str,
    message: str,
    path: str,
    reason: str | None = None,
    field: str | None = None,
) -> dict:
    body = {
        "statusCode": status_code,
        "code": code,
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": path,
    }
    if reason:
        body["reason"] = reason
    if field:
        body["field"] = field
    return body


def _error_response(request: Request, *, status_code: int, code: str, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_body(
            status_code=status_code,
            code=code,
            message=message,
            path=request.url.path,
            **extra,
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError):
        log_fn = logger.error if exc.status_code >= 500 else logger.warning
        log_fn(
            "%s %s -> %s: %s",
            request.method,
            request.url.path,
            exc.code,
            exc.message,
        )
        return _error_response(
            request,
            status_code=exc.status_code,
            code=exc.code,
            message=exc.message,
            reason=exc.reason,
            field=exc.field,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "header")]
        return _error_response(
            request,
            status_code=400,
            code=AuthErrorKind.VALIDATION_ERROR.value,
            message=first.get("msg", "Validation failed"),
            field=".".join(location) or None,
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return _error_response(
            request,
            status_code=exc.status_code,
            code=_STATUS_TO_CODE.get(exc.status_code, f"HTTP_{exc.status_code}"),
            message=str(exc.detail),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
        return _error_response(
            request,
            status_code=500,
            code=AuthErrorKind.INTERNAL_ERROR.value,
            message="Internal server error",
        )
