from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from hireconsole.apps.api.response import error_response, is_versioned_request
from hireconsole.core.errors import HireConsoleError
from hireconsole.persistence.guards import TenantPredicateError


logger = logging.getLogger(__name__)

_DEFAULT_ERROR_CODES: dict[int, str] = {
    400: "BAD_REQUEST",
    401: "AUTH_UNAUTHENTICATED",
    403: "AUTH_FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
    503: "SERVICE_UNAVAILABLE",
}

# Stable error code -> HTTP status for the domain error taxonomy.
ERROR_STATUS: dict[str, int] = {
    "AUTH_UNAUTHENTICATED": 401,
    "AUTH_INVALID_CREDENTIALS": 401,
    "AUTH_FORBIDDEN": 403,
    "PROFILE_MISSING": 409,
    "UPDATE_FAILED": 500,
    "STORE_UNAVAILABLE": 503,
    "TENANT_NOT_FOUND": 404,
    "UNKNOWN_PERMISSION_KEY": 400,
}


def _default_code(status_code: int) -> str:
    return _DEFAULT_ERROR_CODES.get(status_code, "UNKNOWN_ERROR")


def _split_detail(detail: Any, status_code: int) -> tuple[str, str, dict[str, Any] | None]:
    # Extract code/message/details from HTTPException detail payloads.
    if isinstance(detail, dict):
        code = str(detail.get("code") or _default_code(status_code))
        message = str(detail.get("message") or "Request failed")
        details = {k: v for k, v in detail.items() if k not in {"code", "message"}}
        return code, message, details or None
    if isinstance(detail, str):
        return _default_code(status_code), detail, None
    return _default_code(status_code), "Request failed", None


def _envelope(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    payload = error_response(request=request, code=code, message=message, details=details)
    return JSONResponse(content=payload, status_code=status_code, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if not is_versioned_request(request):
        return JSONResponse(content={"detail": exc.detail}, status_code=exc.status_code, headers=exc.headers)
    code, message, details = _split_detail(exc.detail, exc.status_code)
    return _envelope(
        request,
        status_code=exc.status_code,
        code=code,
        message=message,
        details=details,
        headers=exc.headers,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _envelope(
        request,
        status_code=422,
        code="REQUEST_VALIDATION_ERROR",
        message="Validation error",
        details={"errors": jsonable_encoder(exc.errors())},
    )


async def hireconsole_error_handler(request: Request, exc: HireConsoleError) -> JSONResponse:
    status_code = ERROR_STATUS.get(exc.code, 500)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    if status_code >= 500:
        logger.warning("request_failed path=%s code=%s", request.url.path, exc.code, exc_info=exc)
    return _envelope(request, status_code=status_code, code=exc.code, message=exc.message, headers=headers)


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    # Service-level argument validation (blocked profile fields, negative limits).
    return _envelope(request, status_code=400, code="BAD_REQUEST", message=str(exc))


async def tenant_predicate_exception_handler(request: Request, exc: TenantPredicateError) -> JSONResponse:
    logger.error("tenant_predicate_missing path=%s table=%s", request.url.path, exc.table)
    return _envelope(
        request,
        status_code=500,
        code="TENANT_PREDICATE_REQUIRED",
        message="Tenant scope required",
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Never leak stack traces; the log keeps them.
    logger.exception("unhandled_exception path=%s", request.url.path, exc_info=exc)
    return _envelope(request, status_code=500, code="INTERNAL_ERROR", message="Internal server error")
