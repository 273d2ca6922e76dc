from __future__ import annotations

from typing import Any

from hireconsole.apps.api.response import ErrorEnvelope


def _error_example(*, code: str, message: str) -> dict[str, Any]:
    return {
        "error": {"code": code, "message": message},
        "meta": {"request_id": "req_example", "api_version": "v1"},
    }


def _error_response(description: str, *, code: str, message: str) -> dict[str, Any]:
    return {
        "model": ErrorEnvelope,
        "description": description,
        "content": {"application/json": {"example": _error_example(code=code, message=message)}},
    }


DEFAULT_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: _error_response("Bad request", code="UNKNOWN_PERMISSION_KEY", message="Unknown permission key"),
    401: _error_response("Unauthenticated", code="AUTH_UNAUTHENTICATED", message="Missing or invalid bearer token"),
    403: _error_response("Forbidden", code="AUTH_FORBIDDEN", message="Missing permission can_edit_permissions"),
    404: _error_response("Not found", code="TENANT_NOT_FOUND", message="Tenant not found"),
    409: _error_response(
        "Profile missing",
        code="PROFILE_MISSING",
        message="Profile not found. Please contact administrator.",
    ),
    422: _error_response("Validation error", code="REQUEST_VALIDATION_ERROR", message="Validation error"),
    500: _error_response("Update failed", code="UPDATE_FAILED", message="Failed to update permission"),
    503: _error_response("Store unavailable", code="STORE_UNAVAILABLE", message="Permission store unavailable"),
}
