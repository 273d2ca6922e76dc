from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import time
from typing import AsyncIterator
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.openapi.utils import get_openapi
from starlette.exceptions import HTTPException as StarletteHTTPException

from hireconsole.apps.api.errors import (
    hireconsole_error_handler,
    http_exception_handler,
    tenant_predicate_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
    value_error_handler,
)
from hireconsole.apps.api.response import API_VERSION
from hireconsole.apps.api.routes.audit import router as audit_router
from hireconsole.apps.api.routes.auth import router as auth_router
from hireconsole.apps.api.routes.health import router as health_router
from hireconsole.apps.api.routes.impersonation import router as impersonation_router
from hireconsole.apps.api.routes.permissions import router as permissions_router
from hireconsole.apps.api.routes.tenants import router as tenants_router
from hireconsole.core.config import get_settings
from hireconsole.core.errors import HireConsoleError
from hireconsole.core.logging import configure_logging
from hireconsole.persistence.guards import TenantPredicateError
from hireconsole.services.audit import get_audit_recorder


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    # Flush queued audit writes before the event loop goes away.
    await get_audit_recorder().drain()


def create_app() -> FastAPI:
    configure_logging()
    settings = get_settings()
    app = FastAPI(title="HireConsole API", lifespan=lifespan)

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):  # type: ignore[override]
        # Preserve incoming request IDs or assign a new one for traceability.
        request_id = request.headers.get("X-Request-Id") or str(uuid4())
        request.state.request_id = request_id
        start = time.monotonic()
        response = await call_next(request)
        latency_ms = (time.monotonic() - start) * 1000.0
        logger.debug(
            "request_completed method=%s path=%s status=%s latency_ms=%.1f",
            request.method,
            request.url.path,
            response.status_code,
            latency_ms,
        )
        response.headers.setdefault("X-Request-Id", request_id)
        return response

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HireConsoleError, hireconsole_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(TenantPredicateError, tenant_predicate_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Mount versioned v1 API routes.
    app.include_router(health_router, prefix=f"/{API_VERSION}")
    app.include_router(auth_router, prefix=f"/{API_VERSION}")
    app.include_router(permissions_router, prefix=f"/{API_VERSION}")
    # Super-admin tenant switching and the tenant list behind it.
    app.include_router(impersonation_router, prefix=f"/{API_VERSION}")
    app.include_router(tenants_router, prefix=f"/{API_VERSION}")
    app.include_router(audit_router, prefix=f"/{API_VERSION}")

    def custom_openapi() -> dict:
        # Inject bearer auth and version metadata into the OpenAPI schema.
        if app.openapi_schema:
            return app.openapi_schema
        schema = get_openapi(title="HireConsole API", version=API_VERSION, routes=app.routes)
        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes["BearerAuth"] = {"type": "http", "scheme": "bearer"}
        public_paths = {"/v1/health", "/v1/auth/sign-in"}
        for path, operations in schema.get("paths", {}).items():
            if path in public_paths:
                continue
            for operation in operations.values():
                operation.setdefault("security", [{"BearerAuth": []}])
        app.openapi_schema = schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]
    logger.info("app_created name=%s auth_provider=%s", settings.app_name, settings.auth_provider)
    return app


app = create_app()
