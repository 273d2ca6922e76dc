from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from hireconsole.core.config import get_settings
from hireconsole.domain.events import AuditAction, AuditEntry
from hireconsole.domain.state import SessionContext
from hireconsole.persistence.db import SessionLocal
from hireconsole.persistence.repos.audit import build_log


logger = logging.getLogger(__name__)

_SENSITIVE_KEY_PATTERNS = ["api_key", "authorization", "token", "secret", "password"]
_REDACTED_VALUE = "[REDACTED]"


def _is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return any(pattern in lowered for pattern in _SENSITIVE_KEY_PATTERNS)


def sanitize_details(value: Any) -> Any:
    # Recursively scrub credential-like fields while preserving structure.
    if isinstance(value, dict):
        sanitized: dict[str, Any] = {}
        for raw_key, raw_value in value.items():
            key = str(raw_key)
            if _is_sensitive_key(key):
                sanitized[key] = _REDACTED_VALUE
            else:
                sanitized[key] = sanitize_details(raw_value)
        return sanitized
    if isinstance(value, list):
        return [sanitize_details(item) for item in value]
    return value


def get_request_context(request: Request | None) -> dict[str, str | None]:
    # Client hints for audit rows; credentials are never copied.
    if request is None:
        return {"ip_address": None, "user_agent": None}
    ip_address = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")
    return {"ip_address": ip_address, "user_agent": user_agent}


def build_entry(
    context: SessionContext | None,
    action: AuditAction,
    *,
    resource_type: str | None = None,
    resource_id: str | None = None,
    details: dict[str, Any] | None = None,
    request_context: dict[str, str | None] | None = None,
    user_id: str | None = None,
) -> AuditEntry:
    """Describe an action as seen from ``context``.

    The tenant is the effective tenant of the context; ``impersonated_from``
    carries the home tenant only while impersonating.
    """
    request_context = request_context or {}
    return AuditEntry(
        action=action,
        tenant_id=context.effective_tenant_id if context else None,
        user_id=user_id or (context.user_id if context else None),
        resource_type=resource_type,
        resource_id=resource_id,
        details=details or {},
        impersonated_from=context.impersonated_from if context else None,
        ip_address=request_context.get("ip_address"),
        user_agent=request_context.get("user_agent"),
    )


class AuditRecorder:
    """Append-only sink fed by post-commit events.

    ``emit`` never blocks or raises; each entry is written in its own session
    on a background task so an unavailable audit table cannot fail the action
    that produced it.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession] = SessionLocal) -> None:
        self._session_factory = session_factory
        self._pending: set[asyncio.Task[None]] = set()

    def emit(self, entry: AuditEntry) -> None:
        if not get_settings().audit_enabled:
            return
        try:
            task = asyncio.get_running_loop().create_task(self._write(entry))
        except RuntimeError:
            logger.warning("audit_emit_without_loop action=%s", entry.action)
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, entry: AuditEntry) -> None:
        async with self._session_factory() as session:
            try:
                session.add(build_log(entry, details=sanitize_details(entry.details)))
                await session.commit()
            except (SQLAlchemyError, OSError) as exc:
                await session.rollback()
                logger.warning(
                    "audit_log_write_failed action=%s user_id=%s tenant_id=%s",
                    entry.action,
                    entry.user_id,
                    entry.tenant_id,
                    exc_info=exc,
                )

    async def drain(self) -> None:
        # Wait for in-flight writes; used on shutdown and by tests.
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


_recorder: AuditRecorder | None = None


def get_audit_recorder() -> AuditRecorder:
    global _recorder
    if _recorder is None:
        _recorder = AuditRecorder()
    return _recorder
