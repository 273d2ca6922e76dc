from __future__ import annotations

from datetime import datetime, timezone
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hireconsole.core.errors import Forbidden, StoreUnavailable, Unauthenticated
from hireconsole.domain.state import SessionContext
from hireconsole.persistence.repos import permissions as permissions_repo
from hireconsole.services.permissions.evaluator import PermissionSet
from hireconsole.services.store import bounded


logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


async def load_permission_set(
    session: AsyncSession,
    context: SessionContext | None,
    *,
    tenant_id: str | None = None,
) -> PermissionSet:
    """Fetch rows for one resolved tenant (the effective tenant by default).

    A context without a profile yields an empty set that grants nothing.
    """
    if context is None or context.profile is None:
        return PermissionSet(tenant_id=tenant_id or "", profile=None, rows=())
    resolved = tenant_id or context.effective_tenant_id
    try:
        rows = await bounded(
            permissions_repo.list_by_tenant(session, resolved),
            operation="permissions.list",
        )
    except SQLAlchemyError as exc:
        logger.warning("permission_rows_unavailable tenant_id=%s", resolved, exc_info=exc)
        raise StoreUnavailable("Permission store unavailable") from exc
    return PermissionSet(tenant_id=resolved, profile=context.profile, rows=tuple(rows))


async def require_permission(
    session: AsyncSession,
    context: SessionContext | None,
    permission_key: str,
    *,
    tenant_id: str | None = None,
    now: datetime | None = None,
) -> PermissionSet:
    # Enforce a capability server-side; returns the loaded set for reuse by the caller.
    if context is None:
        raise Unauthenticated()
    permissions = await load_permission_set(session, context, tenant_id=tenant_id)
    if not permissions.granted(permission_key, now or utc_now()):
        logger.info(
            "permission_denied user_id=%s tenant_id=%s permission_key=%s",
            context.user_id,
            permissions.tenant_id,
            permission_key,
        )
        raise Forbidden(f"Missing permission {permission_key}")
    return permissions
