from __future__ import annotations

from datetime import datetime
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hireconsole.core.errors import (
    Forbidden,
    ProfileMissing,
    StoreUnavailable,
    Unauthenticated,
    UnknownPermissionKey,
    UpdateFailed,
)
from hireconsole.domain.models import TenantPermission
from hireconsole.domain.state import SessionContext
from hireconsole.persistence.repos import permissions as permissions_repo
from hireconsole.services.permissions.access import require_permission, utc_now
from hireconsole.services.permissions.registry import CAN_EDIT_PERMISSIONS, is_known_key
from hireconsole.services.store import bounded, is_transient


logger = logging.getLogger(__name__)


async def set_permission(
    session: AsyncSession,
    *,
    actor: SessionContext | None,
    permission_key: str,
    enabled: bool,
    limit_count: int = 0,
    tenant_id: str | None = None,
    now: datetime | None = None,
) -> TenantPermission:
    """Toggle a capability and set its quota for one tenant.

    Idempotent for identical arguments (apart from ``updated_at``). The
    validity window is only set when the row is first created.
    """
    if actor is None:
        raise Unauthenticated()
    if actor.profile is None:
        raise ProfileMissing(actor.user_id)
    if not is_known_key(permission_key):
        raise UnknownPermissionKey(f"Unknown permission key {permission_key}")
    if limit_count < 0:
        raise ValueError("limit_count must be non-negative")

    resolved_now = now or utc_now()
    target_tenant_id = tenant_id or actor.effective_tenant_id
    if not actor.is_super_admin:
        # Tenant admins only ever edit the tenant they are acting in.
        if target_tenant_id != actor.effective_tenant_id:
            raise Forbidden("Cannot edit permissions of another tenant")
        await require_permission(
            session,
            actor,
            CAN_EDIT_PERMISSIONS,
            tenant_id=target_tenant_id,
            now=resolved_now,
        )

    try:
        # Only the statements are bounded; commit runs to completion once started.
        row = await bounded(
            permissions_repo.upsert_permission(
                session,
                tenant_id=target_tenant_id,
                permission_key=permission_key,
                enabled=enabled,
                limit_count=limit_count,
                now=resolved_now,
            ),
            operation="permissions.upsert",
        )
        await session.commit()
    except (UpdateFailed, StoreUnavailable):
        await session.rollback()
        raise
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.warning(
            "permission_update_failed tenant_id=%s permission_key=%s",
            target_tenant_id,
            permission_key,
            exc_info=exc,
        )
        if is_transient(exc):
            raise StoreUnavailable("Permission store unavailable") from exc
        raise UpdateFailed(f"Failed to update permission {permission_key}", cause=exc) from exc

    logger.info(
        "permission_updated tenant_id=%s permission_key=%s enabled=%s limit_count=%s actor_id=%s",
        target_tenant_id,
        permission_key,
        enabled,
        limit_count,
        actor.user_id,
    )
    return row
