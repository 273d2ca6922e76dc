from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hireconsole.core.errors import UpdateFailed
from hireconsole.domain.models import TenantPermission
from hireconsole.persistence.guards import require_tenant_id, tenant_predicate


_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


async def list_by_tenant(session: AsyncSession, tenant_id: str) -> list[TenantPermission]:
    # All rows for one resolved tenant; callers never mix rows from two tenants.
    result = await session.execute(
        select(TenantPermission)
        .where(tenant_predicate(TenantPermission, tenant_id))
        .order_by(TenantPermission.permission_key)
    )
    return list(result.scalars().all())


async def get_permission(
    session: AsyncSession,
    *,
    tenant_id: str,
    permission_key: str,
) -> TenantPermission | None:
    # populate_existing refreshes rows already in the identity map after core-level writes.
    result = await session.execute(
        select(TenantPermission)
        .where(
            tenant_predicate(TenantPermission, tenant_id),
            TenantPermission.permission_key == permission_key,
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def _build_upsert(
    session: AsyncSession,
    *,
    tenant_id: str,
    permission_key: str,
    enabled: bool,
    limit_count: int,
    now: datetime,
):
    dialect = session.get_bind().dialect.name
    insert = _UPSERT_DIALECTS.get(dialect)
    if insert is None:
        raise UpdateFailed(f"Upsert is not supported on dialect {dialect}")
    stmt = insert(TenantPermission).values(
        id=uuid4().hex,
        tenant_id=tenant_id,
        permission_key=permission_key,
        enabled=enabled,
        limit_count=limit_count,
        valid_from=now,
        valid_until=None,
        created_at=now,
        updated_at=now,
    )
    # The validity window belongs to the row's creation; toggles never move it.
    return stmt.on_conflict_do_update(
        index_elements=[TenantPermission.tenant_id, TenantPermission.permission_key],
        set_={"enabled": enabled, "limit_count": limit_count, "updated_at": now},
    )


async def update_permission(
    session: AsyncSession,
    *,
    tenant_id: str,
    permission_key: str,
    enabled: bool,
    limit_count: int,
    now: datetime,
) -> int:
    result = await session.execute(
        update(TenantPermission)
        .where(
            tenant_predicate(TenantPermission, tenant_id),
            TenantPermission.permission_key == permission_key,
        )
        .values(enabled=enabled, limit_count=limit_count, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    return int(result.rowcount or 0)


async def upsert_permission(
    session: AsyncSession,
    *,
    tenant_id: str,
    permission_key: str,
    enabled: bool,
    limit_count: int,
    now: datetime,
) -> TenantPermission:
    """Create or overwrite the single row for ``(tenant_id, permission_key)``.

    The caller owns the transaction and commits after this returns. A
    duplicate-key failure means a concurrent writer created the row first; the
    transaction is rolled back and the write is retried as a plain update.
    """
    require_tenant_id(tenant_id, table=TenantPermission.__tablename__)
    stmt = _build_upsert(
        session,
        tenant_id=tenant_id,
        permission_key=permission_key,
        enabled=enabled,
        limit_count=limit_count,
        now=now,
    )
    try:
        await session.execute(stmt)
    except IntegrityError:
        await session.rollback()
        updated = await update_permission(
            session,
            tenant_id=tenant_id,
            permission_key=permission_key,
            enabled=enabled,
            limit_count=limit_count,
            now=now,
        )
        if updated == 0:
            raise UpdateFailed(f"Permission {permission_key} vanished during conflict retry")

    row = await get_permission(session, tenant_id=tenant_id, permission_key=permission_key)
    if row is None:
        raise UpdateFailed(f"Permission {permission_key} missing after upsert")
    return row
