from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hireconsole.domain.events import AuditEntry
from hireconsole.domain.models import AuditLog
from hireconsole.persistence.guards import tenant_predicate


def build_log(entry: AuditEntry, *, details: dict) -> AuditLog:
    return AuditLog(
        tenant_id=entry.tenant_id,
        user_id=entry.user_id,
        action=entry.action,
        resource_type=entry.resource_type,
        resource_id=entry.resource_id,
        details=details,
        ip_address=entry.ip_address,
        user_agent=entry.user_agent,
        impersonated_from=entry.impersonated_from,
    )


async def list_logs(
    session: AsyncSession,
    *,
    tenant_id: str,
    action: str | None = None,
    user_id: str | None = None,
    created_from: datetime | None = None,
    created_to: datetime | None = None,
    offset: int = 0,
    limit: int = 50,
) -> list[AuditLog]:
    # Scope all audit queries to a tenant to prevent cross-tenant leakage.
    stmt = select(AuditLog).where(tenant_predicate(AuditLog, tenant_id))
    if action:
        stmt = stmt.where(AuditLog.action == action)
    if user_id:
        stmt = stmt.where(AuditLog.user_id == user_id)
    if created_from:
        stmt = stmt.where(AuditLog.created_at >= created_from)
    if created_to:
        stmt = stmt.where(AuditLog.created_at <= created_to)

    stmt = stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    stmt = stmt.offset(offset).limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())
