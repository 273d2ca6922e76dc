from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hireconsole.domain.models import Tenant


async def get_tenant(session: AsyncSession, tenant_id: str) -> Tenant | None:
    result = await session.execute(select(Tenant).where(Tenant.id == tenant_id))
    return result.scalar_one_or_none()


async def list_tenants(session: AsyncSession) -> list[Tenant]:
    # Ordered by display name for the tenant switcher.
    result = await session.execute(select(Tenant).order_by(Tenant.name, Tenant.id))
    return list(result.scalars().all())
