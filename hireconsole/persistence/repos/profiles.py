from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hireconsole.domain.models import Profile


# Fields a generic profile edit may touch. Tenancy, super-admin status and the
# impersonation target each have their own dedicated write path.
PROFILE_EDITABLE_FIELDS = frozenset(
    {"full_name", "avatar_url", "phone", "position", "department"}
)
# Editable fields backed by NOT NULL columns.
PROFILE_REQUIRED_FIELDS = frozenset({"full_name"})


async def get_profile(session: AsyncSession, profile_id: str) -> Profile | None:
    result = await session.execute(
        select(Profile).where(Profile.id == profile_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def update_profile(
    session: AsyncSession,
    profile_id: str,
    fields: dict[str, Any],
) -> Profile | None:
    blocked = set(fields) - PROFILE_EDITABLE_FIELDS
    if blocked:
        raise ValueError(f"Profile fields are not editable: {', '.join(sorted(blocked))}")
    cleared = sorted(name for name in PROFILE_REQUIRED_FIELDS & set(fields) if fields[name] is None)
    if cleared:
        raise ValueError(f"Profile fields cannot be null: {', '.join(cleared)}")
    if fields:
        await session.execute(
            update(Profile)
            .where(Profile.id == profile_id)
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
    return await get_profile(session, profile_id)


async def touch_last_login(session: AsyncSession, profile_id: str, at: datetime) -> Profile | None:
    result = await session.execute(
        update(Profile)
        .where(Profile.id == profile_id)
        .values(last_login=at)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        return None
    return await get_profile(session, profile_id)


async def set_impersonated_tenant(
    session: AsyncSession,
    profile_id: str,
    tenant_id: str | None,
) -> Profile | None:
    # Single-column write; concurrent switches resolve last-write-wins here.
    result = await session.execute(
        update(Profile)
        .where(Profile.id == profile_id)
        .values(impersonate_tenant_id=tenant_id)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        return None
    return await get_profile(session, profile_id)
