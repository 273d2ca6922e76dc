from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hireconsole.core.errors import Forbidden, ProfileMissing, StoreUnavailable, TenantNotFound, Unauthenticated
from hireconsole.domain.models import Profile
from hireconsole.domain.state import ProfileSnapshot, SessionContext
from hireconsole.persistence.repos import profiles as profiles_repo
from hireconsole.persistence.repos import tenants as tenants_repo
from hireconsole.services.audit import AuditRecorder, build_entry
from hireconsole.services.store import bounded


logger = logging.getLogger(__name__)


def _require_profile(context: SessionContext | None) -> ProfileSnapshot:
    if context is None:
        raise Unauthenticated()
    if context.profile is None:
        raise ProfileMissing(context.user_id)
    return context.profile


async def _stored_profile(session: AsyncSession, profile_id: str) -> Profile:
    stored = await bounded(
        profiles_repo.get_profile(session, profile_id),
        operation="profiles.get",
    )
    if stored is None:
        raise ProfileMissing(profile_id)
    return stored


async def _write_target(
    session: AsyncSession,
    *,
    profile_id: str,
    tenant_id: str | None,
    operation: str,
) -> ProfileSnapshot:
    profile = await bounded(
        profiles_repo.set_impersonated_tenant(session, profile_id, tenant_id),
        operation=operation,
    )
    if profile is None:
        raise ProfileMissing(profile_id)
    snapshot = ProfileSnapshot.from_model(profile)
    # Commit stays outside the bound so a timeout never hides a durable write.
    await session.commit()
    return snapshot


async def impersonate_tenant(
    session: AsyncSession,
    *,
    context: SessionContext | None,
    target_tenant_id: str,
    recorder: AuditRecorder,
    request_context: dict[str, str | None] | None = None,
) -> SessionContext:
    """Switch a super-admin's effective tenant to ``target_tenant_id``.

    Super-admin status is read from the store, not from the session, so a
    revoked flag takes effect immediately. Returns the new session context.
    """
    current = _require_profile(context)
    try:
        stored = await _stored_profile(session, current.id)
        if not stored.is_super_admin:
            logger.info(
                "impersonation_denied user_id=%s target_tenant_id=%s",
                current.id,
                target_tenant_id,
            )
            raise Forbidden("Only super admins can impersonate tenants")
        tenant = await bounded(
            tenants_repo.get_tenant(session, target_tenant_id),
            operation="tenants.get",
        )
        if tenant is None:
            raise TenantNotFound(f"Tenant {target_tenant_id} not found")
        updated = await _write_target(
            session,
            profile_id=current.id,
            tenant_id=target_tenant_id,
            operation="profiles.impersonate",
        )
    except (ProfileMissing, StoreUnavailable):
        await session.rollback()
        raise
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.warning(
            "impersonation_write_failed user_id=%s target_tenant_id=%s",
            current.id,
            target_tenant_id,
            exc_info=exc,
        )
        raise StoreUnavailable("Profile store unavailable") from exc

    next_context = context.with_profile(updated)
    recorder.emit(
        build_entry(
            next_context,
            "impersonate_tenant",
            resource_type="tenant",
            resource_id=target_tenant_id,
            details={"original_tenant_id": updated.tenant_id},
            request_context=request_context,
        )
    )
    logger.info(
        "impersonation_started user_id=%s home_tenant_id=%s target_tenant_id=%s",
        current.id,
        updated.tenant_id,
        target_tenant_id,
    )
    return next_context


async def stop_impersonation(
    session: AsyncSession,
    *,
    context: SessionContext | None,
    recorder: AuditRecorder,
    request_context: dict[str, str | None] | None = None,
) -> SessionContext:
    """Return to the home tenant.

    The stored impersonation target decides whether there is anything to
    clear, so a stale session context cannot skip the write. Calling this
    while not impersonating succeeds without a store write; the attempt is
    still recorded.
    """
    current = _require_profile(context)
    try:
        stored = await _stored_profile(session, current.id)
        previous_tenant_id = stored.impersonate_tenant_id
        if previous_tenant_id is None:
            updated = ProfileSnapshot.from_model(stored)
            # Nothing to write; end the read transaction.
            await session.rollback()
        else:
            updated = await _write_target(
                session,
                profile_id=current.id,
                tenant_id=None,
                operation="profiles.stop_impersonation",
            )
    except (ProfileMissing, StoreUnavailable):
        await session.rollback()
        raise
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.warning("stop_impersonation_failed user_id=%s", current.id, exc_info=exc)
        raise StoreUnavailable("Profile store unavailable") from exc

    next_context = context.with_profile(updated)
    if previous_tenant_id is None:
        recorder.emit(
            build_entry(
                next_context,
                "stop_impersonation",
                resource_type="tenant",
                resource_id=updated.tenant_id,
                details={"was_impersonating": False},
                request_context=request_context,
            )
        )
        return next_context

    recorder.emit(
        build_entry(
            next_context,
            "stop_impersonation",
            resource_type="tenant",
            resource_id=previous_tenant_id,
            details={"was_impersonating": True, "original_tenant_id": updated.tenant_id},
            request_context=request_context,
        )
    )
    logger.info(
        "impersonation_stopped user_id=%s previous_tenant_id=%s",
        current.id,
        previous_tenant_id,
    )
    return next_context
