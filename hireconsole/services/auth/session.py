from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Any, Callable, Literal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hireconsole.core.errors import (
    HireConsoleError,
    InvalidCredentials,
    ProfileMissing,
    StoreUnavailable,
    Unauthenticated,
    UpdateFailed,
)
from hireconsole.domain.state import Identity, IdentityChange, ProfileSnapshot, SessionContext
from hireconsole.persistence.db import SessionLocal
from hireconsole.persistence.repos import profiles as profiles_repo
from hireconsole.providers.auth.base import AuthProvider
from hireconsole.services.audit import AuditRecorder, build_entry
from hireconsole.services.store import bounded, is_transient


logger = logging.getLogger(__name__)

SignInStatus = Literal["ok", "profile_missing"]


@dataclass(frozen=True)
class SignInResult:
    # Authenticated identity plus whether a profile is provisioned for it.
    context: SessionContext
    status: SignInStatus

    @property
    def profile_missing(self) -> bool:
        return self.status == "profile_missing"


async def load_session_context(session: AsyncSession, identity: Identity) -> SessionContext:
    """Build the session context for an identity from its stored profile.

    A missing profile yields a context without one; callers decide whether
    that is an error.
    """
    try:
        profile = await bounded(
            profiles_repo.get_profile(session, identity.id),
            operation="profiles.get",
        )
    except SQLAlchemyError as exc:
        logger.warning("profile_lookup_failed user_id=%s", identity.id, exc_info=exc)
        raise StoreUnavailable("Profile store unavailable") from exc
    snapshot = ProfileSnapshot.from_model(profile) if profile is not None else None
    return SessionContext(identity=identity, profile=snapshot)


async def _touch_last_login(session: AsyncSession, profile_id: str) -> ProfileSnapshot | None:
    # Best effort; a failed stamp never blocks sign-in.
    try:
        profile = await bounded(
            profiles_repo.touch_last_login(session, profile_id, datetime.now(timezone.utc)),
            operation="profiles.touch_last_login",
        )
        await session.commit()
    except (SQLAlchemyError, StoreUnavailable) as exc:
        await session.rollback()
        logger.warning("last_login_update_failed user_id=%s", profile_id, exc_info=exc)
        return None
    return ProfileSnapshot.from_model(profile) if profile is not None else None


async def _end_provider_session(provider: AuthProvider, identity: Identity) -> None:
    try:
        await provider.end_session(identity.access_token)
    except HireConsoleError as exc:
        logger.warning("provider_session_cleanup_failed user_id=%s", identity.id, exc_info=exc)


async def sign_in(
    session: AsyncSession,
    provider: AuthProvider,
    recorder: AuditRecorder,
    *,
    email: str,
    password: str,
    request_context: dict[str, str | None] | None = None,
) -> SignInResult:
    try:
        identity = await provider.authenticate(email, password)
    except InvalidCredentials:
        recorder.emit(
            build_entry(
                None,
                "login_failed",
                resource_type="auth",
                details={"email": email},
                request_context=request_context,
            )
        )
        logger.info("sign_in_rejected email=%s", email)
        raise

    try:
        context = await load_session_context(session, identity)
    except StoreUnavailable:
        # The provider already issued a session; do not leave it behind an error.
        recorder.emit(
            build_entry(
                None,
                "login_failed",
                resource_type="auth",
                resource_id=identity.id,
                user_id=identity.id,
                details={"email": email, "status": "store_unavailable"},
                request_context=request_context,
            )
        )
        await _end_provider_session(provider, identity)
        raise

    if context.profile is None:
        status: SignInStatus = "profile_missing"
        logger.warning("sign_in_profile_missing user_id=%s", identity.id)
    else:
        status = "ok"
        touched = await _touch_last_login(session, identity.id)
        if touched is not None:
            context = context.with_profile(touched)

    recorder.emit(
        build_entry(
            context,
            "login",
            resource_type="auth",
            resource_id=identity.id,
            details={"email": identity.email, "status": status},
            request_context=request_context,
        )
    )
    logger.info("sign_in user_id=%s tenant_id=%s status=%s", identity.id, context.effective_tenant_id, status)
    return SignInResult(context=context, status=status)


async def sign_out(
    provider: AuthProvider,
    recorder: AuditRecorder,
    context: SessionContext | None,
    *,
    request_context: dict[str, str | None] | None = None,
) -> None:
    if context is None:
        raise Unauthenticated()
    await provider.end_session(context.identity.access_token)
    recorder.emit(
        build_entry(
            context,
            "logout",
            resource_type="auth",
            resource_id=context.user_id,
            request_context=request_context,
        )
    )
    logger.info("sign_out user_id=%s", context.user_id)


async def update_profile(
    session: AsyncSession,
    recorder: AuditRecorder,
    context: SessionContext | None,
    fields: dict[str, Any],
    *,
    request_context: dict[str, str | None] | None = None,
) -> SessionContext:
    """Edit display fields of the caller's own profile.

    Tenancy, super-admin status, the impersonation target and ``last_login``
    are rejected with ``ValueError``, as is clearing a required field.
    """
    if context is None:
        raise Unauthenticated()
    if context.profile is None:
        raise ProfileMissing(context.user_id)
    try:
        # Only the statements are bounded; commit runs to completion once started.
        profile = await bounded(
            profiles_repo.update_profile(session, context.user_id, fields),
            operation="profiles.update",
        )
        if profile is None:
            await session.rollback()
            raise ProfileMissing(context.user_id)
        await session.commit()
    except StoreUnavailable:
        await session.rollback()
        raise
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.warning("profile_update_failed user_id=%s", context.user_id, exc_info=exc)
        if is_transient(exc):
            raise StoreUnavailable("Profile store unavailable") from exc
        raise UpdateFailed("Failed to update profile", cause=exc) from exc

    updated = context.with_profile(ProfileSnapshot.from_model(profile))
    recorder.emit(
        build_entry(
            updated,
            "update_profile",
            resource_type="profile",
            resource_id=context.user_id,
            details={"fields": sorted(fields)},
            request_context=request_context,
        )
    )
    return updated


class SessionManager:
    """Holds the current session context for one client of the auth provider.

    Subscribes to identity changes and rebuilds its context on every
    sign-in or sign-out; no other code mutates it.
    """

    def __init__(
        self,
        provider: AuthProvider,
        session_factory: Callable[[], AsyncSession] = SessionLocal,
    ) -> None:
        self._provider = provider
        self._session_factory = session_factory
        self._context: SessionContext | None = None
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def context(self) -> SessionContext | None:
        return self._context

    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self._provider.on_identity_change(self._on_change)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def replace(self, context: SessionContext | None) -> None:
        # Adopt a context produced by a transition (impersonation, profile edit).
        self._context = context

    async def refresh(self) -> SessionContext | None:
        if self._context is None:
            return None
        async with self._session_factory() as session:
            self._context = await load_session_context(session, self._context.identity)
        return self._context

    async def _on_change(self, change: IdentityChange) -> None:
        if change.event == "signed_out" or change.identity is None:
            self._context = None
            return
        async with self._session_factory() as session:
            self._context = await load_session_context(session, change.identity)
