from __future__ import annotations

from typing import AsyncGenerator, Awaitable, Callable

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hireconsole.core.config import get_settings
from hireconsole.core.errors import Forbidden, ProfileMissing, Unauthenticated
from hireconsole.domain.state import SessionContext
from hireconsole.persistence.db import get_session
from hireconsole.providers.auth import AuthProvider, get_auth_provider
from hireconsole.services.audit import AuditRecorder, get_audit_recorder
from hireconsole.services.auth.session import load_session_context
from hireconsole.services.permissions import PermissionSet, require_permission


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    # One AsyncSession per request; context manager ensures close on success/error.
    async with get_session() as session:
        yield session


def get_auth_provider_dep() -> AuthProvider:
    return get_auth_provider()


def get_recorder() -> AuditRecorder:
    return get_audit_recorder()


def bearer_token(request: Request) -> str | None:
    header = request.headers.get(get_settings().auth_token_header)
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_session_context(
    request: Request,
    db: AsyncSession = Depends(get_db),
    provider: AuthProvider = Depends(get_auth_provider_dep),
) -> SessionContext | None:
    """Resolve the caller's session from its bearer token.

    The profile is re-read on every request so impersonation and super-admin
    changes apply without re-authenticating.
    """
    token = bearer_token(request)
    if token is None:
        return None
    identity = await provider.get_identity(token)
    if identity is None:
        return None
    return await load_session_context(db, identity)


async def require_session(
    context: SessionContext | None = Depends(get_session_context),
) -> SessionContext:
    if context is None:
        raise Unauthenticated("Missing or invalid bearer token")
    return context


async def require_profile(context: SessionContext = Depends(require_session)) -> SessionContext:
    if context.profile is None:
        raise ProfileMissing(context.user_id)
    return context


async def require_super_admin(context: SessionContext = Depends(require_profile)) -> SessionContext:
    if not context.is_super_admin:
        raise Forbidden("Super admin required")
    return context


def require_permission_dep(permission_key: str) -> Callable[..., Awaitable[PermissionSet]]:
    # Gate a route on a capability in the caller's effective tenant.
    async def _dependency(
        context: SessionContext = Depends(require_profile),
        db: AsyncSession = Depends(get_db),
    ) -> PermissionSet:
        return await require_permission(db, context, permission_key)

    return _dependency
