from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from hireconsole.apps.api.deps import (
    get_auth_provider_dep,
    get_db,
    get_recorder,
    require_session,
)
from hireconsole.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from hireconsole.apps.api.response import SuccessEnvelope, success_response
from hireconsole.domain.state import ProfileSnapshot, SessionContext
from hireconsole.providers.auth import AuthProvider
from hireconsole.services.audit import AuditRecorder, get_request_context
from hireconsole.services.auth import session as auth_session


router = APIRouter(prefix="/auth", tags=["auth"], responses=DEFAULT_ERROR_RESPONSES)


class SignInRequest(BaseModel):
    email: str
    password: str


class ProfileUpdateRequest(BaseModel):
    # Unknown fields are passed through so the service can reject them by name.
    model_config = ConfigDict(extra="allow")

    full_name: str | None = None
    avatar_url: str | None = None
    phone: str | None = None
    position: str | None = None
    department: str | None = None


class ProfileResponse(BaseModel):
    id: str
    tenant_id: str
    email: str
    full_name: str
    is_super_admin: bool
    impersonate_tenant_id: str | None
    avatar_url: str | None
    phone: str | None
    position: str | None
    department: str | None
    last_login: datetime | None


class SessionResponse(BaseModel):
    user_id: str
    email: str | None
    status: str
    profile: ProfileResponse | None
    effective_tenant_id: str | None
    is_impersonating: bool
    access_token: str | None = None


class SignOutResponse(BaseModel):
    signed_out: bool


def _profile_response(profile: ProfileSnapshot) -> ProfileResponse:
    return ProfileResponse(
        id=profile.id,
        tenant_id=profile.tenant_id,
        email=profile.email,
        full_name=profile.full_name,
        is_super_admin=profile.is_super_admin,
        impersonate_tenant_id=profile.impersonate_tenant_id,
        avatar_url=profile.avatar_url,
        phone=profile.phone,
        position=profile.position,
        department=profile.department,
        last_login=profile.last_login,
    )


def session_response(context: SessionContext, *, include_token: bool = False) -> SessionResponse:
    profile = context.profile
    return SessionResponse(
        user_id=context.user_id,
        email=context.identity.email,
        status="ok" if profile is not None else "profile_missing",
        profile=_profile_response(profile) if profile is not None else None,
        effective_tenant_id=context.effective_tenant_id,
        is_impersonating=bool(profile and profile.is_impersonating),
        access_token=context.identity.access_token if include_token else None,
    )


@router.post("/sign-in", response_model=SuccessEnvelope[SessionResponse])
async def sign_in(
    request: Request,
    payload: SignInRequest,
    db: AsyncSession = Depends(get_db),
    provider: AuthProvider = Depends(get_auth_provider_dep),
    recorder: AuditRecorder = Depends(get_recorder),
) -> dict:
    result = await auth_session.sign_in(
        db,
        provider,
        recorder,
        email=payload.email,
        password=payload.password,
        request_context=get_request_context(request),
    )
    return success_response(request=request, data=session_response(result.context, include_token=True))


@router.post("/sign-out", response_model=SuccessEnvelope[SignOutResponse])
async def sign_out(
    request: Request,
    context: SessionContext = Depends(require_session),
    provider: AuthProvider = Depends(get_auth_provider_dep),
    recorder: AuditRecorder = Depends(get_recorder),
) -> dict:
    await auth_session.sign_out(
        provider,
        recorder,
        context,
        request_context=get_request_context(request),
    )
    return success_response(request=request, data=SignOutResponse(signed_out=True))


@router.get("/session", response_model=SuccessEnvelope[SessionResponse])
async def get_session(
    request: Request,
    context: SessionContext = Depends(require_session),
) -> dict:
    return success_response(request=request, data=session_response(context))


@router.patch("/profile", response_model=SuccessEnvelope[SessionResponse])
async def update_profile(
    request: Request,
    payload: ProfileUpdateRequest,
    context: SessionContext = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_recorder),
) -> dict:
    updated = await auth_session.update_profile(
        db,
        recorder,
        context,
        payload.model_dump(exclude_unset=True),
        request_context=get_request_context(request),
    )
    return success_response(request=request, data=session_response(updated))
