from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from hireconsole.apps.api.deps import get_db, get_recorder, require_session
from hireconsole.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from hireconsole.apps.api.response import SuccessEnvelope, success_response
from hireconsole.apps.api.routes.auth import SessionResponse, session_response
from hireconsole.domain.state import SessionContext
from hireconsole.services.audit import AuditRecorder, get_request_context
from hireconsole.services.impersonation import impersonate_tenant, stop_impersonation


router = APIRouter(prefix="/impersonation", tags=["impersonation"], responses=DEFAULT_ERROR_RESPONSES)


class ImpersonationRequest(BaseModel):
    tenant_id: str = Field(min_length=1)


@router.post("", response_model=SuccessEnvelope[SessionResponse])
async def start_impersonation(
    request: Request,
    payload: ImpersonationRequest,
    context: SessionContext = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_recorder),
) -> dict:
    # Super-admin status is checked against the store inside the controller.
    updated = await impersonate_tenant(
        db,
        context=context,
        target_tenant_id=payload.tenant_id,
        recorder=recorder,
        request_context=get_request_context(request),
    )
    return success_response(request=request, data=session_response(updated))


@router.delete("", response_model=SuccessEnvelope[SessionResponse])
async def end_impersonation(
    request: Request,
    context: SessionContext = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_recorder),
) -> dict:
    updated = await stop_impersonation(
        db,
        context=context,
        recorder=recorder,
        request_context=get_request_context(request),
    )
    return success_response(request=request, data=session_response(updated))
