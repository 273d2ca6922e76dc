from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hireconsole.apps.api.deps import get_db, require_permission_dep
from hireconsole.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from hireconsole.apps.api.response import SuccessEnvelope, success_response
from hireconsole.core.config import get_settings
from hireconsole.core.errors import StoreUnavailable
from hireconsole.persistence.repos import audit as audit_repo
from hireconsole.services.permissions import PermissionSet
from hireconsole.services.permissions.registry import CAN_VIEW_AUDIT_LOGS


router = APIRouter(prefix="/audit", tags=["audit"], responses=DEFAULT_ERROR_RESPONSES)


class AuditLogResponse(BaseModel):
    id: int
    tenant_id: str | None
    user_id: str | None
    action: str
    resource_type: str | None
    resource_id: str | None
    details: dict[str, Any] | None
    impersonated_from: str | None
    ip_address: str | None
    user_agent: str | None
    created_at: datetime


class AuditLogsPage(BaseModel):
    items: list[AuditLogResponse]
    next_offset: int | None


def _to_response(log) -> AuditLogResponse:
    return AuditLogResponse(
        id=log.id,
        tenant_id=log.tenant_id,
        user_id=log.user_id,
        action=log.action,
        resource_type=log.resource_type,
        resource_id=log.resource_id,
        details=log.details,
        impersonated_from=log.impersonated_from,
        ip_address=log.ip_address,
        user_agent=log.user_agent,
        created_at=log.created_at,
    )


@router.get("/logs", response_model=SuccessEnvelope[AuditLogsPage])
async def list_audit_logs(
    request: Request,
    action: str | None = None,
    user_id: str | None = None,
    created_from: datetime | None = Query(default=None, alias="from"),
    created_to: datetime | None = Query(default=None, alias="to"),
    offset: int = Query(default=0, ge=0),
    limit: int | None = Query(default=None, ge=1, le=200),
    permissions: PermissionSet = Depends(require_permission_dep(CAN_VIEW_AUDIT_LOGS)),
    db: AsyncSession = Depends(get_db),
) -> dict:
    # Always scoped to the tenant the caller is acting in.
    page_size = limit or get_settings().audit_page_size
    try:
        logs = await audit_repo.list_logs(
            db,
            tenant_id=permissions.tenant_id,
            action=action,
            user_id=user_id,
            created_from=created_from,
            created_to=created_to,
            offset=offset,
            limit=page_size + 1,
        )
    except SQLAlchemyError as exc:
        raise StoreUnavailable("Audit store unavailable") from exc

    next_offset = None
    if len(logs) > page_size:
        logs = logs[:page_size]
        next_offset = offset + page_size

    page = AuditLogsPage(items=[_to_response(log) for log in logs], next_offset=next_offset)
    return success_response(request=request, data=page)
