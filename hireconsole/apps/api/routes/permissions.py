from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from hireconsole.apps.api.deps import get_db, require_profile
from hireconsole.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from hireconsole.apps.api.response import SuccessEnvelope, success_response
from hireconsole.core.errors import Forbidden, UnknownPermissionKey
from hireconsole.domain.state import SessionContext
from hireconsole.services.permissions import (
    PermissionDefinition,
    PermissionMatrixEntry,
    is_known_key,
    list_definitions,
    load_permission_set,
    set_permission,
)
from hireconsole.services.permissions.access import utc_now


router = APIRouter(prefix="/permissions", tags=["permissions"], responses=DEFAULT_ERROR_RESPONSES)


class PermissionDefinitionResponse(BaseModel):
    key: str
    label: str
    description: str
    has_quota: bool


class TenantPermissionResponse(BaseModel):
    tenant_id: str
    permission_key: str
    enabled: bool
    limit_count: int
    valid_from: datetime | None
    valid_until: datetime | None
    updated_at: datetime | None = None


class PermissionMatrixRow(BaseModel):
    definition: PermissionDefinitionResponse
    configured: bool
    enabled: bool
    limit_count: int
    valid_from: datetime | None
    valid_until: datetime | None
    granted: bool


class PermissionMatrixResponse(BaseModel):
    tenant_id: str
    items: list[PermissionMatrixRow]


class PermissionCheckResponse(BaseModel):
    tenant_id: str
    permission_key: str
    granted: bool
    limit: int


class PermissionUpdateRequest(BaseModel):
    enabled: bool
    limit_count: int = Field(default=0, ge=0)
    tenant_id: str | None = None


def _definition_response(definition: PermissionDefinition) -> PermissionDefinitionResponse:
    return PermissionDefinitionResponse(
        key=definition.key,
        label=definition.label,
        description=definition.description,
        has_quota=definition.has_quota,
    )


def _matrix_row(entry: PermissionMatrixEntry) -> PermissionMatrixRow:
    return PermissionMatrixRow(
        definition=_definition_response(entry.definition),
        configured=entry.configured,
        enabled=entry.enabled,
        limit_count=entry.limit_count,
        valid_from=entry.valid_from,
        valid_until=entry.valid_until,
        granted=entry.granted,
    )


def _row_response(row) -> TenantPermissionResponse:
    return TenantPermissionResponse(
        tenant_id=row.tenant_id,
        permission_key=row.permission_key,
        enabled=row.enabled,
        limit_count=row.limit_count,
        valid_from=row.valid_from,
        valid_until=row.valid_until,
        updated_at=getattr(row, "updated_at", None),
    )


def _scoped_tenant(context: SessionContext, tenant_id: str | None) -> str:
    # Only super admins may look at a tenant other than the one they act in.
    if tenant_id and tenant_id != context.effective_tenant_id and not context.is_super_admin:
        raise Forbidden("Cannot read permissions of another tenant")
    return tenant_id or context.effective_tenant_id


@router.get("", response_model=SuccessEnvelope[list[TenantPermissionResponse]])
async def list_permissions(
    request: Request,
    tenant_id: str | None = None,
    context: SessionContext = Depends(require_profile),
    db: AsyncSession = Depends(get_db),
) -> dict:
    permissions = await load_permission_set(db, context, tenant_id=_scoped_tenant(context, tenant_id))
    return success_response(request=request, data=[_row_response(row) for row in permissions.rows])


@router.get("/definitions", response_model=SuccessEnvelope[list[PermissionDefinitionResponse]])
async def list_permission_definitions(
    request: Request,
    context: SessionContext = Depends(require_profile),
) -> dict:
    return success_response(
        request=request,
        data=[_definition_response(definition) for definition in list_definitions()],
    )


@router.get("/matrix", response_model=SuccessEnvelope[PermissionMatrixResponse])
async def permission_matrix(
    request: Request,
    tenant_id: str | None = None,
    search: str | None = Query(default=None, max_length=200),
    context: SessionContext = Depends(require_profile),
    db: AsyncSession = Depends(get_db),
) -> dict:
    permissions = await load_permission_set(db, context, tenant_id=_scoped_tenant(context, tenant_id))
    payload = PermissionMatrixResponse(
        tenant_id=permissions.tenant_id,
        items=[_matrix_row(entry) for entry in permissions.matrix(utc_now(), search=search)],
    )
    return success_response(request=request, data=payload)


@router.get("/{permission_key}/check", response_model=SuccessEnvelope[PermissionCheckResponse])
async def check_permission(
    request: Request,
    permission_key: str,
    context: SessionContext = Depends(require_profile),
    db: AsyncSession = Depends(get_db),
) -> dict:
    if not is_known_key(permission_key):
        raise UnknownPermissionKey(f"Unknown permission key {permission_key}")
    permissions = await load_permission_set(db, context)
    payload = PermissionCheckResponse(
        tenant_id=permissions.tenant_id,
        permission_key=permission_key,
        granted=permissions.granted(permission_key, utc_now()),
        limit=permissions.limit(permission_key),
    )
    return success_response(request=request, data=payload)


@router.put("/{permission_key}", response_model=SuccessEnvelope[TenantPermissionResponse])
async def update_permission(
    request: Request,
    permission_key: str,
    payload: PermissionUpdateRequest,
    context: SessionContext = Depends(require_profile),
    db: AsyncSession = Depends(get_db),
) -> dict:
    row = await set_permission(
        db,
        actor=context,
        permission_key=permission_key,
        enabled=payload.enabled,
        limit_count=payload.limit_count,
        tenant_id=payload.tenant_id,
    )
    return success_response(request=request, data=_row_response(row))
