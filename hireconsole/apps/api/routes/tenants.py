from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hireconsole.apps.api.deps import get_db, require_super_admin
from hireconsole.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from hireconsole.apps.api.response import SuccessEnvelope, success_response
from hireconsole.core.errors import StoreUnavailable
from hireconsole.domain.state import SessionContext
from hireconsole.persistence.repos import tenants as tenants_repo


router = APIRouter(prefix="/tenants", tags=["tenants"], responses=DEFAULT_ERROR_RESPONSES)


class TenantResponse(BaseModel):
    id: str
    name: str
    subdomain: str
    logo_url: str | None
    subscription_plan: str
    is_current: bool


@router.get("", response_model=SuccessEnvelope[list[TenantResponse]])
async def list_tenants(
    request: Request,
    context: SessionContext = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
) -> dict:
    # Feeds the super-admin tenant switcher; marks the tenant currently acted in.
    try:
        tenants = await tenants_repo.list_tenants(db)
    except SQLAlchemyError as exc:
        raise StoreUnavailable("Tenant store unavailable") from exc
    items = [
        TenantResponse(
            id=tenant.id,
            name=tenant.name,
            subdomain=tenant.subdomain,
            logo_url=tenant.logo_url,
            subscription_plan=tenant.subscription_plan,
            is_current=tenant.id == context.effective_tenant_id,
        )
        for tenant in tenants
    ]
    return success_response(request=request, data=items)
