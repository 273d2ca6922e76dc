from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel

from hireconsole.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from hireconsole.apps.api.response import SuccessEnvelope, success_response
from hireconsole.persistence.db import pool_stats

router = APIRouter(tags=["health"], responses=DEFAULT_ERROR_RESPONSES)


class PoolStats(BaseModel):
    size: int | None = None
    checked_out: int | None = None
    checked_in: int | None = None
    overflow: int | None = None


class HealthResponse(BaseModel):
    status: str
    db_pool: PoolStats


@router.get("/health", response_model=SuccessEnvelope[HealthResponse])
async def health(request: Request) -> dict:
    payload = HealthResponse(status="ok", db_pool=PoolStats(**pool_stats()))
    return success_response(request=request, data=payload)
