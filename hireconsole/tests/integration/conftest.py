from __future__ import annotations

import pytest

from hireconsole.domain.models import Base
from hireconsole.persistence.db import engine
from hireconsole.services.audit import AuditRecorder, get_audit_recorder


@pytest.fixture(autouse=True)
async def database() -> None:
    # Fresh schema per test; dispose the engine so no connection outlives its loop.
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await get_audit_recorder().drain()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def recorder() -> AuditRecorder:
    recorder = AuditRecorder()
    yield recorder
    await recorder.drain()
