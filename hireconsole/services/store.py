from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, TypeVar

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from hireconsole.core.config import get_settings
from hireconsole.core.errors import StoreUnavailable


logger = logging.getLogger(__name__)

T = TypeVar("T")

TransientException = (OperationalError, InterfaceError, PoolTimeoutError, ConnectionError, OSError)


def is_transient(exc: BaseException) -> bool:
    # Connection loss, pool exhaustion and lock timeouts are worth surfacing as unavailability.
    if isinstance(exc, TransientException):
        return True
    return isinstance(exc, DBAPIError) and bool(exc.connection_invalidated)


async def bounded(call: Awaitable[T], *, operation: str, timeout_ms: int | None = None) -> T:
    """Await a store round trip under the configured ceiling.

    Cancellation propagates unchanged. Callers bound their statements only and
    commit outside the call, rolling back on ``StoreUnavailable``, so a timeout
    never reports failure for a write that was already committed.
    """
    limit_ms = timeout_ms if timeout_ms is not None else get_settings().store_timeout_ms
    try:
        return await asyncio.wait_for(call, timeout=limit_ms / 1000.0)
    except asyncio.TimeoutError as exc:
        logger.warning("store_call_timeout operation=%s timeout_ms=%s", operation, limit_ms)
        raise StoreUnavailable(f"{operation} timed out") from exc
