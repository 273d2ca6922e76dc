from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Protocol

from hireconsole.domain.state import Identity, IdentityChange


logger = logging.getLogger(__name__)

IdentityListener = Callable[[IdentityChange], Awaitable[None] | None]


class AuthProvider(Protocol):
    async def authenticate(self, email: str, password: str) -> Identity:
        ...

    async def end_session(self, access_token: str | None) -> None:
        ...

    async def get_identity(self, access_token: str | None) -> Identity | None:
        ...

    def on_identity_change(self, callback: IdentityListener) -> Callable[[], None]:
        ...


class IdentityChangeNotifier:
    """Listener registry shared by provider implementations."""

    def __init__(self) -> None:
        self._listeners: list[IdentityListener] = []

    def on_identity_change(self, callback: IdentityListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _unsubscribe

    async def _notify(self, change: IdentityChange) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(change)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:  # noqa: BLE001 - one bad listener must not break sign-in
                logger.warning("identity_listener_failed event=%s", change.event, exc_info=exc)
