from __future__ import annotations

from hireconsole.core.config import get_settings
from hireconsole.providers.auth.base import AuthProvider
from hireconsole.providers.auth.fake import FakeAuthProvider
from hireconsole.providers.auth.gotrue import GoTrueAuthProvider


_provider: AuthProvider | None = None


def get_auth_provider() -> AuthProvider:
    # One provider per process so identity-change listeners see every transition.
    global _provider
    if _provider is not None:
        return _provider
    settings = get_settings()
    name = (settings.auth_provider or "gotrue").lower()
    if name == "fake":
        _provider = FakeAuthProvider()
    else:
        _provider = GoTrueAuthProvider(
            base_url=settings.auth_url,
            anon_key=settings.auth_anon_key,
            timeout_s=settings.auth_timeout_ms / 1000.0,
        )
    return _provider


def set_auth_provider(provider: AuthProvider | None) -> None:
    # Swap the process-wide provider (tests, embedding apps).
    global _provider
    _provider = provider
