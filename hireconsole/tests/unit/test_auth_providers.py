from __future__ import annotations

import json

import httpx
import pytest

from hireconsole.core.errors import InvalidCredentials, StoreUnavailable
from hireconsole.domain.state import IdentityChange
from hireconsole.providers.auth import FakeAuthProvider, GoTrueAuthProvider, get_auth_provider, set_auth_provider


def _gotrue(handler) -> GoTrueAuthProvider:
    return GoTrueAuthProvider(
        base_url="https://project.example.test/",
        anon_key="anon-key",
        timeout_s=1.0,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.mark.asyncio
async def test_fake_provider_round_trip_notifies_listeners() -> None:
    provider = FakeAuthProvider()
    user_id = provider.register("recruiter@example.test", "s3cret")
    seen: list[IdentityChange] = []
    unsubscribe = provider.on_identity_change(seen.append)

    identity = await provider.authenticate("Recruiter@example.test", "s3cret")
    assert identity.id == user_id
    assert await provider.get_identity(identity.access_token) == identity

    await provider.end_session(identity.access_token)
    assert await provider.get_identity(identity.access_token) is None
    assert [change.event for change in seen] == ["signed_in", "signed_out"]

    unsubscribe()
    await provider.authenticate("recruiter@example.test", "s3cret")
    assert len(seen) == 2


@pytest.mark.asyncio
async def test_fake_provider_rejects_bad_password() -> None:
    provider = FakeAuthProvider()
    provider.register("recruiter@example.test", "s3cret")
    with pytest.raises(InvalidCredentials):
        await provider.authenticate("recruiter@example.test", "wrong")
    with pytest.raises(InvalidCredentials):
        await provider.authenticate("nobody@example.test", "s3cret")


@pytest.mark.asyncio
async def test_fake_provider_drops_oldest_session_over_cap() -> None:
    provider = FakeAuthProvider(max_sessions=2)
    provider.register("recruiter@example.test", "s3cret")

    first = await provider.authenticate("recruiter@example.test", "s3cret")
    second = await provider.authenticate("recruiter@example.test", "s3cret")
    third = await provider.authenticate("recruiter@example.test", "s3cret")

    assert await provider.get_identity(first.access_token) is None
    assert await provider.get_identity(second.access_token) == second
    assert await provider.get_identity(third.access_token) == third


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_sign_in() -> None:
    provider = FakeAuthProvider()
    provider.register("recruiter@example.test", "s3cret")

    def _boom(change: IdentityChange) -> None:
        raise RuntimeError("listener failed")

    provider.on_identity_change(_boom)
    identity = await provider.authenticate("recruiter@example.test", "s3cret")
    assert identity.access_token


@pytest.mark.asyncio
async def test_gotrue_password_grant() -> None:
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["apikey"] = request.headers.get("apikey")
        captured["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "access_token": "at",
                "refresh_token": "rt",
                "user": {"id": "user-1", "email": "recruiter@example.test"},
            },
        )

    provider = _gotrue(handler)
    seen: list[IdentityChange] = []
    provider.on_identity_change(seen.append)
    identity = await provider.authenticate("recruiter@example.test", "s3cret")

    assert identity.id == "user-1"
    assert identity.access_token == "at"
    assert identity.refresh_token == "rt"
    assert captured["url"] == "https://project.example.test/auth/v1/token?grant_type=password"
    assert captured["apikey"] == "anon-key"
    assert captured["body"] == {"email": "recruiter@example.test", "password": "s3cret"}
    assert seen[0].event == "signed_in"


@pytest.mark.asyncio
async def test_gotrue_maps_failures() -> None:
    provider = _gotrue(lambda request: httpx.Response(400, json={"error": "invalid_grant"}))
    with pytest.raises(InvalidCredentials):
        await provider.authenticate("recruiter@example.test", "wrong")

    provider = _gotrue(lambda request: httpx.Response(503))
    with pytest.raises(StoreUnavailable):
        await provider.authenticate("recruiter@example.test", "s3cret")

    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    provider = _gotrue(unreachable)
    with pytest.raises(StoreUnavailable):
        await provider.authenticate("recruiter@example.test", "s3cret")


@pytest.mark.asyncio
async def test_gotrue_get_identity_and_sign_out() -> None:
    calls: list[tuple[str, str | None]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.url.path, request.headers.get("authorization")))
        if request.url.path == "/auth/v1/user":
            if request.headers.get("authorization") != "Bearer good":
                return httpx.Response(401)
            return httpx.Response(200, json={"id": "user-1", "email": "recruiter@example.test"})
        return httpx.Response(204)

    provider = _gotrue(handler)
    identity = await provider.get_identity("good")
    assert identity is not None and identity.id == "user-1"
    assert await provider.get_identity("expired") is None
    assert await provider.get_identity(None) is None

    seen: list[IdentityChange] = []
    provider.on_identity_change(seen.append)
    await provider.end_session("good")
    assert ("/auth/v1/logout", "Bearer good") in calls
    assert seen[-1].event == "signed_out"
    assert seen[-1].identity is not None and seen[-1].identity.id == "user-1"


def test_factory_selects_backend_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    from hireconsole.core.config import get_settings

    set_auth_provider(None)
    try:
        monkeypatch.setenv("AUTH_PROVIDER", "fake")
        get_settings.cache_clear()
        provider = get_auth_provider()
        assert isinstance(provider, FakeAuthProvider)
        assert get_auth_provider() is provider

        set_auth_provider(None)
        monkeypatch.setenv("AUTH_PROVIDER", "gotrue")
        get_settings.cache_clear()
        assert isinstance(get_auth_provider(), GoTrueAuthProvider)
    finally:
        set_auth_provider(None)
