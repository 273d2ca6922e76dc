from __future__ import annotations

import logging
from typing import Any

import httpx

from hireconsole.core.errors import InvalidCredentials, StoreUnavailable, Unauthenticated
from hireconsole.domain.state import Identity, IdentityChange
from hireconsole.providers.auth.base import IdentityChangeNotifier


logger = logging.getLogger(__name__)


class GoTrueAuthProvider(IdentityChangeNotifier):
    """Hosted auth REST API (GoTrue / Supabase Auth) over httpx."""

    def __init__(
        self,
        *,
        base_url: str,
        anon_key: str | None,
        timeout_s: float,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__()
        self._base_url = base_url.rstrip("/")
        self._anon_key = anon_key
        self._timeout_s = timeout_s
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        # Reuse a single client per provider for connection pooling.
        self._client = httpx.AsyncClient(timeout=self._timeout_s)
        return self._client

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self._anon_key:
            headers["apikey"] = self._anon_key
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._get_client().request(method, f"{self._base_url}{path}", **kwargs)
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            logger.warning("auth_provider_unreachable method=%s path=%s", method, path, exc_info=exc)
            raise StoreUnavailable("Auth provider unavailable") from exc

    @staticmethod
    def _identity_from_user(user: dict[str, Any], body: dict[str, Any] | None = None) -> Identity:
        body = body or {}
        return Identity(
            id=str(user["id"]),
            email=user.get("email"),
            access_token=body.get("access_token"),
            refresh_token=body.get("refresh_token"),
        )

    async def authenticate(self, email: str, password: str) -> Identity:
        response = await self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
            headers=self._headers(),
        )
        if response.status_code >= 500:
            logger.warning("auth_provider_error status=%s", response.status_code)
            raise StoreUnavailable("Auth provider unavailable")
        if response.status_code >= 400:
            raise InvalidCredentials("Invalid login credentials")
        body = response.json()
        user = body.get("user") or {}
        if "id" not in user:
            raise StoreUnavailable("Auth provider response missing user")
        identity = self._identity_from_user(user, body)
        await self._notify(IdentityChange(event="signed_in", identity=identity))
        return identity

    async def end_session(self, access_token: str | None) -> None:
        if not access_token:
            raise Unauthenticated()
        identity = await self.get_identity(access_token)
        response = await self._request("POST", "/auth/v1/logout", headers=self._headers(access_token))
        if response.status_code >= 500:
            raise StoreUnavailable("Auth provider unavailable")
        # An already-expired token is signed out as far as the caller is concerned.
        await self._notify(IdentityChange(event="signed_out", identity=identity))

    async def get_identity(self, access_token: str | None) -> Identity | None:
        if not access_token:
            return None
        response = await self._request("GET", "/auth/v1/user", headers=self._headers(access_token))
        if response.status_code in (401, 403, 404):
            return None
        if response.status_code >= 400:
            logger.warning("auth_provider_error status=%s", response.status_code)
            raise StoreUnavailable("Auth provider unavailable")
        user = response.json()
        return Identity(id=str(user["id"]), email=user.get("email"), access_token=access_token)
