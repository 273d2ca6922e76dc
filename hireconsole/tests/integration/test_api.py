from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from hireconsole.apps.api.main import create_app
from hireconsole.providers.auth import FakeAuthProvider
from hireconsole.services.audit import get_audit_recorder
from hireconsole.tests.utils.factories import create_permission, create_profile, create_tenant


def _client() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=create_app()), base_url="http://test")


async def _sign_in(client: AsyncClient, email: str, password: str = "s3cret") -> dict[str, str]:
    response = await client.post("/v1/auth/sign-in", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    token = response.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_health_envelope() -> None:
    async with _client() as client:
        response = await client.get("/v1/health", headers={"X-Request-Id": "req-123"})

    assert response.status_code == 200
    body = response.json()
    assert body["data"]["status"] == "ok"
    assert body["meta"] == {"request_id": "req-123", "api_version": "v1"}
    assert response.headers["X-Request-Id"] == "req-123"


@pytest.mark.asyncio
async def test_protected_routes_require_bearer_token(auth_provider: FakeAuthProvider) -> None:
    async with _client() as client:
        missing = await client.get("/v1/permissions")
        invalid = await client.get("/v1/auth/session", headers={"Authorization": "Bearer nope"})

    assert missing.status_code == 401
    assert missing.json()["error"]["code"] == "AUTH_UNAUTHENTICATED"
    assert invalid.status_code == 401


@pytest.mark.asyncio
async def test_sign_in_rejects_bad_credentials(auth_provider: FakeAuthProvider) -> None:
    auth_provider.register("recruiter@example.test", "s3cret")
    async with _client() as client:
        response = await client.post(
            "/v1/auth/sign-in",
            json={"email": "recruiter@example.test", "password": "wrong"},
        )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_INVALID_CREDENTIALS"


@pytest.mark.asyncio
async def test_session_reports_missing_profile(auth_provider: FakeAuthProvider) -> None:
    auth_provider.register("orphan@example.test", "s3cret")
    async with _client() as client:
        headers = await _sign_in(client, "orphan@example.test")
        session = await client.get("/v1/auth/session", headers=headers)
        permissions = await client.get("/v1/permissions", headers=headers)

    assert session.status_code == 200
    assert session.json()["data"]["status"] == "profile_missing"
    assert session.json()["data"]["profile"] is None
    assert permissions.status_code == 409
    assert permissions.json()["error"]["code"] == "PROFILE_MISSING"


@pytest.mark.asyncio
async def test_permission_matrix_and_check(auth_provider: FakeAuthProvider) -> None:
    tenant_id = await create_tenant()
    await create_permission(tenant_id=tenant_id, permission_key="can_post_job", limit_count=12)
    user_id = auth_provider.register("recruiter@example.test", "s3cret")
    await create_profile(tenant_id=tenant_id, profile_id=user_id)

    async with _client() as client:
        headers = await _sign_in(client, "recruiter@example.test")
        matrix = await client.get("/v1/permissions/matrix", params={"search": "job"}, headers=headers)
        check = await client.get("/v1/permissions/can_post_job/check", headers=headers)
        denied = await client.get("/v1/permissions/can_send_tests/check", headers=headers)
        unknown = await client.get("/v1/permissions/can_fly/check", headers=headers)
        definitions = await client.get("/v1/permissions/definitions", headers=headers)

    items = matrix.json()["data"]["items"]
    assert [item["definition"]["key"] for item in items] == ["can_post_job"]
    assert items[0]["granted"] is True
    assert items[0]["limit_count"] == 12
    assert check.json()["data"] == {
        "tenant_id": tenant_id,
        "permission_key": "can_post_job",
        "granted": True,
        "limit": 12,
    }
    assert denied.json()["data"]["granted"] is False
    assert unknown.status_code == 400
    assert unknown.json()["error"]["code"] == "UNKNOWN_PERMISSION_KEY"
    assert len(definitions.json()["data"]) == 13


@pytest.mark.asyncio
async def test_update_permission_enforced_server_side(auth_provider: FakeAuthProvider) -> None:
    tenant_id = await create_tenant()
    member_id = auth_provider.register("member@example.test", "s3cret")
    await create_profile(tenant_id=tenant_id, profile_id=member_id)
    admin_id = auth_provider.register("admin@example.test", "s3cret")
    await create_profile(tenant_id=tenant_id, profile_id=admin_id, is_super_admin=True)

    async with _client() as client:
        member_headers = await _sign_in(client, "member@example.test")
        forbidden = await client.put(
            "/v1/permissions/can_post_job",
            json={"enabled": True, "limit_count": 5},
            headers=member_headers,
        )
        admin_headers = await _sign_in(client, "admin@example.test")
        updated = await client.put(
            "/v1/permissions/can_post_job",
            json={"enabled": True, "limit_count": 5},
            headers=admin_headers,
        )
        negative = await client.put(
            "/v1/permissions/can_post_job",
            json={"enabled": True, "limit_count": -1},
            headers=admin_headers,
        )
        listed = await client.get("/v1/permissions", headers=member_headers)

    assert forbidden.status_code == 403
    assert forbidden.json()["error"]["code"] == "AUTH_FORBIDDEN"
    assert updated.status_code == 200
    assert updated.json()["data"]["limit_count"] == 5
    assert updated.json()["data"]["valid_until"] is None
    assert negative.status_code == 422
    assert [row["permission_key"] for row in listed.json()["data"]] == ["can_post_job"]


@pytest.mark.asyncio
async def test_impersonation_round_trip(auth_provider: FakeAuthProvider) -> None:
    home = await create_tenant(name="Platform")
    customer = await create_tenant(name="Customer")
    await create_permission(tenant_id=customer, permission_key="can_view_audit_logs")
    admin_id = auth_provider.register("admin@example.test", "s3cret")
    await create_profile(tenant_id=home, profile_id=admin_id, is_super_admin=True)
    member_id = auth_provider.register("member@example.test", "s3cret")
    await create_profile(tenant_id=home, profile_id=member_id)

    async with _client() as client:
        admin_headers = await _sign_in(client, "admin@example.test")
        member_headers = await _sign_in(client, "member@example.test")

        member_attempt = await client.post(
            "/v1/impersonation", json={"tenant_id": customer}, headers=member_headers
        )
        missing_tenant = await client.post(
            "/v1/impersonation", json={"tenant_id": "missing"}, headers=admin_headers
        )
        started = await client.post("/v1/impersonation", json={"tenant_id": customer}, headers=admin_headers)
        session = await client.get("/v1/auth/session", headers=admin_headers)
        tenants = await client.get("/v1/tenants", headers=admin_headers)
        member_tenants = await client.get("/v1/tenants", headers=member_headers)
        stopped = await client.delete("/v1/impersonation", headers=admin_headers)

    assert member_attempt.status_code == 403
    assert missing_tenant.status_code == 404
    assert missing_tenant.json()["error"]["code"] == "TENANT_NOT_FOUND"
    assert started.status_code == 200
    assert started.json()["data"]["effective_tenant_id"] == customer
    assert started.json()["data"]["is_impersonating"] is True
    assert session.json()["data"]["effective_tenant_id"] == customer
    current = [tenant for tenant in tenants.json()["data"] if tenant["is_current"]]
    assert [tenant["id"] for tenant in current] == [customer]
    assert member_tenants.status_code == 403
    assert stopped.json()["data"]["effective_tenant_id"] == home
    assert stopped.json()["data"]["is_impersonating"] is False


@pytest.mark.asyncio
async def test_audit_logs_are_tenant_scoped(auth_provider: FakeAuthProvider) -> None:
    tenant_id = await create_tenant()
    other_tenant_id = await create_tenant()
    await create_permission(tenant_id=tenant_id, permission_key="can_view_audit_logs")
    viewer_id = auth_provider.register("viewer@example.test", "s3cret")
    await create_profile(tenant_id=tenant_id, profile_id=viewer_id)
    outsider_id = auth_provider.register("outsider@example.test", "s3cret")
    await create_profile(tenant_id=other_tenant_id, profile_id=outsider_id)

    async with _client() as client:
        viewer_headers = await _sign_in(client, "viewer@example.test")
        outsider_headers = await _sign_in(client, "outsider@example.test")
        await get_audit_recorder().drain()
        logs = await client.get("/v1/audit/logs", headers=viewer_headers)
        filtered = await client.get("/v1/audit/logs", params={"action": "logout"}, headers=viewer_headers)
        denied = await client.get("/v1/audit/logs", headers=outsider_headers)

    assert logs.status_code == 200
    items = logs.json()["data"]["items"]
    assert [item["action"] for item in items] == ["login"]
    assert items[0]["user_id"] == viewer_id
    assert filtered.json()["data"]["items"] == []
    assert denied.status_code == 403


@pytest.mark.asyncio
async def test_profile_patch_rejects_privileged_fields(auth_provider: FakeAuthProvider) -> None:
    tenant_id = await create_tenant()
    user_id = auth_provider.register("recruiter@example.test", "s3cret")
    await create_profile(tenant_id=tenant_id, profile_id=user_id)

    async with _client() as client:
        headers = await _sign_in(client, "recruiter@example.test")
        blocked = await client.patch("/v1/auth/profile", json={"is_super_admin": True}, headers=headers)
        stamped = await client.patch("/v1/auth/profile", json={"last_login": "2001-01-01"}, headers=headers)
        cleared = await client.patch("/v1/auth/profile", json={"full_name": None}, headers=headers)
        updated = await client.patch("/v1/auth/profile", json={"position": "Lead"}, headers=headers)
        signed_out = await client.post("/v1/auth/sign-out", headers=headers)
        after = await client.get("/v1/auth/session", headers=headers)

    assert blocked.status_code == 400
    assert stamped.status_code == 400
    assert cleared.status_code == 400
    assert cleared.json()["error"]["code"] == "BAD_REQUEST"
    assert updated.json()["data"]["profile"]["position"] == "Lead"
    assert signed_out.json()["data"] == {"signed_out": True}
    assert after.status_code == 401
