from __future__ import annotations

from hireconsole.domain.state import Identity, ProfileSnapshot, SessionContext
from hireconsole.services.audit import build_entry, sanitize_details


def test_sanitize_details_redacts_nested_secrets() -> None:
    payload = {
        "email": "a@example.test",
        "password": "hunter2",
        "nested": {"Authorization": "Bearer x", "items": [{"refresh_token": "r"}, {"ok": 1}]},
    }
    sanitized = sanitize_details(payload)

    assert sanitized["email"] == "a@example.test"
    assert sanitized["password"] == "[REDACTED]"
    assert sanitized["nested"]["Authorization"] == "[REDACTED]"
    assert sanitized["nested"]["items"][0]["refresh_token"] == "[REDACTED]"
    assert sanitized["nested"]["items"][1] == {"ok": 1}
    # Input is left untouched.
    assert payload["password"] == "hunter2"


def test_build_entry_uses_effective_tenant_while_impersonating() -> None:
    context = SessionContext(
        identity=Identity(id="admin", email="admin@example.test"),
        profile=ProfileSnapshot(
            id="admin",
            tenant_id="home",
            email="admin@example.test",
            full_name="Admin",
            is_super_admin=True,
            impersonate_tenant_id="customer",
        ),
    )
    entry = build_entry(
        context,
        "impersonate_tenant",
        resource_type="tenant",
        resource_id="customer",
        request_context={"ip_address": "10.0.0.1", "user_agent": "pytest"},
    )

    assert entry.tenant_id == "customer"
    assert entry.impersonated_from == "home"
    assert entry.user_id == "admin"
    assert entry.ip_address == "10.0.0.1"
    assert entry.details == {}


def test_build_entry_without_context() -> None:
    entry = build_entry(None, "login_failed", details={"email": "x@example.test"})
    assert entry.tenant_id is None
    assert entry.user_id is None
    assert entry.impersonated_from is None
