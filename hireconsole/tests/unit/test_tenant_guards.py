from __future__ import annotations

import pytest

from hireconsole.domain.models import TenantPermission
from hireconsole.persistence.guards import TenantPredicateError, require_tenant_id, tenant_predicate


def test_tenant_predicate_requires_tenant_id() -> None:
    with pytest.raises(TenantPredicateError) as excinfo:
        tenant_predicate(TenantPermission, "")
    assert excinfo.value.table == "tenant_permissions"


def test_tenant_predicate_builds_filter() -> None:
    clause = tenant_predicate(TenantPermission, "t1")
    assert "tenant_permissions.tenant_id" in str(clause)


def test_guard_can_be_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTHZ_REQUIRE_TENANT_PREDICATE", "false")
    from hireconsole.core.config import get_settings

    get_settings.cache_clear()
    require_tenant_id(None)
