from __future__ import annotations

from typing import Any

from hireconsole.core.config import get_settings


class TenantPredicateError(RuntimeError):
    """A tenant-scoped query was built without a tenant id."""

    def __init__(self, table: str | None = None) -> None:
        target = f" on {table}" if table else ""
        super().__init__(f"Tenant predicate required{target} but tenant_id is missing")
        self.table = table


def require_tenant_id(tenant_id: str | None, *, table: str | None = None) -> None:
    # Skipped only when the guard is switched off for maintenance scripts.
    if not get_settings().authz_require_tenant_predicate:
        return
    if not tenant_id:
        raise TenantPredicateError(table)


def tenant_predicate(model: Any, tenant_id: str) -> Any:
    # Every tenant-scoped repository filter goes through here.
    require_tenant_id(tenant_id, table=getattr(model, "__tablename__", None))
    return model.tenant_id == tenant_id
