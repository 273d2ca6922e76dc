from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal


AuditAction = Literal[
    "login",
    "login_failed",
    "logout",
    "impersonate_tenant",
    "stop_impersonation",
    "update_profile",
]


@dataclass(frozen=True)
class AuditEntry:
    # Post-commit event emitted by mutating operations and consumed by the audit recorder.
    action: AuditAction
    tenant_id: str | None
    user_id: str | None
    resource_type: str | None = None
    resource_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    impersonated_from: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
