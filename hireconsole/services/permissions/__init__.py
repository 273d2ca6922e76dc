from __future__ import annotations

# Re-export permission services for centralized imports.

from hireconsole.services.permissions.access import load_permission_set, require_permission
from hireconsole.services.permissions.evaluator import (
    PermissionMatrixEntry,
    PermissionSet,
    is_granted,
    quota_limit,
)
from hireconsole.services.permissions.registry import (
    PERMISSION_KEYS,
    PermissionDefinition,
    get_definition,
    is_known_key,
    list_definitions,
)
from hireconsole.services.permissions.updates import set_permission

__all__ = [
    "load_permission_set",
    "require_permission",
    "PermissionMatrixEntry",
    "PermissionSet",
    "is_granted",
    "quota_limit",
    "PERMISSION_KEYS",
    "PermissionDefinition",
    "get_definition",
    "is_known_key",
    "list_definitions",
    "set_permission",
]
