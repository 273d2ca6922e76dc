from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PermissionDefinition:
    # Compiled-in catalog entry; keys are stable across tenants.
    key: str
    label: str
    description: str
    has_quota: bool = False


CAN_LOGIN = "can_login"
CAN_INVITE_USER = "can_invite_user"
CAN_MANAGE_TENANT = "can_manage_tenant"
CAN_MANAGE_USERS = "can_manage_users"
CAN_POST_JOB = "can_post_job"
CAN_USE_AI_VIDEO = "can_use_ai_video"
CAN_SEND_TESTS = "can_send_tests"
CAN_EDIT_PERMISSIONS = "can_edit_permissions"
CAN_VIEW_AUDIT_LOGS = "can_view_audit_logs"
CAN_CUSTOMIZE_BRANDING = "can_customize_branding"
CAN_SEND_LANGUAGE_TEST = "can_send_language_test"
CAN_MANAGE_ROLES = "can_manage_roles"
CAN_VIEW_SYSTEM_HEALTH = "can_view_system_health"

_DEFINITIONS: tuple[PermissionDefinition, ...] = (
    PermissionDefinition(CAN_LOGIN, "Login Access", "Basic login capability"),
    PermissionDefinition(CAN_INVITE_USER, "Invite Users", "Ability to invite new users"),
    PermissionDefinition(CAN_MANAGE_TENANT, "Manage Tenant", "Tenant settings and configuration"),
    PermissionDefinition(CAN_MANAGE_USERS, "Manage Users", "User management and roles"),
    PermissionDefinition(CAN_POST_JOB, "Post Jobs", "Create and manage job postings", has_quota=True),
    PermissionDefinition(
        CAN_USE_AI_VIDEO, "AI Video Interviews", "Use AI-powered video interviews", has_quota=True
    ),
    PermissionDefinition(
        CAN_SEND_TESTS, "Send Assessments", "Send personality and skill tests", has_quota=True
    ),
    PermissionDefinition(CAN_EDIT_PERMISSIONS, "Edit Permissions", "Modify permission settings"),
    PermissionDefinition(CAN_VIEW_AUDIT_LOGS, "View Audit Logs", "Access system audit logs"),
    PermissionDefinition(CAN_CUSTOMIZE_BRANDING, "Customize Branding", "Change tenant branding"),
    PermissionDefinition(
        CAN_SEND_LANGUAGE_TEST, "Language Tests", "Send language proficiency tests"
    ),
    PermissionDefinition(CAN_MANAGE_ROLES, "Manage Roles", "Create and modify user roles"),
    PermissionDefinition(
        CAN_VIEW_SYSTEM_HEALTH, "View System Health", "Monitor system services and performance"
    ),
)

_BY_KEY: dict[str, PermissionDefinition] = {definition.key: definition for definition in _DEFINITIONS}
if len(_BY_KEY) != len(_DEFINITIONS):
    raise RuntimeError("Duplicate permission keys in registry")

PERMISSION_KEYS = frozenset(_BY_KEY)


def list_definitions() -> tuple[PermissionDefinition, ...]:
    return _DEFINITIONS


def get_definition(permission_key: str) -> PermissionDefinition | None:
    return _BY_KEY.get(permission_key)


def is_known_key(permission_key: str) -> bool:
    return permission_key in _BY_KEY
