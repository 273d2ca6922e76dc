from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Literal

from hireconsole.domain.models import Profile


@dataclass(frozen=True)
class Identity:
    # Authenticated identity as reported by the auth provider.
    id: str
    email: str | None
    access_token: str | None = None
    refresh_token: str | None = None


@dataclass(frozen=True)
class IdentityChange:
    event: Literal["signed_in", "signed_out"]
    identity: Identity | None = None


@dataclass(frozen=True)
class ProfileSnapshot:
    # Immutable copy of a profile row so session state never aliases ORM objects.
    id: str
    tenant_id: str
    email: str
    full_name: str
    is_super_admin: bool
    impersonate_tenant_id: str | None = None
    avatar_url: str | None = None
    phone: str | None = None
    position: str | None = None
    department: str | None = None
    last_login: datetime | None = None

    @classmethod
    def from_model(cls, profile: Profile) -> "ProfileSnapshot":
        return cls(
            id=profile.id,
            tenant_id=profile.tenant_id,
            email=profile.email,
            full_name=profile.full_name,
            is_super_admin=bool(profile.is_super_admin),
            impersonate_tenant_id=profile.impersonate_tenant_id,
            avatar_url=profile.avatar_url,
            phone=profile.phone,
            position=profile.position,
            department=profile.department,
            last_login=profile.last_login,
        )

    @property
    def effective_tenant_id(self) -> str:
        return self.impersonate_tenant_id or self.tenant_id

    @property
    def is_impersonating(self) -> bool:
        return self.impersonate_tenant_id is not None


@dataclass(frozen=True)
class SessionContext:
    """Explicit per-session auth state.

    Transitions (sign-in, impersonation, profile edits) produce a new context
    rather than mutating this one.
    """

    identity: Identity
    profile: ProfileSnapshot | None = None

    @property
    def user_id(self) -> str:
        return self.identity.id

    @property
    def home_tenant_id(self) -> str | None:
        return self.profile.tenant_id if self.profile else None

    @property
    def effective_tenant_id(self) -> str | None:
        return self.profile.effective_tenant_id if self.profile else None

    @property
    def impersonated_from(self) -> str | None:
        # Home tenant, reported only while acting under impersonation.
        if self.profile is None or not self.profile.is_impersonating:
            return None
        return self.profile.tenant_id

    @property
    def is_super_admin(self) -> bool:
        return bool(self.profile and self.profile.is_super_admin)

    def with_profile(self, profile: ProfileSnapshot | None) -> "SessionContext":
        return replace(self, profile=profile)
