from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
import sys

from hireconsole.domain.models import Profile, Tenant
from hireconsole.persistence.db import SessionLocal
from hireconsole.persistence.repos import permissions as permissions_repo
from hireconsole.services.permissions.registry import list_definitions


@dataclass(frozen=True)
class DemoTenant:
    id: str
    name: str
    subdomain: str
    plan: str
    # Keys left out stay disabled (no row).
    enabled_keys: tuple[str, ...]


@dataclass(frozen=True)
class DemoProfile:
    # Ids must match the identities registered with the auth provider.
    id: str
    tenant_id: str
    email: str
    full_name: str
    is_super_admin: bool = False


DEMO_TENANTS: tuple[DemoTenant, ...] = (
    DemoTenant(
        id="tenant-acme",
        name="Acme Recruiting",
        subdomain="acme",
        plan="enterprise",
        enabled_keys=tuple(definition.key for definition in list_definitions()),
    ),
    DemoTenant(
        id="tenant-globex",
        name="Globex Talent",
        subdomain="globex",
        plan="trial",
        enabled_keys=("can_login", "can_post_job", "can_invite_user"),
    ),
)

DEMO_PROFILES: tuple[DemoProfile, ...] = (
    DemoProfile(
        id="user-superadmin",
        tenant_id="tenant-acme",
        email="superadmin@acme.example",
        full_name="Platform Super Admin",
        is_super_admin=True,
    ),
    DemoProfile(
        id="user-globex-admin",
        tenant_id="tenant-globex",
        email="admin@globex.example",
        full_name="Globex Admin",
    ),
)

# Demo quotas for capabilities that carry one.
DEMO_LIMITS: dict[str, int] = {"can_post_job": 10, "can_use_ai_video": 25, "can_send_tests": 100}


async def seed_demo() -> int:
    now = datetime.now(timezone.utc)
    async with SessionLocal() as session:
        for demo in DEMO_TENANTS:
            tenant = await session.get(Tenant, demo.id)
            if tenant is None:
                session.add(
                    Tenant(id=demo.id, name=demo.name, subdomain=demo.subdomain, subscription_plan=demo.plan)
                )
        await session.flush()

        for demo in DEMO_PROFILES:
            profile = await session.get(Profile, demo.id)
            if profile is None:
                session.add(
                    Profile(
                        id=demo.id,
                        tenant_id=demo.tenant_id,
                        email=demo.email,
                        full_name=demo.full_name,
                        is_super_admin=demo.is_super_admin,
                    )
                )
        await session.flush()

        # Upserts keep reruns idempotent and leave existing validity windows alone.
        for demo in DEMO_TENANTS:
            for definition in list_definitions():
                await permissions_repo.upsert_permission(
                    session,
                    tenant_id=demo.id,
                    permission_key=definition.key,
                    enabled=definition.key in demo.enabled_keys,
                    limit_count=DEMO_LIMITS.get(definition.key, 0),
                    now=now,
                )
        await session.commit()

    print(f"Seeded {len(DEMO_TENANTS)} tenants and {len(DEMO_PROFILES)} profiles.")
    return 0


def main() -> int:
    # Exit non-zero so dev scripts can detect seeding failures.
    try:
        return asyncio.run(seed_demo())
    except Exception as exc:  # noqa: BLE001 - surface any setup or DB errors
        print(f"seed_demo failed: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
