"""Tenant capability evaluation.

Everything here is pure: callers fetch the rows for one resolved tenant and
pass them in together with a fixed ``now``. Evaluation never raises; missing
or malformed data degrades to "not granted".
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Protocol, Sequence

from hireconsole.services.permissions.registry import PermissionDefinition, list_definitions


class PermissionRow(Protocol):
    permission_key: str
    enabled: bool
    limit_count: int
    valid_from: datetime | None
    valid_until: datetime | None


class PermissionSubject(Protocol):
    is_super_admin: bool


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive timestamps; they were written as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def find_row(permission_key: str, rows: Iterable[PermissionRow]) -> PermissionRow | None:
    for row in rows:
        if row.permission_key == permission_key:
            return row
    return None


def is_within_window(row: PermissionRow, now: datetime) -> bool:
    if row.valid_from is None:
        return False
    current = _as_utc(now)
    if current < _as_utc(row.valid_from):
        return False
    if row.valid_until is not None and current >= _as_utc(row.valid_until):
        return False
    return True


def is_granted(
    profile: PermissionSubject | None,
    permission_key: str,
    rows: Iterable[PermissionRow],
    now: datetime,
) -> bool:
    # Order matters: super-admin bypass, then row lookup, then the time window, then the flag.
    if profile is None:
        return False
    if getattr(profile, "is_super_admin", False):
        return True
    row = find_row(permission_key, rows)
    if row is None:
        return False
    try:
        if not is_within_window(row, now):
            return False
    except (TypeError, AttributeError):
        return False
    return bool(row.enabled)


def quota_limit(permission_key: str, rows: Iterable[PermissionRow]) -> int:
    # Configured ceiling only; independent of the enabled flag and the validity window.
    row = find_row(permission_key, rows)
    if row is None:
        return 0
    return int(row.limit_count or 0)


@dataclass(frozen=True)
class PermissionMatrixEntry:
    definition: PermissionDefinition
    configured: bool
    enabled: bool
    limit_count: int
    valid_from: datetime | None
    valid_until: datetime | None
    granted: bool


@dataclass(frozen=True)
class PermissionSet:
    """Rows of a single tenant bound to the profile evaluating them."""

    tenant_id: str
    profile: PermissionSubject | None
    rows: Sequence[PermissionRow]

    def granted(self, permission_key: str, now: datetime) -> bool:
        return is_granted(self.profile, permission_key, self.rows, now)

    def limit(self, permission_key: str) -> int:
        return quota_limit(permission_key, self.rows)

    def matrix(self, now: datetime, search: str | None = None) -> list[PermissionMatrixEntry]:
        needle = (search or "").strip().lower()
        entries: list[PermissionMatrixEntry] = []
        for definition in list_definitions():
            if needle and needle not in definition.label.lower() and needle not in definition.description.lower():
                continue
            row = find_row(definition.key, self.rows)
            entries.append(
                PermissionMatrixEntry(
                    definition=definition,
                    configured=row is not None,
                    enabled=bool(row.enabled) if row is not None else False,
                    limit_count=self.limit(definition.key),
                    valid_from=row.valid_from if row is not None else None,
                    valid_until=row.valid_until if row is not None else None,
                    granted=self.granted(definition.key, now),
                )
            )
        return entries
