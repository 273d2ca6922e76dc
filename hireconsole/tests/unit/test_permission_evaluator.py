from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from hireconsole.services.permissions.evaluator import PermissionSet, is_granted, quota_limit


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@dataclass
class Row:
    permission_key: str
    enabled: bool = True
    limit_count: int = 0
    valid_from: datetime | None = NOW - timedelta(days=30)
    valid_until: datetime | None = None


@dataclass
class Subject:
    is_super_admin: bool = False


def test_no_profile_is_never_granted() -> None:
    assert is_granted(None, "can_login", [Row("can_login")], NOW) is False


def test_super_admin_bypasses_rows() -> None:
    admin = Subject(is_super_admin=True)
    assert is_granted(admin, "can_post_job", [], NOW) is True
    assert is_granted(admin, "can_post_job", [Row("can_post_job", enabled=False)], NOW) is True
    expired = Row("can_post_job", valid_until=NOW - timedelta(days=1))
    assert is_granted(admin, "can_post_job", [expired], NOW) is True


def test_missing_row_is_not_granted() -> None:
    assert is_granted(Subject(), "can_post_job", [Row("can_login")], NOW) is False


def test_enabled_row_inside_window_is_granted() -> None:
    rows = [Row("can_post_job", valid_until=NOW + timedelta(days=1))]
    assert is_granted(Subject(), "can_post_job", rows, NOW) is True


def test_disabled_row_is_not_granted() -> None:
    assert is_granted(Subject(), "can_post_job", [Row("can_post_job", enabled=False)], NOW) is False


def test_window_not_started_is_not_granted() -> None:
    rows = [Row("can_post_job", valid_from=NOW + timedelta(seconds=1))]
    assert is_granted(Subject(), "can_post_job", rows, NOW) is False


def test_window_start_is_inclusive() -> None:
    assert is_granted(Subject(), "can_post_job", [Row("can_post_job", valid_from=NOW)], NOW) is True


def test_window_end_is_exclusive() -> None:
    rows = [Row("can_post_job", valid_until=NOW)]
    assert is_granted(Subject(), "can_post_job", rows, NOW) is False
    assert is_granted(Subject(), "can_post_job", rows, NOW - timedelta(microseconds=1)) is True


def test_expiry_beats_enabled_flag() -> None:
    # Enabled but lapsed stays denied.
    rows = [Row("can_use_ai_video", enabled=True, valid_until=NOW - timedelta(hours=1))]
    assert is_granted(Subject(), "can_use_ai_video", rows, NOW) is False


def test_missing_valid_from_fails_closed() -> None:
    assert is_granted(Subject(), "can_login", [Row("can_login", valid_from=None)], NOW) is False


def test_malformed_timestamps_fail_closed() -> None:
    rows = [Row("can_login", valid_from="yesterday")]  # type: ignore[arg-type]
    assert is_granted(Subject(), "can_login", rows, NOW) is False


def test_naive_timestamps_are_treated_as_utc() -> None:
    naive_start = (NOW - timedelta(minutes=5)).replace(tzinfo=None)
    naive_end = (NOW + timedelta(minutes=5)).replace(tzinfo=None)
    rows = [Row("can_login", valid_from=naive_start, valid_until=naive_end)]
    assert is_granted(Subject(), "can_login", rows, NOW) is True
    assert is_granted(Subject(), "can_login", rows, NOW + timedelta(minutes=10)) is False


def test_quota_limit_ignores_window_and_flag() -> None:
    rows = [
        Row("can_post_job", enabled=False, limit_count=5, valid_until=NOW - timedelta(days=1)),
    ]
    assert quota_limit("can_post_job", rows) == 5
    assert is_granted(Subject(), "can_post_job", rows, NOW) is False


def test_quota_limit_defaults_to_zero() -> None:
    assert quota_limit("can_send_tests", []) == 0


def test_permission_set_matrix_merges_registry_and_rows() -> None:
    permissions = PermissionSet(
        tenant_id="t1",
        profile=Subject(),
        rows=(Row("can_post_job", limit_count=10),),
    )
    matrix = {entry.definition.key: entry for entry in permissions.matrix(NOW)}

    assert len(matrix) == 13
    assert matrix["can_post_job"].configured is True
    assert matrix["can_post_job"].granted is True
    assert matrix["can_post_job"].limit_count == 10
    assert matrix["can_login"].configured is False
    assert matrix["can_login"].granted is False


def test_permission_set_matrix_search_is_case_insensitive() -> None:
    permissions = PermissionSet(tenant_id="t1", profile=Subject(), rows=())
    keys = [entry.definition.key for entry in permissions.matrix(NOW, search="AUDIT")]
    assert keys == ["can_view_audit_logs"]

    by_description = [entry.definition.key for entry in permissions.matrix(NOW, search="proficiency")]
    assert by_description == ["can_send_language_test"]


def test_empty_permission_set_grants_nothing() -> None:
    permissions = PermissionSet(tenant_id="", profile=None, rows=())
    assert permissions.granted("can_login", NOW) is False
    assert permissions.limit("can_post_job") == 0
