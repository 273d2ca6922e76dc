from __future__ import annotations

import os
import tempfile

# The engine is built at import time, so the test database must be chosen
# before anything under hireconsole.persistence is imported.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="hireconsole-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_DB_DIR}/hireconsole.db")
os.environ["AUTH_PROVIDER"] = "fake"

import pytest  # noqa: E402

from hireconsole.core.config import get_settings  # noqa: E402
from hireconsole.providers.auth import FakeAuthProvider, set_auth_provider  # noqa: E402


@pytest.fixture(autouse=True)
def reset_settings_cache() -> None:
    # Let tests override settings via monkeypatch.setenv without leaking.
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def auth_provider() -> FakeAuthProvider:
    # Install a fresh in-memory provider as the process-wide one.
    provider = FakeAuthProvider()
    set_auth_provider(provider)
    yield provider
    set_auth_provider(None)
