from __future__ import annotations

import secrets
from uuid import uuid4

from hireconsole.core.errors import InvalidCredentials
from hireconsole.domain.state import Identity, IdentityChange
from hireconsole.providers.auth.base import IdentityChangeNotifier


class FakeAuthProvider(IdentityChangeNotifier):
    """In-memory auth backend for local development and tests.

    Tokens never expire; once more than ``max_sessions`` are live the oldest
    is dropped, so an abandoned session eventually stops resolving.
    """

    def __init__(self, *, max_sessions: int = 1000) -> None:
        super().__init__()
        self._users: dict[str, tuple[str, str]] = {}
        self._tokens: dict[str, Identity] = {}
        self._max_sessions = max(1, max_sessions)

    def register(self, email: str, password: str, *, user_id: str | None = None) -> str:
        resolved_id = user_id or uuid4().hex
        self._users[email.strip().lower()] = (password, resolved_id)
        return resolved_id

    async def authenticate(self, email: str, password: str) -> Identity:
        record = self._users.get(email.strip().lower())
        if record is None or not secrets.compare_digest(record[0], password):
            raise InvalidCredentials("Invalid login credentials")
        token = f"fake_{secrets.token_urlsafe(24)}"
        identity = Identity(id=record[1], email=email, access_token=token)
        self._tokens[token] = identity
        while len(self._tokens) > self._max_sessions:
            # Dicts keep insertion order, so the first key is the oldest session.
            self._tokens.pop(next(iter(self._tokens)))
        await self._notify(IdentityChange(event="signed_in", identity=identity))
        return identity

    async def end_session(self, access_token: str | None) -> None:
        identity = self._tokens.pop(access_token, None) if access_token else None
        await self._notify(IdentityChange(event="signed_out", identity=identity))

    async def get_identity(self, access_token: str | None) -> Identity | None:
        if not access_token:
            return None
        return self._tokens.get(access_token)
