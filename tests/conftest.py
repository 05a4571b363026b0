"""
Shared fixtures: in-memory database, stub auth provider and a scripted LLM.
"""

from __future__ import annotations

import time
import uuid
from typing import Any, Callable

import pytest

import vlab.community.models  # noqa: F401  (registers tables on Base)
import vlab.workspace.models  # noqa: F401
from vlab.auth import AuthUser
from vlab.db import Database, init_engine
from vlab.errors import AuthenticationFailed


class StubVerifier:
    """Token -> user map standing in for the auth provider."""

    def __init__(self) -> None:
        self.users: dict[str, AuthUser] = {}
        self.calls = 0

    def add(self, token: str, name: str = "Tester", *, is_anonymous: bool = False) -> AuthUser:
        user = AuthUser(
            id=str(uuid.uuid4()),
            email=None if is_anonymous else f"{name.lower()}@example.com",
            name=name,
            is_anonymous=is_anonymous,
        )
        self.users[token] = user
        return user

    def get_user(self, access_token: str) -> AuthUser:
        self.calls += 1
        try:
            return self.users[access_token]
        except KeyError:
            raise AuthenticationFailed("Invalid or expired session") from None


class ScriptedCompletionClient:
    """Returns queued responses in order; queued exceptions are raised."""

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    def complete(self, messages, *, model, max_tokens, temperature) -> str:
        self.calls.append(
            {"messages": messages, "model": model, "max_tokens": max_tokens, "temperature": temperature}
        )
        if not self.responses:
            return ""
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeClock:
    """Wall clock frozen at ``start``; rate-limit windows read ``time.time``."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def database():
    db = Database(init_engine("sqlite+pysqlite:///:memory:"))
    db.create_all()
    yield db
    db.engine.dispose()


@pytest.fixture()
def verifier() -> StubVerifier:
    return StubVerifier()


@pytest.fixture()
def completion_factory() -> Callable[..., ScriptedCompletionClient]:
    return ScriptedCompletionClient


@pytest.fixture()
def clock(monkeypatch) -> FakeClock:
    fake = FakeClock()
    monkeypatch.setattr(time, "time", fake)
    return fake


@pytest.fixture()
def auth_headers() -> Callable[[str], dict[str, str]]:
    def _headers(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    return _headers
