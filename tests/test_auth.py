from __future__ import annotations

from typing import Any, Optional

import pytest
import requests

from vlab.auth import AuthClient, AuthSettings, AuthUser, validate_credentials
from vlab.errors import AuthenticationFailed, UpstreamError, ValidationFailed


class FakeResponse:
    def __init__(self, status_code: int, body: Any = None) -> None:
        self.status_code = status_code
        self._body = body

    def json(self) -> Any:
        if self._body is None:
            raise ValueError("no body")
        return self._body


class FakeHttp:
    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.requests: list[dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.requests.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _client(*responses: Any) -> tuple[AuthClient, FakeHttp]:
    http = FakeHttp(*responses)
    settings = AuthSettings(supabase_url="https://auth.test", anon_key="anon", timeout=3)
    return AuthClient(settings, http=http), http


USER_PAYLOAD = {
    "id": "6f1c1f5e-8a53-4c55-8f43-1b8f0b5f4a01",
    "email": "ada@example.com",
    "user_metadata": {"full_name": "Ada Lovelace", "avatar_url": "https://img.test/ada.png"},
}


def test_get_user_maps_provider_payload() -> None:
    client, http = _client(FakeResponse(200, USER_PAYLOAD))

    user = client.get_user("token-123")

    assert user == AuthUser(
        id=USER_PAYLOAD["id"],
        email="ada@example.com",
        name="Ada Lovelace",
        avatar_url="https://img.test/ada.png",
        is_anonymous=False,
    )
    sent = http.requests[0]
    assert sent["method"] == "GET"
    assert sent["url"] == "https://auth.test/auth/v1/user"
    assert sent["headers"]["Authorization"] == "Bearer token-123"
    assert sent["headers"]["apikey"] == "anon"
    assert sent["timeout"] == 3


def test_name_falls_back_to_email_prefix() -> None:
    user = AuthUser.from_payload({"id": "u1", "email": "grace@example.com"})
    anonymous = AuthUser.from_payload({"id": "u2", "is_anonymous": True})

    assert user.name == "grace"
    assert anonymous.name == "Anonymous"
    assert anonymous.is_anonymous is True


@pytest.mark.parametrize(
    "response, error",
    [
        (FakeResponse(401, {"msg": "JWT expired"}), AuthenticationFailed),
        (FakeResponse(200, {"aud": "authenticated"}), AuthenticationFailed),
        (FakeResponse(503), UpstreamError),
        (requests.ConnectionError("refused"), UpstreamError),
    ],
)
def test_get_user_failures(response, error) -> None:
    client, _ = _client(response)

    with pytest.raises(error):
        client.get_user("token-123")


def test_provider_message_is_kept() -> None:
    client, _ = _client(FakeResponse(400, {"error_description": "Invalid login credentials"}))

    with pytest.raises(AuthenticationFailed) as excinfo:
        client.sign_in_with_password("ada@example.com", "secret1")

    assert excinfo.value.message == "Invalid login credentials"


def test_sign_in_and_sign_up() -> None:
    session_payload = {"access_token": "at", "refresh_token": "rt", "user": USER_PAYLOAD}
    client, http = _client(
        FakeResponse(200, session_payload),
        FakeResponse(200, {"id": "pending", "email": "new@example.com"}),
    )

    session = client.sign_in_with_password("ada@example.com", "secret1")
    pending: Optional[object] = client.sign_up("new@example.com", "secret1", "New")

    assert session.access_token == "at"
    assert session.user.email == "ada@example.com"
    assert http.requests[0]["params"] == {"grant_type": "password"}
    assert pending is None
    assert http.requests[1]["json"]["data"] == {"name": "New"}


def test_missing_token_is_rejected_locally() -> None:
    client, http = _client()

    with pytest.raises(AuthenticationFailed):
        client.get_user("")
    assert http.requests == []


@pytest.mark.parametrize(
    "email, password, message",
    [
        ("not-an-email", "secret1", "Please enter a valid email address"),
        ("@example.com", "secret1", "Please enter a valid email address"),
        ("ada@example.com", "12345", "Password must be at least 6 characters long"),
    ],
)
def test_validate_credentials(email, password, message) -> None:
    with pytest.raises(ValidationFailed) as excinfo:
        validate_credentials(email, password)

    assert excinfo.value.message == message


def test_auth_settings_from_env(monkeypatch) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co/")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
    monkeypatch.delenv("VLAB_AUTH_TIMEOUT_SECONDS", raising=False)

    settings = AuthSettings.from_env()

    assert settings.supabase_url == "https://project.supabase.co"
    assert settings.timeout == 10.0
