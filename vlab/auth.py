"""Bearer-token authentication against the hosted auth provider.

The provider is a Supabase-compatible GoTrue server. Tokens are never
decoded locally; every verification asks the provider for the user behind
the token.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

import requests
import structlog
from fastapi import Request

from .errors import AuthenticationFailed, UpstreamError, ValidationFailed

__all__ = [
    "AuthSettings",
    "AuthUser",
    "AuthSession",
    "AuthClient",
    "TokenVerifier",
    "bearer_token",
    "require_user",
    "optional_user",
]

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class AuthSettings:
    """Connection details for the auth provider."""

    supabase_url: str
    anon_key: str
    timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "AuthSettings":
        supabase_url = os.getenv("SUPABASE_URL")
        anon_key = os.getenv("SUPABASE_ANON_KEY")
        if not supabase_url or not anon_key:
            raise ValueError("Auth provider required: set SUPABASE_URL and SUPABASE_ANON_KEY")
        return cls(
            supabase_url=supabase_url.rstrip("/"),
            anon_key=anon_key,
            timeout=float(os.getenv("VLAB_AUTH_TIMEOUT_SECONDS", "10")),
        )


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    is_anonymous: bool = False

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "AuthUser":
        metadata = payload.get("user_metadata") or {}
        email = payload.get("email") or None
        name = metadata.get("name") or metadata.get("full_name")
        if not name:
            name = email.split("@", 1)[0] if email else "Anonymous"
        return cls(
            id=str(payload["id"]),
            email=email,
            name=name,
            avatar_url=metadata.get("avatar_url"),
            is_anonymous=bool(payload.get("is_anonymous", False)),
        )


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    refresh_token: Optional[str]
    user: AuthUser


class TokenVerifier(Protocol):
    def get_user(self, access_token: str) -> AuthUser: ...


@dataclass
class AuthClient:
    """Minimal client for the GoTrue REST endpoints used by VLab."""

    settings: AuthSettings
    http: requests.Session = field(default_factory=requests.Session)

    def _url(self, path: str) -> str:
        return f"{self.settings.supabase_url}/auth/v1/{path.lstrip('/')}"

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        headers = {"apikey": self.settings.anon_key, "Content-Type": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        access_token: str | None = None,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> requests.Response:
        try:
            response = self.http.request(
                method,
                self._url(path),
                headers=self._headers(access_token),
                json=json,
                params=params,
                timeout=self.settings.timeout,
            )
        except requests.RequestException as exc:
            logger.error("auth_provider_unreachable", path=path, error=str(exc))
            raise UpstreamError("Authentication service unavailable") from exc
        if response.status_code in (400, 401, 403, 422):
            logger.info("auth_rejected", path=path, status=response.status_code)
            raise AuthenticationFailed(_provider_message(response) or "Unauthorized")
        if response.status_code >= 300:
            logger.error("auth_provider_error", path=path, status=response.status_code)
            raise UpstreamError("Authentication service unavailable")
        return response

    def get_user(self, access_token: str) -> AuthUser:
        """Return the user behind *access_token* or raise ``AuthenticationFailed``."""

        if not access_token:
            raise AuthenticationFailed("Missing access token")
        payload = self._request("GET", "user", access_token=access_token).json()
        if not isinstance(payload, dict) or not payload.get("id"):
            raise AuthenticationFailed("Invalid or expired session")
        return AuthUser.from_payload(payload)

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        payload = self._request(
            "POST",
            "token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        ).json()
        return _session_from_payload(payload)

    def sign_up(self, email: str, password: str, name: str) -> AuthSession | None:
        """Register a user. Returns ``None`` when email confirmation is pending."""

        payload = self._request(
            "POST",
            "signup",
            json={"email": email, "password": password, "data": {"name": name}},
        ).json()
        if not payload.get("access_token"):
            return None
        return _session_from_payload(payload)

    def sign_out(self, access_token: str) -> None:
        self._request("POST", "logout", access_token=access_token)


def _session_from_payload(payload: dict[str, Any]) -> AuthSession:
    if not payload.get("access_token") or not isinstance(payload.get("user"), dict):
        raise AuthenticationFailed("Invalid credentials")
    return AuthSession(
        access_token=payload["access_token"],
        refresh_token=payload.get("refresh_token"),
        user=AuthUser.from_payload(payload["user"]),
    )


def _provider_message(response: requests.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    for key in ("error_description", "msg", "message"):
        if isinstance(body.get(key), str):
            return body[key]
    return None


def bearer_token(request: Request) -> str | None:
    """Extract the token from ``Authorization: Bearer <token>``."""

    header = request.headers.get("Authorization")
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_user(verifier: TokenVerifier) -> Callable[[Request], AuthUser]:
    """Build a FastAPI dependency that rejects unauthenticated requests."""

    def _dependency(request: Request) -> AuthUser:
        token = bearer_token(request)
        if token is None:
            raise AuthenticationFailed("Missing or invalid authorization header")
        user = verifier.get_user(token)
        request.state.user_id = user.id
        return user

    return _dependency


def optional_user(verifier: TokenVerifier) -> Callable[[Request], Optional[AuthUser]]:
    """Build a dependency that resolves the user when a valid token is sent."""

    def _dependency(request: Request) -> Optional[AuthUser]:
        token = bearer_token(request)
        if token is None:
            return None
        try:
            user = verifier.get_user(token)
        except AuthenticationFailed:
            return None
        request.state.user_id = user.id
        return user

    return _dependency


def validate_credentials(email: str, password: str) -> None:
    """Local checks performed before any call to the provider."""

    if not email or "@" not in email or email.startswith("@") or email.endswith("@"):
        raise ValidationFailed("Please enter a valid email address")
    if not password or len(password) < 6:
        raise ValidationFailed("Password must be at least 6 characters long")
