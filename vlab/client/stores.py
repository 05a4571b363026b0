"""Client-side state holders for authentication and the project list.

Each store keeps the last known data plus a status and an error message
so a UI can render from a single snapshot. Operations record their
failures on the store; mutations that a caller needs to react to also
re-raise.
"""

from __future__ import annotations

import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Any, Optional, Protocol

import structlog

from ..auth import AuthSession, AuthUser, validate_credentials
from ..errors import AuthenticationFailed, UpstreamError, VLabError
from ..workspace import schemas
from .backend import WorkspaceBackend

__all__ = ["StoreStatus", "AuthStore", "ProjectStore", "friendly_auth_error"]

logger = structlog.get_logger(__name__)


class StoreStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"


class _Store:
    def __init__(self) -> None:
        self.status = StoreStatus.IDLE
        self.error: Optional[str] = None
        self._lock = threading.RLock()

    @property
    def is_loading(self) -> bool:
        return self.status is StoreStatus.LOADING

    def _begin(self) -> None:
        self.status = StoreStatus.LOADING
        self.error = None

    def _succeed(self) -> None:
        self.status = StoreStatus.IDLE
        self.error = None

    def _fail(self, message: str) -> None:
        self.status = StoreStatus.ERROR
        self.error = message

    def clear_error(self) -> None:
        with self._lock:
            self.error = None
            if self.status is StoreStatus.ERROR:
                self.status = StoreStatus.IDLE


# ============================================================================
# Auth
# ============================================================================


class AuthProvider(Protocol):
    def get_user(self, access_token: str) -> AuthUser: ...
    def sign_in_with_password(self, email: str, password: str) -> AuthSession: ...
    def sign_up(self, email: str, password: str, name: str) -> Optional[AuthSession]: ...
    def sign_out(self, access_token: str) -> None: ...


_PROVIDER_MESSAGES = (
    ("invalid login credentials", "Invalid email or password. Please try again."),
    ("email not confirmed", "Please check your email and confirm your account before signing in."),
    ("user already registered", "An account with this email already exists. Try signing in instead."),
    ("password should be at least", "Password must be at least 6 characters long"),
    ("rate limit", "Too many attempts. Please wait a moment and try again."),
)


def friendly_auth_error(exc: Exception) -> str:
    """Translate a provider failure into a message fit for the sign-in form."""

    if isinstance(exc, UpstreamError):
        return "Unable to reach the authentication service. Please check your connection."
    message = getattr(exc, "message", None) or str(exc)
    lowered = message.lower()
    for needle, friendly in _PROVIDER_MESSAGES:
        if needle in lowered:
            return friendly
    return message or "Authentication failed"


class AuthStore(_Store):
    """Current user and session, backed by the auth provider."""

    def __init__(self, client: AuthProvider):
        super().__init__()
        self.client = client
        self.user: Optional[AuthUser] = None
        self.session: Optional[AuthSession] = None
        self.awaiting_confirmation = False

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def initialize(self, access_token: Optional[str] = None) -> Optional[AuthUser]:
        """Restore the user behind a stored token; an invalid token signs out."""

        with self._lock:
            self._begin()
            if not access_token:
                self.user = None
                self.session = None
                self._succeed()
                return None
            try:
                self.user = self.client.get_user(access_token)
            except AuthenticationFailed:
                logger.info("auth_session_expired")
                self.user = None
                self.session = None
                self._succeed()
                return None
            except VLabError as exc:
                self._fail(friendly_auth_error(exc))
                return None
            self.session = AuthSession(access_token=access_token, refresh_token=None, user=self.user)
            self._succeed()
            return self.user

    def sign_in(self, email: str, password: str) -> bool:
        with self._lock:
            email = email.strip()
            try:
                validate_credentials(email, password)
            except VLabError as exc:
                self._fail(exc.message)
                return False

            self._begin()
            try:
                session = self.client.sign_in_with_password(email, password)
            except VLabError as exc:
                logger.info("sign_in_failed", error=exc.message)
                self._fail(friendly_auth_error(exc))
                return False
            self.session = session
            self.user = session.user
            self.awaiting_confirmation = False
            self._succeed()
            return True

    def sign_up(self, email: str, password: str, name: str) -> bool:
        with self._lock:
            email = email.strip()
            name = name.strip()
            if not name:
                self._fail("Please enter your name")
                return False
            try:
                validate_credentials(email, password)
            except VLabError as exc:
                self._fail(exc.message)
                return False

            self._begin()
            try:
                session = self.client.sign_up(email, password, name)
            except VLabError as exc:
                logger.info("sign_up_failed", error=exc.message)
                self._fail(friendly_auth_error(exc))
                return False
            if session is None:
                self.awaiting_confirmation = True
                self._succeed()
                return True
            self.session = session
            self.user = session.user
            self.awaiting_confirmation = False
            self._succeed()
            return True

    def sign_out(self) -> None:
        """Drop the local session even when the provider call fails."""

        with self._lock:
            token = self.session.access_token if self.session else None
            self._begin()
            try:
                if token:
                    self.client.sign_out(token)
            except VLabError as exc:
                logger.warning("sign_out_failed", error=exc.message)
            finally:
                self.user = None
                self.session = None
                self.awaiting_confirmation = False
            self._succeed()


# ============================================================================
# Projects
# ============================================================================


class ProjectStore(_Store):
    """Active and archived projects of one user plus the open project."""

    def __init__(self, backend: WorkspaceBackend, user_id: uuid.UUID):
        super().__init__()
        self.backend = backend
        self.user_id = user_id
        self.active_projects: list[schemas.ProjectResponse] = []
        self.archived_projects: list[schemas.ProjectResponse] = []
        self.current_project: Optional[schemas.ProjectResponse] = None

    def _record_failure(self, operation: str, exc: Exception) -> None:
        message = getattr(exc, "message", None) or str(exc) or f"Failed to {operation}"
        logger.warning("project_store_failed", operation=operation, error=message)
        self._fail(message)

    def _replace(self, project: schemas.ProjectResponse) -> None:
        self.active_projects = [p for p in self.active_projects if p.id != project.id]
        self.archived_projects = [p for p in self.archived_projects if p.id != project.id]
        target = self.archived_projects if project.is_archived else self.active_projects
        target.insert(0, project)
        if self.current_project is not None and self.current_project.id == project.id:
            self.current_project = project

    def fetch_projects(self) -> None:
        """Load active and archived projects concurrently."""

        with self._lock:
            self._begin()
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix="project-fetch") as pool:
                active = pool.submit(self.backend.get_active_projects, self.user_id)
                archived = pool.submit(self.backend.get_archived_projects, self.user_id)
                try:
                    active_projects = list(active.result())
                    archived_projects = list(archived.result())
                except Exception as exc:
                    self._record_failure("fetch projects", exc)
                    return
            self.active_projects = active_projects
            self.archived_projects = archived_projects
            self._succeed()

    def create_project(self, name: str, description: Optional[str] = None) -> schemas.ProjectResponse:
        with self._lock:
            self._begin()
            try:
                request = schemas.ProjectCreateRequest(name=name, description=description)
                project = self.backend.create_project(request, self.user_id)
            except Exception as exc:
                self._record_failure("create project", exc)
                raise
            self.active_projects.insert(0, project)
            self._succeed()
            return project

    def update_project(self, project_id: uuid.UUID, **changes: Any) -> Optional[schemas.ProjectResponse]:
        with self._lock:
            self._begin()
            try:
                request = schemas.ProjectUpdateRequest(**changes)
                project = self.backend.update_project(project_id, request, self.user_id)
            except Exception as exc:
                self._record_failure("update project", exc)
                return None
            self._replace(project)
            self._succeed()
            return project

    def archive_project(self, project_id: uuid.UUID) -> Optional[schemas.ProjectResponse]:
        with self._lock:
            self._begin()
            try:
                project = self.backend.archive_project(project_id, self.user_id)
            except Exception as exc:
                self._record_failure("archive project", exc)
                return None
            self._replace(project)
            self._succeed()
            return project

    def restore_project(self, project_id: uuid.UUID) -> Optional[schemas.ProjectResponse]:
        with self._lock:
            self._begin()
            try:
                project = self.backend.restore_project(project_id, self.user_id)
            except Exception as exc:
                self._record_failure("restore project", exc)
                return None
            self._replace(project)
            self._succeed()
            return project

    def delete_project_permanently(self, project_id: uuid.UUID) -> bool:
        with self._lock:
            self._begin()
            try:
                self.backend.delete_project_permanently(project_id, self.user_id)
            except Exception as exc:
                self._record_failure("delete project", exc)
                return False
            self.active_projects = [p for p in self.active_projects if p.id != project_id]
            self.archived_projects = [p for p in self.archived_projects if p.id != project_id]
            if self.current_project is not None and self.current_project.id == project_id:
                self.current_project = None
            self._succeed()
            return True

    def set_current_project(self, project: Optional[schemas.ProjectResponse]) -> None:
        with self._lock:
            self.current_project = project

    def update_workspace_layout(self, layout: schemas.WorkspaceLayout) -> Optional[schemas.ProjectResponse]:
        """Persist the layout of the open project; a no-op without one."""

        with self._lock:
            if self.current_project is None:
                return None
            try:
                project = self.backend.update_workspace_layout(
                    self.current_project.id, layout, self.user_id
                )
            except Exception as exc:
                self._record_failure("save layout", exc)
                return None
            self._replace(project)
            return project

    def clear_projects(self) -> None:
        with self._lock:
            self.active_projects = []
            self.archived_projects = []
            self.current_project = None
            self._succeed()
