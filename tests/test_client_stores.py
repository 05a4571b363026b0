from __future__ import annotations

import datetime as dt
import threading
import uuid
from typing import Optional

import pytest

from vlab.auth import AuthSession, AuthUser
from vlab.client import AuthStore, DatabaseWorkspaceBackend, ProjectStore, StoreStatus
from vlab.errors import AuthenticationFailed, UpstreamError
from vlab.workspace import schemas
from vlab.workspace.service import upsert_profile

USER = AuthUser(id=str(uuid.uuid4()), email="ada@example.com", name="Ada")


class FakeAuthProvider:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.sign_in_error: Optional[Exception] = None
        self.sign_up_result: Optional[AuthSession] = None
        self.sign_out_error: Optional[Exception] = None

    def get_user(self, access_token: str) -> AuthUser:
        self.calls.append("get_user")
        if access_token != "valid":
            raise AuthenticationFailed("Invalid or expired session")
        return USER

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        self.calls.append("sign_in")
        if self.sign_in_error is not None:
            raise self.sign_in_error
        return AuthSession(access_token="at", refresh_token="rt", user=USER)

    def sign_up(self, email: str, password: str, name: str) -> Optional[AuthSession]:
        self.calls.append("sign_up")
        return self.sign_up_result

    def sign_out(self, access_token: str) -> None:
        self.calls.append("sign_out")
        if self.sign_out_error is not None:
            raise self.sign_out_error


def test_initialize_restores_or_discards_session() -> None:
    provider = FakeAuthProvider()
    store = AuthStore(provider)

    assert store.initialize("valid") == USER
    assert store.is_authenticated
    assert store.status is StoreStatus.IDLE

    assert store.initialize("expired") is None
    assert store.user is None
    assert store.error is None


def test_sign_in_validates_before_calling_provider() -> None:
    provider = FakeAuthProvider()
    store = AuthStore(provider)

    assert store.sign_in("ada@example.com", "123") is False

    assert provider.calls == []
    assert store.status is StoreStatus.ERROR
    assert store.error == "Password must be at least 6 characters long"

    store.clear_error()
    assert (store.status, store.error) == (StoreStatus.IDLE, None)


def test_sign_in_maps_provider_errors() -> None:
    provider = FakeAuthProvider()
    provider.sign_in_error = AuthenticationFailed("Invalid login credentials")
    store = AuthStore(provider)

    assert store.sign_in("ada@example.com", "secret1") is False
    assert store.error == "Invalid email or password. Please try again."

    provider.sign_in_error = UpstreamError("Authentication service unavailable")
    store.sign_in("ada@example.com", "secret1")
    assert store.error == "Unable to reach the authentication service. Please check your connection."

    provider.sign_in_error = None
    assert store.sign_in(" ada@example.com ", "secret1") is True
    assert store.user == USER
    assert store.session.access_token == "at"
    assert store.error is None


def test_sign_up_pending_confirmation_and_sign_out() -> None:
    provider = FakeAuthProvider()
    store = AuthStore(provider)

    assert store.sign_up("ada@example.com", "secret1", "  ") is False
    assert store.error == "Please enter your name"

    assert store.sign_up("ada@example.com", "secret1", "Ada") is True
    assert store.awaiting_confirmation is True
    assert store.user is None

    store.sign_in("ada@example.com", "secret1")
    provider.sign_out_error = UpstreamError()
    store.sign_out()
    assert store.user is None
    assert store.session is None
    assert provider.calls[-1] == "sign_out"


def _project(name: str, *, archived: bool = False) -> schemas.ProjectResponse:
    now = dt.datetime.now(dt.timezone.utc)
    return schemas.ProjectResponse(
        id=uuid.uuid4(),
        user_id=uuid.uuid4(),
        name=name,
        description=None,
        workspace_layout={},
        settings={},
        is_archived=archived,
        created_at=now,
        updated_at=now,
    )


class FakeBackend:
    def __init__(self) -> None:
        self.active = [_project("Active")]
        self.archived = [_project("Old", archived=True)]
        self.threads: set[str] = set()
        self.fail_with: Optional[Exception] = None

    def get_active_projects(self, user_id):
        self.threads.add(threading.current_thread().name)
        return list(self.active)

    def get_archived_projects(self, user_id):
        self.threads.add(threading.current_thread().name)
        if self.fail_with is not None:
            raise self.fail_with
        return list(self.archived)

    def create_project(self, request, user_id):
        if self.fail_with is not None:
            raise self.fail_with
        return _project(request.name)

    def archive_project(self, project_id, user_id):
        project = next(p for p in self.active if p.id == project_id)
        return project.model_copy(update={"is_archived": True})

    def delete_project_permanently(self, project_id, user_id):
        return None

    def update_workspace_layout(self, project_id, layout, user_id):
        project = next(p for p in self.active if p.id == project_id)
        return project.model_copy(update={"workspace_layout": layout.model_dump()})


def test_fetch_projects_fans_out() -> None:
    backend = FakeBackend()
    store = ProjectStore(backend, uuid.uuid4())

    store.fetch_projects()

    assert [p.name for p in store.active_projects] == ["Active"]
    assert [p.name for p in store.archived_projects] == ["Old"]
    assert all(name.startswith("project-fetch") for name in backend.threads)
    assert store.status is StoreStatus.IDLE


def test_fetch_failure_keeps_previous_snapshot() -> None:
    backend = FakeBackend()
    store = ProjectStore(backend, uuid.uuid4())
    store.fetch_projects()
    before = (store.active_projects, store.archived_projects)

    backend.active = [_project("Fresh")]
    backend.fail_with = PermissionError("Not the project owner")
    store.fetch_projects()

    assert store.status is StoreStatus.ERROR
    assert store.error == "Not the project owner"
    assert (store.active_projects, store.archived_projects) == before
    assert [p.name for p in store.active_projects] == ["Active"]


def test_create_project_records_and_reraises() -> None:
    backend = FakeBackend()
    store = ProjectStore(backend, uuid.uuid4())

    created = store.create_project("New")
    assert store.active_projects[0] is created

    backend.fail_with = RuntimeError("database is down")
    with pytest.raises(RuntimeError):
        store.create_project("Broken")
    assert store.error == "database is down"
    assert store.status is StoreStatus.ERROR


def test_archive_moves_project_and_updates_current() -> None:
    backend = FakeBackend()
    store = ProjectStore(backend, uuid.uuid4())
    store.fetch_projects()
    project = store.active_projects[0]
    store.set_current_project(project)

    store.archive_project(project.id)

    assert store.active_projects == []
    assert store.archived_projects[0].id == project.id
    assert store.current_project.is_archived is True

    assert store.delete_project_permanently(project.id) is True
    assert store.current_project is None
    assert all(p.id != project.id for p in store.archived_projects)


def test_layout_update_requires_current_project() -> None:
    backend = FakeBackend()
    store = ProjectStore(backend, uuid.uuid4())
    store.fetch_projects()
    layout = schemas.WorkspaceLayout()

    assert store.update_workspace_layout(layout) is None

    store.set_current_project(store.active_projects[0])
    saved = store.update_workspace_layout(layout)
    assert saved.workspace_layout["grid_config"] == {"columns": 12, "rows": 8, "gap": 16}

    store.clear_projects()
    assert (store.active_projects, store.archived_projects, store.current_project) == ([], [], None)


def test_database_backend_round_trip(database) -> None:
    owner = uuid.uuid4()
    with database.session() as session:
        upsert_profile(session, AuthUser(id=str(owner), email="o@example.com", name="Owner"))
    backend = DatabaseWorkspaceBackend(database)

    project = backend.create_project(schemas.ProjectCreateRequest(name="Real"), owner)
    archived = backend.archive_project(project.id, owner)

    assert isinstance(project, schemas.ProjectResponse)
    assert archived.is_archived is True
    assert backend.get_active_projects(owner) == []
    assert [p.id for p in backend.get_archived_projects(owner)] == [project.id]
    assert backend.get_tasks(project.id, owner) == []
    with pytest.raises(PermissionError):
        backend.get_prds(project.id, uuid.uuid4())
