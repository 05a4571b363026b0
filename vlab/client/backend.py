"""Session-per-call access to the workspace helpers for client-side stores.

Stores fan out calls on worker threads, so every call opens its own
session and returns detached response models.
"""

from __future__ import annotations

import uuid
from typing import Any, Callable, Optional, Protocol, TypeVar

from pydantic import BaseModel

from ..db import Database
from ..workspace import schemas
from ..workspace.schema.enums import ModuleType
from ..workspace.service import MODULES, WorkspaceService, WorkspaceSettings

__all__ = ["WorkspaceBackend", "DatabaseWorkspaceBackend"]

T = TypeVar("T")


class WorkspaceBackend(Protocol):
    def get_active_projects(self, user_id: uuid.UUID) -> list[schemas.ProjectResponse]: ...
    def get_archived_projects(self, user_id: uuid.UUID) -> list[schemas.ProjectResponse]: ...
    def create_project(
        self, request: schemas.ProjectCreateRequest, user_id: uuid.UUID
    ) -> schemas.ProjectResponse: ...
    def update_project(
        self, project_id: uuid.UUID, request: schemas.ProjectUpdateRequest, user_id: uuid.UUID
    ) -> schemas.ProjectResponse: ...
    def archive_project(self, project_id: uuid.UUID, user_id: uuid.UUID) -> schemas.ProjectResponse: ...
    def restore_project(self, project_id: uuid.UUID, user_id: uuid.UUID) -> schemas.ProjectResponse: ...
    def delete_project_permanently(self, project_id: uuid.UUID, user_id: uuid.UUID) -> None: ...
    def update_workspace_layout(
        self, project_id: uuid.UUID, layout: schemas.WorkspaceLayout, user_id: uuid.UUID
    ) -> schemas.ProjectResponse: ...


class DatabaseWorkspaceBackend:
    """In-process backend over :class:`WorkspaceService`."""

    def __init__(self, database: Database, settings: Optional[WorkspaceSettings] = None):
        self.database = database
        self.settings = settings or WorkspaceSettings(database_url=str(database.engine.url))

    def _run(self, operation: Callable[[WorkspaceService], T]) -> T:
        with self.database.session_scope() as session:
            return operation(WorkspaceService(session=session, settings=self.settings))

    @staticmethod
    def _project(project: Any) -> schemas.ProjectResponse:
        return schemas.ProjectResponse.model_validate(project)

    # Projects ---------------------------------------------------------------

    def get_active_projects(self, user_id: uuid.UUID) -> list[schemas.ProjectResponse]:
        return self._run(lambda s: [self._project(p) for p in s.get_active_projects(user_id)])

    def get_archived_projects(self, user_id: uuid.UUID) -> list[schemas.ProjectResponse]:
        return self._run(lambda s: [self._project(p) for p in s.get_archived_projects(user_id)])

    def create_project(
        self, request: schemas.ProjectCreateRequest, user_id: uuid.UUID
    ) -> schemas.ProjectResponse:
        return self._run(lambda s: self._project(s.create_project(request, user_id)))

    def update_project(
        self, project_id: uuid.UUID, request: schemas.ProjectUpdateRequest, user_id: uuid.UUID
    ) -> schemas.ProjectResponse:
        return self._run(lambda s: self._project(s.update_project(project_id, request, user_id)))

    def archive_project(self, project_id: uuid.UUID, user_id: uuid.UUID) -> schemas.ProjectResponse:
        return self._run(lambda s: self._project(s.archive_project(project_id, user_id)))

    def restore_project(self, project_id: uuid.UUID, user_id: uuid.UUID) -> schemas.ProjectResponse:
        return self._run(lambda s: self._project(s.restore_project(project_id, user_id)))

    def delete_project_permanently(self, project_id: uuid.UUID, user_id: uuid.UUID) -> None:
        self._run(lambda s: s.delete_project_permanently(project_id, user_id))

    def update_workspace_layout(
        self, project_id: uuid.UUID, layout: schemas.WorkspaceLayout, user_id: uuid.UUID
    ) -> schemas.ProjectResponse:
        return self._run(
            lambda s: self._project(s.update_workspace_layout(project_id, layout, user_id))
        )

    # Module records ---------------------------------------------------------

    def _items(self, module_type: ModuleType, project_id: uuid.UUID, user_id: uuid.UUID) -> list[BaseModel]:
        response_schema = MODULES[module_type].response_schema
        return self._run(
            lambda s: [
                response_schema.model_validate(item)
                for item in s.list_items(module_type, project_id, user_id)
            ]
        )

    def get_prds(self, project_id: uuid.UUID, user_id: uuid.UUID) -> list[BaseModel]:
        return self._items(ModuleType.PRD, project_id, user_id)

    def get_roadmap_items(self, project_id: uuid.UUID, user_id: uuid.UUID) -> list[BaseModel]:
        return self._items(ModuleType.ROADMAP, project_id, user_id)

    def get_tasks(self, project_id: uuid.UUID, user_id: uuid.UUID) -> list[BaseModel]:
        return self._items(ModuleType.TASKS, project_id, user_id)

    def get_scratchpad_notes(self, project_id: uuid.UUID, user_id: uuid.UUID) -> list[BaseModel]:
        return self._items(ModuleType.SCRATCHPAD, project_id, user_id)

    def get_prompts(self, project_id: uuid.UUID, user_id: uuid.UUID) -> list[BaseModel]:
        return self._items(ModuleType.PROMPTS, project_id, user_id)

    def get_secrets(self, project_id: uuid.UUID, user_id: uuid.UUID) -> list[BaseModel]:
        return self._items(ModuleType.SECRETS, project_id, user_id)

    def get_deployment_items(self, project_id: uuid.UUID, user_id: uuid.UUID) -> list[BaseModel]:
        return self._items(ModuleType.DEPLOYMENT, project_id, user_id)
