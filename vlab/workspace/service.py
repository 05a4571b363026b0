"""Service layer for project workspaces.

Business rules:
- only the owner may read or write a project and its module records
- new projects start from the default workspace layout
- module writes are last-write-wins
"""

from __future__ import annotations

import copy
import os
import uuid
from dataclasses import dataclass
from typing import Any, Mapping

import structlog
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, NoResultFound
from sqlalchemy.orm import Session

from ..auth import AuthUser
from ..db import Base
from . import schemas
from .models import (
    PRD,
    DeploymentItem,
    Profile,
    Project,
    Prompt,
    RoadmapItem,
    ScratchpadNote,
    Secret,
    Task,
)
from .schema.enums import ModuleType

__all__ = [
    "DEFAULT_WORKSPACE_LAYOUT",
    "MODULES",
    "ModuleDefinition",
    "WorkspaceService",
    "WorkspaceSettings",
    "upsert_profile",
]

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class WorkspaceSettings:
    """Workspace service settings."""

    database_url: str
    create_tables: bool = False

    @classmethod
    def from_env(cls) -> WorkspaceSettings:
        database_url = os.getenv("VLAB_DATABASE_URL") or os.getenv("DATABASE_URL")
        if not database_url:
            raise ValueError("Database connection required: set VLAB_DATABASE_URL or DATABASE_URL")
        return cls(
            database_url=database_url,
            create_tables=os.getenv("VLAB_CREATE_TABLES", "false").lower() == "true",
        )


DEFAULT_WORKSPACE_LAYOUT: dict[str, Any] = {
    "modules": [
        {
            "id": "prd-1",
            "type": ModuleType.PRD.value,
            "position": {"x": 0, "y": 0},
            "size": {"width": 6, "height": 3},
            "data": {},
            "is_visible": True,
        },
        {
            "id": "roadmap-1",
            "type": ModuleType.ROADMAP.value,
            "position": {"x": 6, "y": 0},
            "size": {"width": 6, "height": 3},
            "data": {},
            "is_visible": True,
        },
        {
            "id": "tasks-1",
            "type": ModuleType.TASKS.value,
            "position": {"x": 0, "y": 3},
            "size": {"width": 6, "height": 3},
            "data": {},
            "is_visible": True,
        },
        {
            "id": "deployment-1",
            "type": ModuleType.DEPLOYMENT.value,
            "position": {"x": 6, "y": 3},
            "size": {"width": 6, "height": 3},
            "data": {},
            "is_visible": True,
        },
        {
            "id": "scratchpad-1",
            "type": ModuleType.SCRATCHPAD.value,
            "position": {"x": 0, "y": 6},
            "size": {"width": 12, "height": 2},
            "data": {},
            "is_visible": True,
        },
    ],
    "grid_config": {"columns": 12, "rows": 8, "gap": 16},
}


@dataclass(frozen=True)
class ModuleDefinition:
    """Binds a module type to its table, URL slug and schemas."""

    module_type: ModuleType
    slug: str
    model: type[Base]
    create_schema: type[BaseModel]
    update_schema: type[BaseModel]
    response_schema: type[BaseModel]
    ordered_by_position: bool = False


MODULES: Mapping[ModuleType, ModuleDefinition] = {
    definition.module_type: definition
    for definition in (
        ModuleDefinition(
            ModuleType.PRD, "prds", PRD,
            schemas.PRDCreateRequest, schemas.PRDUpdateRequest, schemas.PRDResponse,
        ),
        ModuleDefinition(
            ModuleType.ROADMAP, "roadmap-items", RoadmapItem,
            schemas.RoadmapItemCreateRequest, schemas.RoadmapItemUpdateRequest,
            schemas.RoadmapItemResponse, ordered_by_position=True,
        ),
        ModuleDefinition(
            ModuleType.TASKS, "tasks", Task,
            schemas.TaskCreateRequest, schemas.TaskUpdateRequest, schemas.TaskResponse,
            ordered_by_position=True,
        ),
        ModuleDefinition(
            ModuleType.SCRATCHPAD, "scratchpad-notes", ScratchpadNote,
            schemas.ScratchpadNoteCreateRequest, schemas.ScratchpadNoteUpdateRequest,
            schemas.ScratchpadNoteResponse,
        ),
        ModuleDefinition(
            ModuleType.PROMPTS, "prompts", Prompt,
            schemas.PromptCreateRequest, schemas.PromptUpdateRequest, schemas.PromptResponse,
        ),
        ModuleDefinition(
            ModuleType.SECRETS, "secrets", Secret,
            schemas.SecretCreateRequest, schemas.SecretUpdateRequest, schemas.SecretResponse,
        ),
        ModuleDefinition(
            ModuleType.DEPLOYMENT, "deployment-items", DeploymentItem,
            schemas.DeploymentItemCreateRequest, schemas.DeploymentItemUpdateRequest,
            schemas.DeploymentItemResponse, ordered_by_position=True,
        ),
    )
}


def upsert_profile(session: Session, user: AuthUser) -> Profile:
    """Make sure a profile row exists for an authenticated user."""

    user_uuid = uuid.UUID(user.id)
    profile = session.get(Profile, user_uuid)
    if profile is None:
        profile = Profile(
            id=user_uuid,
            email=user.email,
            name=user.name or (user.email or "Anonymous").split("@", 1)[0],
            avatar_url=user.avatar_url,
            is_anonymous=user.is_anonymous,
        )
        session.add(profile)
        session.commit()
        logger.info("profile_created", user_id=user.id, is_anonymous=user.is_anonymous)
    return profile


class WorkspaceService:
    """Workspace business logic."""

    def __init__(self, session: Session, settings: WorkspaceSettings):
        self.session = session
        self.settings = settings

    # ========================================================================
    # Access control
    # ========================================================================

    def _owned_project(self, project_id: uuid.UUID, user_id: uuid.UUID) -> Project:
        project = self.session.get(Project, project_id)
        if project is None:
            raise NoResultFound("Project not found")
        if project.user_id != user_id:
            logger.warning("project_access_denied", project_id=str(project_id), user_id=str(user_id))
            raise PermissionError("Not the project owner")
        return project

    # ========================================================================
    # Projects
    # ========================================================================

    def create_project(self, request: schemas.ProjectCreateRequest, user_id: uuid.UUID) -> Project:
        if request.workspace_layout is not None:
            layout = request.workspace_layout.model_dump()
        else:
            layout = copy.deepcopy(DEFAULT_WORKSPACE_LAYOUT)
        project = Project(
            user_id=user_id,
            name=request.name,
            description=request.description,
            workspace_layout=layout,
            settings=dict(request.settings),
            is_archived=False,
        )
        self.session.add(project)
        self.session.commit()
        logger.info("project_created", project_id=str(project.id), user_id=str(user_id))
        return project

    def list_projects(self, user_id: uuid.UUID, *, archived: bool = False) -> list[Project]:
        stmt = (
            select(Project)
            .where(Project.user_id == user_id, Project.is_archived == archived)
            .order_by(Project.updated_at.desc())
        )
        return list(self.session.execute(stmt).scalars())

    def get_active_projects(self, user_id: uuid.UUID) -> list[Project]:
        return self.list_projects(user_id, archived=False)

    def get_archived_projects(self, user_id: uuid.UUID) -> list[Project]:
        return self.list_projects(user_id, archived=True)

    def get_project(self, project_id: uuid.UUID, user_id: uuid.UUID) -> Project:
        return self._owned_project(project_id, user_id)

    def update_project(
        self,
        project_id: uuid.UUID,
        request: schemas.ProjectUpdateRequest,
        user_id: uuid.UUID,
    ) -> Project:
        project = self._owned_project(project_id, user_id)
        changes = request.model_dump(exclude_unset=True)
        for key, value in changes.items():
            if value is None and key in ("name", "workspace_layout", "settings"):
                continue
            setattr(project, key, value)
        self.session.commit()
        logger.info("project_updated", project_id=str(project_id), fields=sorted(changes))
        return project

    def _set_archived(self, project_id: uuid.UUID, user_id: uuid.UUID, archived: bool) -> Project:
        project = self._owned_project(project_id, user_id)
        project.is_archived = archived
        self.session.commit()
        logger.info("project_archive_state", project_id=str(project_id), is_archived=archived)
        return project

    def archive_project(self, project_id: uuid.UUID, user_id: uuid.UUID) -> Project:
        return self._set_archived(project_id, user_id, True)

    def restore_project(self, project_id: uuid.UUID, user_id: uuid.UUID) -> Project:
        return self._set_archived(project_id, user_id, False)

    def delete_project_permanently(self, project_id: uuid.UUID, user_id: uuid.UUID) -> None:
        project = self._owned_project(project_id, user_id)
        self.session.delete(project)
        self.session.commit()
        logger.info("project_deleted", project_id=str(project_id), user_id=str(user_id))

    def update_workspace_layout(
        self,
        project_id: uuid.UUID,
        layout: schemas.WorkspaceLayout,
        user_id: uuid.UUID,
    ) -> Project:
        project = self._owned_project(project_id, user_id)
        project.workspace_layout = layout.model_dump()
        self.session.commit()
        return project

    # ========================================================================
    # Module records
    # ========================================================================

    def _get_item(self, definition: ModuleDefinition, project_id: uuid.UUID, item_id: uuid.UUID):
        item = self.session.get(definition.model, item_id)
        if item is None or item.project_id != project_id:
            raise NoResultFound(f"{definition.module_type.value} item not found")
        return item

    def list_items(
        self, module_type: ModuleType, project_id: uuid.UUID, user_id: uuid.UUID
    ) -> list[Any]:
        definition = MODULES[module_type]
        self._owned_project(project_id, user_id)
        model = definition.model
        stmt = select(model).where(model.project_id == project_id)
        if definition.ordered_by_position:
            stmt = stmt.order_by(model.position.asc(), model.created_at.asc())
        else:
            stmt = stmt.order_by(model.created_at.desc())
        return list(self.session.execute(stmt).scalars())

    def create_item(
        self,
        module_type: ModuleType,
        project_id: uuid.UUID,
        request: BaseModel,
        user_id: uuid.UUID,
    ) -> Any:
        definition = MODULES[module_type]
        self._owned_project(project_id, user_id)
        values = request.model_dump()
        model = definition.model
        if definition.ordered_by_position and values.get("position") is None:
            count_stmt = select(func.count()).select_from(model).where(model.project_id == project_id)
            values["position"] = self.session.execute(count_stmt).scalar_one()
        item = model(project_id=project_id, **values)
        self.session.add(item)
        self._commit_item(definition)
        logger.info(
            "module_item_created",
            module=module_type.value,
            project_id=str(project_id),
            item_id=str(item.id),
        )
        return item

    def update_item(
        self,
        module_type: ModuleType,
        project_id: uuid.UUID,
        item_id: uuid.UUID,
        request: BaseModel,
        user_id: uuid.UUID,
    ) -> Any:
        definition = MODULES[module_type]
        self._owned_project(project_id, user_id)
        item = self._get_item(definition, project_id, item_id)
        for key, value in request.model_dump(exclude_unset=True).items():
            if value is None and not item.__table__.c[key].nullable:
                continue
            setattr(item, key, value)
        self._commit_item(definition)
        return item

    def delete_item(
        self,
        module_type: ModuleType,
        project_id: uuid.UUID,
        item_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> None:
        definition = MODULES[module_type]
        self._owned_project(project_id, user_id)
        item = self._get_item(definition, project_id, item_id)
        self.session.delete(item)
        self.session.commit()
        logger.info(
            "module_item_deleted",
            module=module_type.value,
            project_id=str(project_id),
            item_id=str(item_id),
        )

    def _commit_item(self, definition: ModuleDefinition) -> None:
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            if definition.module_type is ModuleType.SECRETS:
                raise ValueError("A secret with this name already exists") from None
            raise ValueError(f"Invalid {definition.module_type.value} item") from None

    # Typed accessors ---------------------------------------------------------

    def get_prds(self, project_id: uuid.UUID, user_id: uuid.UUID) -> list[PRD]:
        return self.list_items(ModuleType.PRD, project_id, user_id)

    def get_roadmap_items(self, project_id: uuid.UUID, user_id: uuid.UUID) -> list[RoadmapItem]:
        return self.list_items(ModuleType.ROADMAP, project_id, user_id)

    def get_tasks(self, project_id: uuid.UUID, user_id: uuid.UUID) -> list[Task]:
        return self.list_items(ModuleType.TASKS, project_id, user_id)

    def get_scratchpad_notes(
        self, project_id: uuid.UUID, user_id: uuid.UUID
    ) -> list[ScratchpadNote]:
        return self.list_items(ModuleType.SCRATCHPAD, project_id, user_id)

    def get_prompts(self, project_id: uuid.UUID, user_id: uuid.UUID) -> list[Prompt]:
        return self.list_items(ModuleType.PROMPTS, project_id, user_id)

    def get_secrets(self, project_id: uuid.UUID, user_id: uuid.UUID) -> list[Secret]:
        return self.list_items(ModuleType.SECRETS, project_id, user_id)

    def get_deployment_items(
        self, project_id: uuid.UUID, user_id: uuid.UUID
    ) -> list[DeploymentItem]:
        return self.list_items(ModuleType.DEPLOYMENT, project_id, user_id)
