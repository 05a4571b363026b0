"""FastAPI application for project workspaces.

Project lifecycle (create/archive/restore/delete), layout updates and
CRUD for the seven per-project module record types. Every route is
owner-only.
"""

import uuid
from typing import Generator, Optional

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from ..auth import AuthClient, AuthSettings, TokenVerifier, require_user
from ..db import Database, init_engine
from ..errors import AuthenticationFailed, ValidationFailed, install_error_handlers
from . import schemas
from .service import (
    MODULES,
    ModuleDefinition,
    WorkspaceService,
    WorkspaceSettings,
    upsert_profile,
)

__all__ = ["create_app", "WorkspaceSettings"]


def create_app(
    settings: Optional[WorkspaceSettings] = None,
    *,
    auth_verifier: Optional[TokenVerifier] = None,
    database: Optional[Database] = None,
    allowed_origins: Optional[list[str]] = None,
) -> FastAPI:
    """Create and configure the FastAPI application for workspaces."""

    settings = settings or WorkspaceSettings.from_env()
    if database is None:
        database = Database(init_engine(settings.database_url, create_tables=settings.create_tables))
    verifier = auth_verifier or AuthClient(AuthSettings.from_env())
    authenticate = require_user(verifier)

    app = FastAPI(
        title="VLab Workspace API",
        version="1.0.0",
        description="Projects and workspace module records",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)

    def get_session() -> Generator[Session, None, None]:
        session = database.session()
        try:
            yield session
        finally:
            session.close()

    def get_service(session: Session = Depends(get_session)) -> WorkspaceService:
        return WorkspaceService(session=session, settings=settings)

    def get_current_user(request: Request, session: Session = Depends(get_session)) -> uuid.UUID:
        user = authenticate(request)
        try:
            user_id = uuid.UUID(user.id)
        except ValueError:
            raise AuthenticationFailed("Invalid user id") from None
        upsert_profile(session, user)
        return user_id

    # ========================================================================
    # Project lifecycle
    # ========================================================================

    @app.post("/v1/projects", response_model=schemas.ProjectResponse, status_code=201)
    def create_project(
        request: schemas.ProjectCreateRequest,
        service: WorkspaceService = Depends(get_service),
        user_id: uuid.UUID = Depends(get_current_user),
    ) -> schemas.ProjectResponse:
        project = service.create_project(request, user_id)
        return schemas.ProjectResponse.model_validate(project)

    @app.get("/v1/projects", response_model=schemas.ProjectListResponse)
    def list_projects(
        archived: bool = Query(False),
        service: WorkspaceService = Depends(get_service),
        user_id: uuid.UUID = Depends(get_current_user),
    ) -> schemas.ProjectListResponse:
        projects = service.list_projects(user_id, archived=archived)
        return schemas.ProjectListResponse(
            projects=[schemas.ProjectResponse.model_validate(p) for p in projects],
            total=len(projects),
        )

    @app.get("/v1/projects/{project_id}", response_model=schemas.ProjectResponse)
    def get_project(
        project_id: uuid.UUID,
        service: WorkspaceService = Depends(get_service),
        user_id: uuid.UUID = Depends(get_current_user),
    ) -> schemas.ProjectResponse:
        return schemas.ProjectResponse.model_validate(service.get_project(project_id, user_id))

    @app.patch("/v1/projects/{project_id}", response_model=schemas.ProjectResponse)
    def update_project(
        project_id: uuid.UUID,
        request: schemas.ProjectUpdateRequest,
        service: WorkspaceService = Depends(get_service),
        user_id: uuid.UUID = Depends(get_current_user),
    ) -> schemas.ProjectResponse:
        project = service.update_project(project_id, request, user_id)
        return schemas.ProjectResponse.model_validate(project)

    @app.post("/v1/projects/{project_id}/archive", response_model=schemas.ProjectResponse)
    def archive_project(
        project_id: uuid.UUID,
        service: WorkspaceService = Depends(get_service),
        user_id: uuid.UUID = Depends(get_current_user),
    ) -> schemas.ProjectResponse:
        return schemas.ProjectResponse.model_validate(service.archive_project(project_id, user_id))

    @app.post("/v1/projects/{project_id}/restore", response_model=schemas.ProjectResponse)
    def restore_project(
        project_id: uuid.UUID,
        service: WorkspaceService = Depends(get_service),
        user_id: uuid.UUID = Depends(get_current_user),
    ) -> schemas.ProjectResponse:
        return schemas.ProjectResponse.model_validate(service.restore_project(project_id, user_id))

    @app.delete("/v1/projects/{project_id}", status_code=204)
    def delete_project(
        project_id: uuid.UUID,
        service: WorkspaceService = Depends(get_service),
        user_id: uuid.UUID = Depends(get_current_user),
    ) -> Response:
        service.delete_project_permanently(project_id, user_id)
        return Response(status_code=204)

    @app.put("/v1/projects/{project_id}/layout", response_model=schemas.ProjectResponse)
    def update_layout(
        project_id: uuid.UUID,
        layout: schemas.WorkspaceLayout,
        service: WorkspaceService = Depends(get_service),
        user_id: uuid.UUID = Depends(get_current_user),
    ) -> schemas.ProjectResponse:
        project = service.update_workspace_layout(project_id, layout, user_id)
        return schemas.ProjectResponse.model_validate(project)

    # ========================================================================
    # Module records
    # ========================================================================

    for definition in MODULES.values():
        _register_module_routes(app, definition, get_service, get_current_user)

    return app


def _register_module_routes(app: FastAPI, definition: ModuleDefinition, get_service, get_current_user) -> None:
    module_type = definition.module_type
    collection_path = f"/v1/projects/{{project_id}}/{definition.slug}"
    item_path = f"{collection_path}/{{item_id}}"
    CreateSchema = definition.create_schema
    UpdateSchema = definition.update_schema
    ResponseSchema = definition.response_schema

    def list_items(
        project_id: uuid.UUID,
        service: WorkspaceService = Depends(get_service),
        user_id: uuid.UUID = Depends(get_current_user),
    ):
        items = service.list_items(module_type, project_id, user_id)
        return {"data": [ResponseSchema.model_validate(item) for item in items]}

    def create_item(
        project_id: uuid.UUID,
        request: CreateSchema,
        service: WorkspaceService = Depends(get_service),
        user_id: uuid.UUID = Depends(get_current_user),
    ):
        try:
            item = service.create_item(module_type, project_id, request, user_id)
        except ValueError as e:
            raise ValidationFailed(str(e)) from None
        return ResponseSchema.model_validate(item)

    def update_item(
        project_id: uuid.UUID,
        item_id: uuid.UUID,
        request: UpdateSchema,
        service: WorkspaceService = Depends(get_service),
        user_id: uuid.UUID = Depends(get_current_user),
    ):
        try:
            item = service.update_item(module_type, project_id, item_id, request, user_id)
        except ValueError as e:
            raise ValidationFailed(str(e)) from None
        return ResponseSchema.model_validate(item)

    def delete_item(
        project_id: uuid.UUID,
        item_id: uuid.UUID,
        service: WorkspaceService = Depends(get_service),
        user_id: uuid.UUID = Depends(get_current_user),
    ) -> Response:
        service.delete_item(module_type, project_id, item_id, user_id)
        return Response(status_code=204)

    name = definition.slug.replace("-", "_")
    app.add_api_route(collection_path, list_items, methods=["GET"], name=f"list_{name}")
    app.add_api_route(
        collection_path,
        create_item,
        methods=["POST"],
        status_code=201,
        response_model=ResponseSchema,
        name=f"create_{name}",
    )
    app.add_api_route(
        item_path,
        update_item,
        methods=["PATCH"],
        response_model=ResponseSchema,
        name=f"update_{name}",
    )
    app.add_api_route(
        item_path, delete_item, methods=["DELETE"], status_code=204, name=f"delete_{name}"
    )
