"""Pydantic schemas for workspace API requests/responses."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .schema.enums import (
    DeploymentCategory,
    DeploymentEnvironment,
    DeploymentPlatform,
    DeploymentPriority,
    DeploymentStatus,
    ModuleType,
    PRDStatus,
    RoadmapPhase,
    RoadmapStatus,
    TaskPriority,
    TaskStatus,
)

__all__ = [
    "GridConfig",
    "ModuleConfig",
    "WorkspaceLayout",
    "ProjectCreateRequest",
    "ProjectUpdateRequest",
    "ProjectResponse",
    "ProjectListResponse",
    "PRDCreateRequest",
    "PRDUpdateRequest",
    "PRDResponse",
    "RoadmapItemCreateRequest",
    "RoadmapItemUpdateRequest",
    "RoadmapItemResponse",
    "TaskCreateRequest",
    "TaskUpdateRequest",
    "TaskResponse",
    "ScratchpadNoteCreateRequest",
    "ScratchpadNoteUpdateRequest",
    "ScratchpadNoteResponse",
    "PromptCreateRequest",
    "PromptUpdateRequest",
    "PromptResponse",
    "SecretCreateRequest",
    "SecretUpdateRequest",
    "SecretResponse",
    "DeploymentItemCreateRequest",
    "DeploymentItemUpdateRequest",
    "DeploymentItemResponse",
    "HelpfulLink",
]


class _Request(BaseModel):
    model_config = ConfigDict(use_enum_values=True, extra="forbid")


class _Record(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    project_id: uuid.UUID
    created_at: dt.datetime
    updated_at: dt.datetime


# ========================================================================
# Layout
# ========================================================================


class Position(BaseModel):
    x: int = Field(..., ge=0)
    y: int = Field(..., ge=0)


class Size(BaseModel):
    width: int = Field(..., ge=1)
    height: int = Field(..., ge=1)


class ModuleConfig(BaseModel):
    """One card on the workspace grid."""

    model_config = ConfigDict(use_enum_values=True)

    id: str
    type: ModuleType
    position: Position
    size: Size
    data: dict[str, Any] = Field(default_factory=dict)
    is_visible: bool = True


class GridConfig(BaseModel):
    columns: int = Field(12, ge=1)
    rows: int = Field(8, ge=1)
    gap: int = Field(16, ge=0)


class WorkspaceLayout(BaseModel):
    modules: list[ModuleConfig] = Field(default_factory=list)
    grid_config: GridConfig = Field(default_factory=GridConfig)


# ========================================================================
# Projects
# ========================================================================


class ProjectCreateRequest(_Request):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    workspace_layout: Optional[WorkspaceLayout] = None
    settings: dict[str, Any] = Field(default_factory=dict)


class ProjectUpdateRequest(_Request):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    workspace_layout: Optional[WorkspaceLayout] = None
    settings: Optional[dict[str, Any]] = None


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    description: Optional[str]
    workspace_layout: dict[str, Any]
    settings: dict[str, Any]
    is_archived: bool
    created_at: dt.datetime
    updated_at: dt.datetime


class ProjectListResponse(BaseModel):
    projects: list[ProjectResponse]
    total: int


# ========================================================================
# PRDs
# ========================================================================


class PRDCreateRequest(_Request):
    title: str = Field(..., min_length=1)
    content: str = ""
    status: PRDStatus = PRDStatus.DRAFT
    ai_generated: bool = False


class PRDUpdateRequest(_Request):
    title: Optional[str] = Field(None, min_length=1)
    content: Optional[str] = None
    version: Optional[int] = Field(None, ge=1)
    status: Optional[PRDStatus] = None
    ai_generated: Optional[bool] = None


class PRDResponse(_Record):
    title: str
    content: str
    version: int
    status: str
    ai_generated: bool


# ========================================================================
# Roadmap
# ========================================================================


class RoadmapItemCreateRequest(_Request):
    title: str = Field(..., min_length=1)
    description: str = ""
    status: RoadmapStatus = RoadmapStatus.PLANNED
    phase: RoadmapPhase = RoadmapPhase.MVP
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    progress: int = Field(0, ge=0, le=100)
    milestone: bool = False
    color: str = Field("#3b82f6", pattern=r"^#[0-9a-fA-F]{6}$")
    position: Optional[int] = Field(None, ge=0)


class RoadmapItemUpdateRequest(_Request):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    status: Optional[RoadmapStatus] = None
    phase: Optional[RoadmapPhase] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    progress: Optional[int] = Field(None, ge=0, le=100)
    milestone: Optional[bool] = None
    color: Optional[str] = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")
    position: Optional[int] = Field(None, ge=0)


class RoadmapItemResponse(_Record):
    title: str
    description: str
    status: str
    phase: str
    start_date: Optional[dt.date]
    end_date: Optional[dt.date]
    progress: int
    milestone: bool
    color: str
    position: int


# ========================================================================
# Tasks
# ========================================================================


class TaskCreateRequest(_Request):
    title: str = Field(..., min_length=1)
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    estimated_hours: Optional[float] = Field(None, ge=0)
    due_date: Optional[dt.datetime] = None
    tags: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    position: Optional[int] = Field(None, ge=0)


class TaskUpdateRequest(_Request):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    due_date: Optional[dt.datetime] = None
    tags: Optional[list[str]] = None
    dependencies: Optional[list[str]] = None
    position: Optional[int] = Field(None, ge=0)


class TaskResponse(_Record):
    title: str
    description: str
    status: str
    priority: str
    estimated_hours: Optional[float]
    due_date: Optional[dt.datetime]
    tags: list[str]
    dependencies: list[str]
    position: int


# ========================================================================
# Scratchpad, prompts, secrets
# ========================================================================


class ScratchpadNoteCreateRequest(_Request):
    content: str = Field(..., min_length=1)
    color: str = "#fef3c7"
    is_pinned: bool = False
    tags: list[str] = Field(default_factory=list)


class ScratchpadNoteUpdateRequest(_Request):
    content: Optional[str] = Field(None, min_length=1)
    color: Optional[str] = None
    is_pinned: Optional[bool] = None
    tags: Optional[list[str]] = None


class ScratchpadNoteResponse(_Record):
    content: str
    color: str
    is_pinned: bool
    tags: list[str]


class PromptCreateRequest(_Request):
    name: str = Field(..., min_length=1)
    description: str = ""
    content: str = Field(..., min_length=1)
    category: str = "general"
    tags: list[str] = Field(default_factory=list)


class PromptUpdateRequest(_Request):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    content: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = None
    tags: Optional[list[str]] = None
    usage_count: Optional[int] = Field(None, ge=0)


class PromptResponse(_Record):
    name: str
    description: str
    content: str
    category: str
    tags: list[str]
    usage_count: int


class SecretCreateRequest(_Request):
    name: str = Field(..., min_length=1)
    encrypted_value: str = Field(..., min_length=1)
    description: str = ""
    category: str = "general"
    is_active: bool = True


class SecretUpdateRequest(_Request):
    name: Optional[str] = Field(None, min_length=1)
    encrypted_value: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    is_active: Optional[bool] = None


class SecretResponse(_Record):
    name: str
    encrypted_value: str
    description: str
    category: str
    is_active: bool


# ========================================================================
# Deployment checklist
# ========================================================================


class HelpfulLink(BaseModel):
    title: str
    url: str = Field(..., pattern=r"^https?://")


class DeploymentItemCreateRequest(_Request):
    title: str = Field(..., min_length=1)
    description: str = ""
    category: DeploymentCategory = DeploymentCategory.GENERAL
    platform: DeploymentPlatform = DeploymentPlatform.UNIVERSAL
    environment: DeploymentEnvironment = DeploymentEnvironment.PRODUCTION
    status: DeploymentStatus = DeploymentStatus.TODO
    priority: DeploymentPriority = DeploymentPriority.MEDIUM
    is_required: bool = True
    is_auto_generated: bool = False
    estimated_hours: Optional[float] = Field(None, ge=0)
    verification_notes: str = ""
    helpful_links: list[HelpfulLink] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    position: Optional[int] = Field(None, ge=0)


class DeploymentItemUpdateRequest(_Request):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    category: Optional[DeploymentCategory] = None
    platform: Optional[DeploymentPlatform] = None
    environment: Optional[DeploymentEnvironment] = None
    status: Optional[DeploymentStatus] = None
    priority: Optional[DeploymentPriority] = None
    is_required: Optional[bool] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    verification_notes: Optional[str] = None
    helpful_links: Optional[list[HelpfulLink]] = None
    tags: Optional[list[str]] = None
    position: Optional[int] = Field(None, ge=0)


class DeploymentItemResponse(_Record):
    title: str
    description: str
    category: str
    platform: str
    environment: str
    status: str
    priority: str
    is_required: bool
    is_auto_generated: bool
    estimated_hours: Optional[float]
    verification_notes: str
    helpful_links: list[dict[str, Any]]
    tags: list[str]
    position: int
