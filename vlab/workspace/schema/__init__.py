"""Allowed-value enums shared between ORM models and migrations."""

from .enums import (
    CONSTRAINT_DEFINITION_BY_NAME,
    CONSTRAINT_DEFINITIONS,
    ConstraintDefinition,
    DeploymentCategory,
    DeploymentEnvironment,
    DeploymentPlatform,
    DeploymentPriority,
    DeploymentStatus,
    ModuleType,
    PostCategory,
    PRDStatus,
    RoadmapPhase,
    RoadmapStatus,
    TaskPriority,
    TaskStatus,
    VoteType,
    WorkspaceEnum,
    check_in,
    render_check_constraint_sql,
    render_constraints_sql,
)

__all__ = [
    "WorkspaceEnum",
    "ModuleType",
    "PRDStatus",
    "RoadmapStatus",
    "RoadmapPhase",
    "TaskStatus",
    "TaskPriority",
    "DeploymentCategory",
    "DeploymentPlatform",
    "DeploymentEnvironment",
    "DeploymentStatus",
    "DeploymentPriority",
    "PostCategory",
    "VoteType",
    "ConstraintDefinition",
    "CONSTRAINT_DEFINITIONS",
    "CONSTRAINT_DEFINITION_BY_NAME",
    "render_check_constraint_sql",
    "render_constraints_sql",
    "check_in",
]
