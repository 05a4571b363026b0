"""Canonical allowed-value enums.

Columns holding these values are plain text guarded by ``CHECK`` constraints,
so adding a value is a constraint swap rather than a type migration.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from sqlalchemy import CheckConstraint

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


class WorkspaceEnum(str, Enum):
    """Base class for enums stored as constrained text."""

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(item.value for item in cls)

    @classmethod
    def coerce(cls, value: object, default: "WorkspaceEnum") -> str:
        """Return ``value`` if it is a member value, otherwise ``default``."""

        if isinstance(value, str) and value in cls.values():
            return value
        return default.value


class ModuleType(WorkspaceEnum):
    PRD = "prd"
    ROADMAP = "roadmap"
    TASKS = "tasks"
    SCRATCHPAD = "scratchpad"
    PROMPTS = "prompts"
    SECRETS = "secrets"
    DEPLOYMENT = "deployment"
    DESIGN = "design"


class PRDStatus(WorkspaceEnum):
    DRAFT = "draft"
    REVIEW = "review"
    APPROVED = "approved"
    ARCHIVED = "archived"


class RoadmapStatus(WorkspaceEnum):
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RoadmapPhase(WorkspaceEnum):
    MVP = "mvp"
    PHASE_2 = "phase_2"
    BACKLOG = "backlog"


class TaskStatus(WorkspaceEnum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    BLOCKED = "blocked"


class TaskPriority(WorkspaceEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class DeploymentCategory(WorkspaceEnum):
    GENERAL = "general"
    HOSTING = "hosting"
    DATABASE = "database"
    AUTH = "auth"
    ENV = "env"
    SECURITY = "security"
    MONITORING = "monitoring"
    TESTING = "testing"
    DNS = "dns"
    SSL = "ssl"
    PERFORMANCE = "performance"


class DeploymentPlatform(WorkspaceEnum):
    UNIVERSAL = "universal"
    VERCEL = "vercel"
    NETLIFY = "netlify"
    AWS = "aws"
    GCP = "gcp"
    AZURE = "azure"
    HEROKU = "heroku"
    DIGITALOCEAN = "digitalocean"
    SUPABASE = "supabase"


class DeploymentEnvironment(WorkspaceEnum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class DeploymentStatus(WorkspaceEnum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    BLOCKED = "blocked"
    NOT_APPLICABLE = "not_applicable"


class DeploymentPriority(WorkspaceEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class PostCategory(WorkspaceEnum):
    TOOL = "tool"
    TIP = "tip"


class VoteType(WorkspaceEnum):
    UPVOTE = "upvote"
    DOWNVOTE = "downvote"


def _in_list(column: str, values: tuple[str, ...]) -> str:
    values_sql = ", ".join(f"'{value}'" for value in values)
    return f"{column} IN ({values_sql})"


@dataclass(frozen=True)
class ConstraintDefinition:
    """A ``CHECK (column IN (...))`` constraint backed by an enum."""

    table: str
    column: str
    enum_cls: type[WorkspaceEnum]

    @property
    def name(self) -> str:
        return f"{self.table}_{self.column}_check"

    def render_sql(self) -> str:
        return (
            f"ALTER TABLE {self.table} DROP CONSTRAINT IF EXISTS {self.name};\n"
            f"ALTER TABLE {self.table} ADD CONSTRAINT {self.name}\n"
            f"  CHECK ({_in_list(self.column, self.enum_cls.values())});"
        )


CONSTRAINT_DEFINITIONS: tuple[ConstraintDefinition, ...] = (
    ConstraintDefinition("prds", "status", PRDStatus),
    ConstraintDefinition("roadmap_items", "status", RoadmapStatus),
    ConstraintDefinition("roadmap_items", "phase", RoadmapPhase),
    ConstraintDefinition("tasks", "status", TaskStatus),
    ConstraintDefinition("tasks", "priority", TaskPriority),
    ConstraintDefinition("deployment_items", "category", DeploymentCategory),
    ConstraintDefinition("deployment_items", "platform", DeploymentPlatform),
    ConstraintDefinition("deployment_items", "environment", DeploymentEnvironment),
    ConstraintDefinition("deployment_items", "status", DeploymentStatus),
    ConstraintDefinition("deployment_items", "priority", DeploymentPriority),
    ConstraintDefinition("community_posts", "category", PostCategory),
    ConstraintDefinition("community_post_votes", "vote_type", VoteType),
)

CONSTRAINT_DEFINITION_BY_NAME: Mapping[str, ConstraintDefinition] = {
    definition.name: definition for definition in CONSTRAINT_DEFINITIONS
}


def render_check_constraint_sql(table: str, column: str, enum_cls: type[WorkspaceEnum]) -> str:
    """Return SQL replacing the allowed-value constraint on ``table.column``."""

    return ConstraintDefinition(table, column, enum_cls).render_sql()


def render_constraints_sql() -> str:
    """Return constraint SQL for every enum-backed column."""

    return "\n\n".join(definition.render_sql() for definition in CONSTRAINT_DEFINITIONS)


def check_in(table: str, column: str, enum_cls: type[WorkspaceEnum]) -> CheckConstraint:
    """Return the ORM-side twin of :func:`render_check_constraint_sql`."""

    definition = ConstraintDefinition(table, column, enum_cls)
    return CheckConstraint(_in_list(column, enum_cls.values()), name=definition.name)
