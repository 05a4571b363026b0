"""Workspace SQLAlchemy models organized by domain."""

from .base import Base
from .projects import Profile, Project
from .content import (
    PRD,
    DeploymentItem,
    Prompt,
    RoadmapItem,
    ScratchpadNote,
    Secret,
    Task,
)

__all__ = [
    "Base",
    "Profile",
    "Project",
    "PRD",
    "RoadmapItem",
    "Task",
    "ScratchpadNote",
    "Prompt",
    "Secret",
    "DeploymentItem",
]
