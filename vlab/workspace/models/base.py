"""Declarative base and enum constraint helpers for workspace models."""

from __future__ import annotations

from ...db import Base, TimestampMixin, UUIDPrimaryKeyMixin
from ..schema.enums import (
    DeploymentCategory,
    DeploymentEnvironment,
    DeploymentPlatform,
    DeploymentPriority,
    DeploymentStatus,
    PRDStatus,
    RoadmapPhase,
    RoadmapStatus,
    TaskPriority,
    TaskStatus,
    check_in,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
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
    "check_in",
]
