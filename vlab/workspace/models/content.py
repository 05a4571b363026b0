"""Per-project workspace module records."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import (
    Base,
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
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    check_in,
)

if TYPE_CHECKING:  # pragma: no cover
    from .projects import Project

__all__ = [
    "PRD",
    "RoadmapItem",
    "Task",
    "ScratchpadNote",
    "Prompt",
    "Secret",
    "DeploymentItem",
]


class PRD(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Product requirements document, versioned in place."""

    __tablename__ = "prds"
    __table_args__ = (check_in("prds", "status", PRDStatus),)

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, default="", nullable=False)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    status: Mapped[str] = mapped_column(Text, default=PRDStatus.DRAFT.value, nullable=False)
    ai_generated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    project: Mapped["Project"] = relationship(back_populates="prds")


class RoadmapItem(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "roadmap_items"
    __table_args__ = (
        check_in("roadmap_items", "status", RoadmapStatus),
        check_in("roadmap_items", "phase", RoadmapPhase),
        Index("idx_roadmap_items_project_position", "project_id", "position"),
    )

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    status: Mapped[str] = mapped_column(Text, default=RoadmapStatus.PLANNED.value, nullable=False)
    phase: Mapped[str] = mapped_column(Text, default=RoadmapPhase.MVP.value, nullable=False)
    start_date: Mapped[dt.date | None] = mapped_column(Date)
    end_date: Mapped[dt.date | None] = mapped_column(Date)
    progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    milestone: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    color: Mapped[str] = mapped_column(Text, default="#3b82f6", nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    project: Mapped["Project"] = relationship(back_populates="roadmap_items")


class Task(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "tasks"
    __table_args__ = (
        check_in("tasks", "status", TaskStatus),
        check_in("tasks", "priority", TaskPriority),
        Index("idx_tasks_project_position", "project_id", "position"),
    )

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    status: Mapped[str] = mapped_column(Text, default=TaskStatus.TODO.value, nullable=False)
    priority: Mapped[str] = mapped_column(Text, default=TaskPriority.MEDIUM.value, nullable=False)
    estimated_hours: Mapped[float | None] = mapped_column(Float)
    due_date: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True))
    tags: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    dependencies: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    project: Mapped["Project"] = relationship(back_populates="tasks")


class ScratchpadNote(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "scratchpad_notes"

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    color: Mapped[str] = mapped_column(Text, default="#fef3c7", nullable=False)
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    project: Mapped["Project"] = relationship(back_populates="scratchpad_notes")


class Prompt(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "prompts"

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(Text, default="general", nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    usage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    project: Mapped["Project"] = relationship(back_populates="prompts")


class Secret(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Project secret. Values arrive already encrypted by the caller."""

    __tablename__ = "secrets"
    __table_args__ = (UniqueConstraint("project_id", "name", name="secrets_project_id_name_key"),)

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    encrypted_value: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    category: Mapped[str] = mapped_column(Text, default="general", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    project: Mapped["Project"] = relationship(back_populates="secrets")


class DeploymentItem(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One go-live checklist entry."""

    __tablename__ = "deployment_items"
    __table_args__ = (
        check_in("deployment_items", "category", DeploymentCategory),
        check_in("deployment_items", "platform", DeploymentPlatform),
        check_in("deployment_items", "environment", DeploymentEnvironment),
        check_in("deployment_items", "status", DeploymentStatus),
        check_in("deployment_items", "priority", DeploymentPriority),
        Index("idx_deployment_items_project_position", "project_id", "position"),
    )

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    category: Mapped[str] = mapped_column(
        Text, default=DeploymentCategory.GENERAL.value, nullable=False
    )
    platform: Mapped[str] = mapped_column(
        Text, default=DeploymentPlatform.UNIVERSAL.value, nullable=False
    )
    environment: Mapped[str] = mapped_column(
        Text, default=DeploymentEnvironment.PRODUCTION.value, nullable=False
    )
    status: Mapped[str] = mapped_column(Text, default=DeploymentStatus.TODO.value, nullable=False)
    priority: Mapped[str] = mapped_column(
        Text, default=DeploymentPriority.MEDIUM.value, nullable=False
    )
    is_required: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_auto_generated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    estimated_hours: Mapped[float | None] = mapped_column(Float)
    verification_notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    helpful_links: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    project: Mapped["Project"] = relationship(back_populates="deployment_items")
