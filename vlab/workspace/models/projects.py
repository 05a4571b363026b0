"""Profile and project models."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, CheckConstraint, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:  # pragma: no cover
    from .content import (
        PRD,
        DeploymentItem,
        Prompt,
        RoadmapItem,
        ScratchpadNote,
        Secret,
        Task,
    )

__all__ = ["Profile", "Project"]


class Profile(TimestampMixin, Base):
    """Application-side mirror of an auth provider user."""

    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint("is_anonymous OR email IS NOT NULL", name="profiles_email_check"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True)
    email: Mapped[str | None] = mapped_column(Text)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(Text)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    projects: Mapped[list["Project"]] = relationship(
        back_populates="owner", cascade="all, delete-orphan"
    )


class Project(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A user's project with its workspace layout."""

    __tablename__ = "projects"
    __table_args__ = (
        Index("idx_projects_user_archived", "user_id", "is_archived", "updated_at"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    workspace_layout: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    settings: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    owner: Mapped[Profile] = relationship(back_populates="projects")
    prds: Mapped[list["PRD"]] = relationship(back_populates="project", cascade="all, delete-orphan")
    roadmap_items: Mapped[list["RoadmapItem"]] = relationship(
        back_populates="project", cascade="all, delete-orphan"
    )
    tasks: Mapped[list["Task"]] = relationship(back_populates="project", cascade="all, delete-orphan")
    scratchpad_notes: Mapped[list["ScratchpadNote"]] = relationship(
        back_populates="project", cascade="all, delete-orphan"
    )
    prompts: Mapped[list["Prompt"]] = relationship(
        back_populates="project", cascade="all, delete-orphan"
    )
    secrets: Mapped[list["Secret"]] = relationship(
        back_populates="project", cascade="all, delete-orphan"
    )
    deployment_items: Mapped[list["DeploymentItem"]] = relationship(
        back_populates="project", cascade="all, delete-orphan"
    )
