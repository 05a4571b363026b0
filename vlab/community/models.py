"""Community forum models."""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..db import Base, TimestampMixin, UUIDPrimaryKeyMixin
from ..workspace.models import Profile
from ..workspace.schema.enums import PostCategory, VoteType, check_in

__all__ = ["CommunityPost", "CommunityPostTag", "CommunityComment", "CommunityPostVote"]


class CommunityPost(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A shared tool or tip."""

    __tablename__ = "community_posts"
    __table_args__ = (
        check_in("community_posts", "category", PostCategory),
        Index("idx_community_posts_published_created", "is_published", "created_at"),
    )

    author_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    tool: Mapped[Optional[str]] = mapped_column(Text)
    tip_category: Mapped[Optional[str]] = mapped_column(Text)
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    upvotes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    downvotes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    comment_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_published: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    author: Mapped[Profile] = relationship(lazy="joined")
    tags: Mapped[list["CommunityPostTag"]] = relationship(
        back_populates="post", cascade="all, delete-orphan", order_by="CommunityPostTag.tag"
    )
    comments: Mapped[list["CommunityComment"]] = relationship(
        back_populates="post", cascade="all, delete-orphan"
    )
    votes: Mapped[list["CommunityPostVote"]] = relationship(
        back_populates="post", cascade="all, delete-orphan"
    )


class CommunityPostTag(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "community_post_tags"
    __table_args__ = (UniqueConstraint("post_id", "tag", name="community_post_tags_post_id_tag_key"),)

    post_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("community_posts.id", ondelete="CASCADE"), nullable=False
    )
    tag: Mapped[str] = mapped_column(Text, nullable=False, index=True)

    post: Mapped[CommunityPost] = relationship(back_populates="tags")


class CommunityComment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Threaded comment. Deletion is a flag, never a row removal."""

    __tablename__ = "community_comments"
    __table_args__ = (Index("idx_community_comments_post_created", "post_id", "created_at"),)

    post_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("community_posts.id", ondelete="CASCADE"), nullable=False
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    parent_comment_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("community_comments.id", ondelete="CASCADE")
    )
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    post: Mapped[CommunityPost] = relationship(back_populates="comments")
    author: Mapped[Profile] = relationship(lazy="joined")


class CommunityPostVote(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "community_post_votes"
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="community_post_votes_post_id_user_id_key"),
        check_in("community_post_votes", "vote_type", VoteType),
    )

    post_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("community_posts.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    vote_type: Mapped[str] = mapped_column(Text, nullable=False)

    post: Mapped[CommunityPost] = relationship(back_populates="votes")
