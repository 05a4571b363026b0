"""Pydantic schemas for community API requests/responses."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..workspace.schema.enums import PostCategory, VoteType

__all__ = [
    "PostCreateRequest",
    "VoteRequest",
    "CommentCreateRequest",
    "AuthorSummary",
    "PostResponse",
    "CommentResponse",
    "PostDetailResponse",
    "Pagination",
    "PostListResponse",
    "normalize_tags",
]


def normalize_tags(tags: list[str]) -> list[str]:
    """Lower-case, strip and de-duplicate, keeping first-seen order."""

    seen: dict[str, None] = {}
    for tag in tags:
        cleaned = tag.strip().lower()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


class PostCreateRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    category: PostCategory
    tool: Optional[str] = None
    tip_category: Optional[str] = None
    image_url: Optional[str] = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("title", "content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, value: list[str]) -> list[str]:
        return normalize_tags(value)


class VoteRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    vote_type: VoteType


class CommentCreateRequest(BaseModel):
    content: str
    parent_comment_id: Optional[uuid.UUID] = None


class AuthorSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    avatar_url: Optional[str] = None


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    author_id: uuid.UUID
    title: str
    content: str
    category: str
    tool: Optional[str]
    tip_category: Optional[str]
    image_url: Optional[str]
    upvotes: int
    downvotes: int
    comment_count: int
    view_count: int
    is_featured: bool
    is_published: bool
    created_at: dt.datetime
    updated_at: dt.datetime
    author: Optional[AuthorSummary] = None
    tags: list[str] = Field(default_factory=list)
    user_vote: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _tag_names(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [getattr(tag, "tag", tag) for tag in value]
        return value


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    post_id: uuid.UUID
    author_id: uuid.UUID
    parent_comment_id: Optional[uuid.UUID]
    content: str
    created_at: dt.datetime
    updated_at: dt.datetime
    author: Optional[AuthorSummary] = None
    replies: list["CommentResponse"] = Field(default_factory=list)


class PostDetailResponse(PostResponse):
    comments: list[CommentResponse] = Field(default_factory=list)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


class PostListResponse(BaseModel):
    data: list[PostResponse]
    pagination: Pagination
