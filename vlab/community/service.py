"""Service layer for the community forum.

Business rules:
- only published posts are visible, votable or commentable
- one vote per user per post; voting again replaces the earlier vote
- comments are soft-deleted and only by their author
- post counters are recomputed from rows after every vote or comment change
"""

from __future__ import annotations

import datetime as dt
import math
import os
import uuid
from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError, NoResultFound
from sqlalchemy.orm import Session, selectinload

from ..db.base import utcnow
from ..workspace.schema.enums import PostCategory, VoteType
from . import schemas
from .models import CommunityComment, CommunityPost, CommunityPostTag, CommunityPostVote

__all__ = ["CommunitySettings", "CommunityService", "PostListQuery", "SORT_OPTIONS"]

logger = structlog.get_logger(__name__)

SORT_OPTIONS = ("newest", "oldest", "popular", "trending")
TRENDING_WINDOW = dt.timedelta(days=7)


@dataclass(slots=True)
class CommunitySettings:
    """Community service settings."""

    database_url: str
    default_page_size: int = 20
    max_page_size: int = 50
    create_tables: bool = False

    @classmethod
    def from_env(cls) -> CommunitySettings:
        database_url = os.getenv("VLAB_DATABASE_URL") or os.getenv("DATABASE_URL")
        if not database_url:
            raise ValueError("Database connection required: set VLAB_DATABASE_URL or DATABASE_URL")
        return cls(
            database_url=database_url,
            create_tables=os.getenv("VLAB_CREATE_TABLES", "false").lower() == "true",
        )


@dataclass(frozen=True)
class PostListQuery:
    page: int = 1
    limit: int = 20
    category: Optional[str] = None
    tool: Optional[str] = None
    tip_category: Optional[str] = None
    search: Optional[str] = None
    tag: Optional[str] = None
    sort: str = "newest"


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class CommunityService:
    """Community forum business logic."""

    def __init__(self, session: Session, settings: CommunitySettings):
        self.session = session
        self.settings = settings

    # ========================================================================
    # Posts
    # ========================================================================

    def list_posts(self, query: PostListQuery) -> tuple[list[CommunityPost], schemas.Pagination]:
        page = max(query.page, 1)
        limit = min(max(query.limit, 1), self.settings.max_page_size)

        stmt = select(CommunityPost).where(CommunityPost.is_published.is_(True))
        if query.category in PostCategory.values():
            stmt = stmt.where(CommunityPost.category == query.category)
        if query.tool:
            stmt = stmt.where(CommunityPost.tool == query.tool)
        if query.tip_category:
            stmt = stmt.where(CommunityPost.tip_category == query.tip_category)
        if query.search and query.search.strip():
            pattern = _like_pattern(query.search.strip())
            stmt = stmt.where(
                or_(
                    CommunityPost.title.ilike(pattern, escape="\\"),
                    CommunityPost.content.ilike(pattern, escape="\\"),
                )
            )
        if query.tag and query.tag.strip():
            stmt = stmt.where(CommunityPost.tags.any(CommunityPostTag.tag == query.tag.strip().lower()))

        sort = query.sort if query.sort in SORT_OPTIONS else "newest"
        if sort == "trending":
            stmt = stmt.where(CommunityPost.created_at >= utcnow() - TRENDING_WINDOW)

        total = self.session.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()

        if sort in ("popular", "trending"):
            stmt = stmt.order_by(CommunityPost.upvotes.desc(), CommunityPost.created_at.desc())
        elif sort == "oldest":
            stmt = stmt.order_by(CommunityPost.created_at.asc())
        else:
            stmt = stmt.order_by(CommunityPost.created_at.desc())

        stmt = stmt.options(selectinload(CommunityPost.tags)).offset((page - 1) * limit).limit(limit)
        posts = list(self.session.execute(stmt).unique().scalars())

        total_pages = math.ceil(total / limit) if total else 0
        pagination = schemas.Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )
        return posts, pagination

    def create_post(self, request: schemas.PostCreateRequest, user_id: uuid.UUID) -> CommunityPost:
        post = CommunityPost(
            author_id=user_id,
            title=request.title,
            content=request.content,
            category=request.category,
            tool=request.tool,
            tip_category=request.tip_category,
            image_url=request.image_url,
            tags=[CommunityPostTag(tag=tag) for tag in request.tags],
        )
        self.session.add(post)
        self.session.commit()
        logger.info("post_created", post_id=str(post.id), author_id=str(user_id), tags=len(request.tags))
        return post

    def _published_post(self, post_id: uuid.UUID) -> CommunityPost:
        post = self.session.get(CommunityPost, post_id)
        if post is None or not post.is_published:
            raise NoResultFound("Post not found")
        return post

    def get_post(
        self, post_id: uuid.UUID, viewer_id: Optional[uuid.UUID] = None
    ) -> tuple[CommunityPost, list[CommunityComment]]:
        """Return a published post with its live comments in creation order."""

        post = self._published_post(post_id)
        if viewer_id is not None:
            self.session.execute(
                update(CommunityPost)
                .where(CommunityPost.id == post_id)
                .values(view_count=CommunityPost.view_count + 1)
            )
            self.session.commit()
            self.session.refresh(post)

        comments = list(
            self.session.execute(
                select(CommunityComment)
                .where(CommunityComment.post_id == post_id, CommunityComment.is_deleted.is_(False))
                .order_by(CommunityComment.created_at.asc())
            ).scalars()
        )
        return post, comments

    def user_votes(self, post_ids: list[uuid.UUID], user_id: uuid.UUID) -> dict[uuid.UUID, str]:
        if not post_ids:
            return {}
        rows = self.session.execute(
            select(CommunityPostVote.post_id, CommunityPostVote.vote_type).where(
                CommunityPostVote.user_id == user_id,
                CommunityPostVote.post_id.in_(post_ids),
            )
        )
        return {post_id: vote_type for post_id, vote_type in rows}

    # ========================================================================
    # Votes
    # ========================================================================

    def _find_vote(self, post_id: uuid.UUID, user_id: uuid.UUID) -> Optional[CommunityPostVote]:
        return self.session.execute(
            select(CommunityPostVote).where(
                CommunityPostVote.post_id == post_id, CommunityPostVote.user_id == user_id
            )
        ).scalar_one_or_none()

    def vote(self, post_id: uuid.UUID, user_id: uuid.UUID, vote_type: str) -> CommunityPostVote:
        if vote_type not in VoteType.values():
            raise ValueError("vote_type must be 'upvote' or 'downvote'")
        post = self._published_post(post_id)

        vote = self._find_vote(post_id, user_id)
        if vote is None:
            vote = CommunityPostVote(post_id=post_id, user_id=user_id, vote_type=vote_type)
            self.session.add(vote)
            try:
                self.session.flush()
            except IntegrityError:
                # concurrent first vote from the same user
                self.session.rollback()
                vote = self._find_vote(post_id, user_id)
                if vote is None:
                    raise
                vote.vote_type = vote_type
        else:
            vote.vote_type = vote_type

        self._refresh_counters(post)
        self.session.commit()
        logger.info("post_voted", post_id=str(post_id), user_id=str(user_id), vote_type=vote_type)
        return vote

    def remove_vote(self, post_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        post = self._published_post(post_id)
        vote = self._find_vote(post_id, user_id)
        if vote is not None:
            self.session.delete(vote)
            self.session.flush()
        self._refresh_counters(post)
        self.session.commit()
        return vote is not None

    # ========================================================================
    # Comments
    # ========================================================================

    def add_comment(
        self, post_id: uuid.UUID, user_id: uuid.UUID, request: schemas.CommentCreateRequest
    ) -> CommunityComment:
        content = request.content.strip()
        if not content:
            raise ValueError("Comment content is required")
        post = self._published_post(post_id)

        if request.parent_comment_id is not None:
            parent = self.session.get(CommunityComment, request.parent_comment_id)
            if parent is None or parent.post_id != post_id or parent.is_deleted:
                raise NoResultFound("Parent comment not found")

        comment = CommunityComment(
            post_id=post_id,
            author_id=user_id,
            content=content,
            parent_comment_id=request.parent_comment_id,
        )
        self.session.add(comment)
        self.session.flush()
        self._refresh_counters(post)
        self.session.commit()
        logger.info(
            "comment_created",
            post_id=str(post_id),
            comment_id=str(comment.id),
            is_reply=request.parent_comment_id is not None,
        )
        return comment

    def delete_comment(self, comment_id: uuid.UUID, user_id: uuid.UUID) -> None:
        comment = self.session.get(CommunityComment, comment_id)
        if comment is None or comment.is_deleted:
            raise NoResultFound("Comment not found")
        if comment.author_id != user_id:
            raise PermissionError("You can only delete your own comments")
        comment.is_deleted = True
        self.session.flush()
        self._refresh_counters(comment.post)
        self.session.commit()
        logger.info("comment_deleted", comment_id=str(comment_id), post_id=str(comment.post_id))

    # ========================================================================
    # Counters
    # ========================================================================

    def _refresh_counters(self, post: CommunityPost) -> None:
        vote_counts = dict(
            self.session.execute(
                select(CommunityPostVote.vote_type, func.count())
                .where(CommunityPostVote.post_id == post.id)
                .group_by(CommunityPostVote.vote_type)
            ).all()
        )
        post.upvotes = vote_counts.get(VoteType.UPVOTE.value, 0)
        post.downvotes = vote_counts.get(VoteType.DOWNVOTE.value, 0)
        post.comment_count = self.session.execute(
            select(func.count())
            .select_from(CommunityComment)
            .where(CommunityComment.post_id == post.id, CommunityComment.is_deleted.is_(False))
        ).scalar_one()
