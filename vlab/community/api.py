"""FastAPI application for the community forum."""

from __future__ import annotations

import uuid
from typing import Generator, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from ..auth import AuthClient, AuthSettings, TokenVerifier, optional_user, require_user
from ..db import Database, init_engine
from ..errors import AuthenticationFailed, ValidationFailed, install_error_handlers
from ..workspace.service import upsert_profile
from . import schemas
from .service import CommunityService, CommunitySettings, PostListQuery
from .threads import build_comment_tree

__all__ = ["create_app", "CommunitySettings"]


def create_app(
    settings: Optional[CommunitySettings] = None,
    *,
    auth_verifier: Optional[TokenVerifier] = None,
    database: Optional[Database] = None,
    allowed_origins: Optional[list[str]] = None,
) -> FastAPI:
    """Create and configure the FastAPI application for the forum."""

    settings = settings or CommunitySettings.from_env()
    if database is None:
        database = Database(init_engine(settings.database_url, create_tables=settings.create_tables))
    verifier = auth_verifier or AuthClient(AuthSettings.from_env())
    authenticate = require_user(verifier)
    maybe_authenticate = optional_user(verifier)

    app = FastAPI(
        title="VLab Community API",
        version="1.0.0",
        description="Tools & tips posts, threaded comments and votes",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )
    install_error_handlers(app)

    def get_session() -> Generator[Session, None, None]:
        session = database.session()
        try:
            yield session
        finally:
            session.close()

    def get_service(session: Session = Depends(get_session)) -> CommunityService:
        return CommunityService(session=session, settings=settings)

    def _user_id(user) -> uuid.UUID:
        try:
            return uuid.UUID(user.id)
        except ValueError:
            raise AuthenticationFailed("Invalid user id") from None

    def get_current_user(request: Request, session: Session = Depends(get_session)) -> uuid.UUID:
        user = authenticate(request)
        user_id = _user_id(user)
        upsert_profile(session, user)
        return user_id

    def get_optional_user(
        request: Request, session: Session = Depends(get_session)
    ) -> Optional[uuid.UUID]:
        user = maybe_authenticate(request)
        if user is None:
            return None
        user_id = _user_id(user)
        upsert_profile(session, user)
        return user_id

    # ========================================================================
    # Posts
    # ========================================================================

    @app.get("/v1/posts", response_model=schemas.PostListResponse)
    def list_posts(
        page: int = Query(1, ge=1),
        limit: int = Query(settings.default_page_size, ge=1),
        category: Optional[str] = Query(None),
        tool: Optional[str] = Query(None),
        tip_category: Optional[str] = Query(None),
        search: Optional[str] = Query(None),
        tag: Optional[str] = Query(None),
        sort: str = Query("newest"),
        service: CommunityService = Depends(get_service),
        viewer_id: Optional[uuid.UUID] = Depends(get_optional_user),
    ) -> schemas.PostListResponse:
        query = PostListQuery(
            page=page,
            limit=limit,
            category=category,
            tool=tool,
            tip_category=tip_category,
            search=search,
            tag=tag,
            sort=sort,
        )
        posts, pagination = service.list_posts(query)
        votes = service.user_votes([p.id for p in posts], viewer_id) if viewer_id else {}
        data = [
            schemas.PostResponse.model_validate(post).model_copy(update={"user_vote": votes.get(post.id)})
            for post in posts
        ]
        return schemas.PostListResponse(data=data, pagination=pagination)

    @app.post("/v1/posts", status_code=201)
    def create_post(
        request: schemas.PostCreateRequest,
        service: CommunityService = Depends(get_service),
        user_id: uuid.UUID = Depends(get_current_user),
    ) -> dict:
        post = service.create_post(request, user_id)
        return {"data": schemas.PostResponse.model_validate(post)}

    @app.get("/v1/posts/{post_id}")
    def get_post(
        post_id: uuid.UUID,
        service: CommunityService = Depends(get_service),
        viewer_id: Optional[uuid.UUID] = Depends(get_optional_user),
    ) -> dict:
        post, comments = service.get_post(post_id, viewer_id)
        user_vote = service.user_votes([post.id], viewer_id).get(post.id) if viewer_id else None
        flat = [schemas.CommentResponse.model_validate(c).model_dump() for c in comments]
        detail = schemas.PostDetailResponse.model_validate(post).model_copy(
            update={
                "user_vote": user_vote,
                "comments": [schemas.CommentResponse.model_validate(n) for n in build_comment_tree(flat)],
            }
        )
        return {"data": detail}

    # ========================================================================
    # Votes
    # ========================================================================

    @app.post("/v1/posts/{post_id}/vote")
    def vote(
        post_id: uuid.UUID,
        request: schemas.VoteRequest,
        service: CommunityService = Depends(get_service),
        user_id: uuid.UUID = Depends(get_current_user),
    ) -> dict:
        try:
            vote = service.vote(post_id, user_id, request.vote_type)
        except ValueError as e:
            raise ValidationFailed(str(e)) from None
        return {"data": {"post_id": vote.post_id, "user_id": vote.user_id, "vote_type": vote.vote_type}}

    @app.delete("/v1/posts/{post_id}/vote")
    def remove_vote(
        post_id: uuid.UUID,
        service: CommunityService = Depends(get_service),
        user_id: uuid.UUID = Depends(get_current_user),
    ) -> dict:
        service.remove_vote(post_id, user_id)
        return {"message": "Vote removed successfully"}

    # ========================================================================
    # Comments
    # ========================================================================

    @app.post("/v1/posts/{post_id}/comments", status_code=201)
    def add_comment(
        post_id: uuid.UUID,
        request: schemas.CommentCreateRequest,
        service: CommunityService = Depends(get_service),
        user_id: uuid.UUID = Depends(get_current_user),
    ) -> dict:
        try:
            comment = service.add_comment(post_id, user_id, request)
        except ValueError as e:
            raise ValidationFailed(str(e)) from None
        return {"data": schemas.CommentResponse.model_validate(comment)}

    @app.delete("/v1/comments/{comment_id}")
    def delete_comment(
        comment_id: uuid.UUID,
        service: CommunityService = Depends(get_service),
        user_id: uuid.UUID = Depends(get_current_user),
    ) -> dict:
        service.delete_comment(comment_id, user_id)
        return {"message": "Comment deleted successfully"}

    return app
