"""FastAPI application for the LLM generation proxy.

Request pipeline: size guard, JSON guard, action and field validation,
bearer authentication, per-user rate limit, then the upstream call. Nothing
external is contacted for a request that fails validation.
"""

from __future__ import annotations

import json
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from limits.storage import Storage
from starlette.concurrency import run_in_threadpool

from ..auth import AuthClient, AuthSettings, TokenVerifier, require_user
from ..errors import PayloadTooLarge, ValidationFailed, install_error_handlers
from .actions import parse_request
from .openai_client import CompletionClient, LangChainOpenAIClient
from .rate_limit import RateLimiter, create_storage
from .service import GenerationService, ProxySettings

__all__ = ["create_app", "ProxySettings"]

logger = structlog.get_logger(__name__)


def create_app(
    settings: Optional[ProxySettings] = None,
    *,
    auth_verifier: Optional[TokenVerifier] = None,
    completion_client: Optional[CompletionClient] = None,
    rate_limit_storage: Optional[Storage] = None,
) -> FastAPI:
    """Create the proxy application. Collaborators are injectable for tests."""

    settings = settings or ProxySettings.from_env()
    verifier = auth_verifier or AuthClient(AuthSettings.from_env())
    client = completion_client or LangChainOpenAIClient(
        settings.openai_api_key,
        timeout=settings.llm_timeout_seconds,
        base_url=settings.openai_base_url,
    )
    service = GenerationService(settings, client)
    limiter = RateLimiter(
        rate_limit_storage if rate_limit_storage is not None else create_storage(settings.rate_limit_storage_uri),
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    authenticate = require_user(verifier)

    app = FastAPI(
        title="VLab Generation Proxy",
        version="1.0.0",
        description="Chat, PRD, roadmap, task and checklist generation",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.allowed_origin],
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )
    install_error_handlers(app)
    app.state.rate_limiter = limiter

    @app.post("/v1/generate")
    async def generate(request: Request) -> dict:
        declared = request.headers.get("content-length")
        if declared is not None:
            try:
                declared_size = int(declared)
            except ValueError:
                raise ValidationFailed("Invalid Content-Length header") from None
            if declared_size > settings.max_body_bytes:
                raise PayloadTooLarge()

        body = await request.body()
        if len(body) > settings.max_body_bytes:
            raise PayloadTooLarge()

        try:
            payload = json.loads(body)
        except ValueError:
            raise ValidationFailed("Invalid JSON body") from None

        generation_request = parse_request(payload)
        user = await run_in_threadpool(authenticate, request)
        limiter.check(user.id)

        logger.info("generation_requested", action=generation_request.action.value, user_id=user.id)
        result = await run_in_threadpool(service.generate, generation_request)
        return {"result": result}

    return app
