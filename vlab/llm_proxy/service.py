"""Generation service: prompt assembly, upstream call and output shaping."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Optional

import structlog

from ..env import env_float, env_int
from ..errors import UpstreamError
from .actions import GenerationRequest
from .item_schemas import SCHEMA_BY_ACTION
from .normalize import normalize_items
from .openai_client import GENERATION_FAILED, CompletionClient
from .prompts import EMPTY_TEXT_FALLBACK, build_prompt

__all__ = ["MAX_BODY_BYTES", "ProxySettings", "GenerationService"]

logger = structlog.get_logger(__name__)

MAX_BODY_BYTES = 5 * 1024 * 1024


@dataclass(slots=True)
class ProxySettings:
    """Generation proxy settings."""

    openai_api_key: str
    model: str = "gpt-4o-mini"
    vision_model: str = "gpt-4o-mini"
    openai_base_url: Optional[str] = None
    allowed_origin: str = "*"
    rate_limit_requests: int = 20
    rate_limit_window_seconds: int = 60
    rate_limit_storage_uri: str = "memory://"
    llm_timeout_seconds: float = 60.0
    max_body_bytes: int = MAX_BODY_BYTES

    @classmethod
    def from_env(cls) -> ProxySettings:
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("OpenAI API key required: set OPENAI_API_KEY")
        return cls(
            openai_api_key=api_key,
            model=os.getenv("VLAB_OPENAI_MODEL", "gpt-4o-mini"),
            vision_model=os.getenv("VLAB_OPENAI_VISION_MODEL", "gpt-4o-mini"),
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            allowed_origin=os.getenv("VLAB_ALLOWED_ORIGIN", "*"),
            rate_limit_requests=env_int("VLAB_RATE_LIMIT_REQUESTS", 20),
            rate_limit_window_seconds=env_int("VLAB_RATE_LIMIT_WINDOW_SECONDS", 60),
            rate_limit_storage_uri=os.getenv("VLAB_RATE_LIMIT_STORAGE_URI", "memory://"),
            llm_timeout_seconds=env_float("VLAB_LLM_TIMEOUT_SECONDS", 60.0),
        )


class GenerationService:
    def __init__(self, settings: ProxySettings, client: CompletionClient):
        self.settings = settings
        self.client = client

    def generate(self, request: GenerationRequest) -> Any:
        """Run one validated request and return the ``result`` payload."""

        plan = build_prompt(request)
        model = self.settings.vision_model if plan.vision else self.settings.model
        try:
            content = self.client.complete(
                plan.messages,
                model=model,
                max_tokens=plan.max_tokens,
                temperature=plan.temperature,
            )
        except UpstreamError:
            raise
        except Exception as exc:
            logger.error(
                "generation_failed",
                action=request.action.value,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise UpstreamError(GENERATION_FAILED) from exc

        if request.structured:
            context = {"platform": request.single_platform()}
            items = normalize_items(content, SCHEMA_BY_ACTION[request.action], context)
            logger.info("generation_complete", action=request.action.value, items=len(items))
            return items

        text = (content or "").strip()
        logger.info("generation_complete", action=request.action.value, chars=len(text))
        return text or EMPTY_TEXT_FALLBACK[request.action]
