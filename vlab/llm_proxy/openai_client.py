"""Upstream chat-completion client."""

from __future__ import annotations

from typing import Any, Optional, Protocol

import structlog

from ..errors import UpstreamError

__all__ = ["CompletionClient", "LangChainOpenAIClient", "GENERATION_FAILED"]

logger = structlog.get_logger(__name__)

GENERATION_FAILED = "Failed to generate content"


class CompletionClient(Protocol):
    def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> str: ...


def _to_langchain(messages: list[dict[str, Any]]):
    from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

    converted = []
    for message in messages:
        role = message["role"]
        if role == "system":
            converted.append(SystemMessage(content=message["content"]))
        elif role == "assistant":
            converted.append(AIMessage(content=message["content"]))
        else:
            converted.append(HumanMessage(content=message["content"]))
    return converted


class LangChainOpenAIClient:
    """OpenAI Chat Completions through ``langchain-openai``."""

    def __init__(self, api_key: str, *, timeout: float = 60.0, base_url: Optional[str] = None):
        self.api_key = api_key
        self.timeout = timeout
        self.base_url = base_url

    def _create_llm(self, model: str, max_tokens: int, temperature: float):
        try:
            from langchain_openai import ChatOpenAI
        except ImportError as exc:  # pragma: no cover - dependency declared in pyproject
            raise RuntimeError(
                "The OpenAI backend requires `langchain-openai`. Install it with `pip install langchain-openai`."
            ) from exc

        return ChatOpenAI(
            model=model,
            api_key=self.api_key,
            base_url=self.base_url,
            max_tokens=max_tokens,
            temperature=temperature,
            timeout=self.timeout,
            max_retries=1,
            streaming=False,
        )

    def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        llm = self._create_llm(model, max_tokens, temperature)
        try:
            response = llm.invoke(_to_langchain(messages))
        except Exception as exc:
            logger.error(
                "openai_completion_failed",
                model=model,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise UpstreamError(GENERATION_FAILED) from exc

        content = response.content
        if isinstance(content, list):
            content = "".join(
                part.get("text", "") if isinstance(part, dict) else str(part) for part in content
            )
        logger.info("openai_completion", model=model, chars=len(content or ""))
        return content or ""
