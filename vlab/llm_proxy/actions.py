"""Action allow-list and request validation for the generation proxy."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from ..errors import ValidationFailed
from ..workspace.schema.enums import DeploymentPlatform

__all__ = ["Action", "GenerationRequest", "STRUCTURED_ACTIONS", "parse_request"]


class Action(str, Enum):
    CHAT = "chat"
    SUMMARY = "summary"
    PRD = "prd"
    ROADMAP = "roadmap"
    TASKS = "tasks"
    DESIGN_TASKS = "design_tasks"
    DESIGN_TASKS_IMAGE = "design_tasks_image"
    DEPLOYMENT_CHECKLIST = "deployment_checklist"


_ACTION_VALUES = frozenset(action.value for action in Action)

STRUCTURED_ACTIONS = frozenset(
    {
        Action.ROADMAP,
        Action.TASKS,
        Action.DESIGN_TASKS,
        Action.DESIGN_TASKS_IMAGE,
        Action.DEPLOYMENT_CHECKLIST,
    }
)

_MESSAGE_ROLES = frozenset({"user", "assistant"})


@dataclass(frozen=True)
class GenerationRequest:
    """A validated proxy request. Text fields are still unsanitized."""

    action: Action
    messages: list[dict[str, str]] = field(default_factory=list)
    idea_summary: Optional[str] = None
    prd_content: Optional[str] = None
    roadmap_items: list[dict[str, Any]] = field(default_factory=list)
    feedback_text: Optional[str] = None
    image_data: Optional[str] = None
    mime_type: Optional[str] = None
    platforms: list[str] = field(default_factory=list)

    @property
    def structured(self) -> bool:
        return self.action in STRUCTURED_ACTIONS

    def single_platform(self) -> Optional[str]:
        """Return the requested platform when exactly one valid one was named."""

        valid = [p for p in self.platforms if p in DeploymentPlatform.values()]
        if len(set(valid)) == 1:
            return valid[0]
        return None


def _non_empty_str(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailed(f"Missing required field: {key}")
    return value


def _messages(payload: Mapping[str, Any]) -> list[dict[str, str]]:
    raw = payload.get("messages")
    if not isinstance(raw, list) or not raw:
        raise ValidationFailed("Missing required field: messages")
    messages = []
    for message in raw:
        if not isinstance(message, dict) or not isinstance(message.get("content"), str):
            raise ValidationFailed("Invalid message format")
        role = message.get("role", "user")
        if role not in _MESSAGE_ROLES:
            raise ValidationFailed("Invalid message role")
        messages.append({"role": role, "content": message["content"]})
    return messages


def _roadmap_items(payload: Mapping[str, Any], *, required: bool) -> list[dict[str, Any]]:
    raw = payload.get("roadmapItems")
    if raw is None and not required:
        return []
    if not isinstance(raw, list):
        raise ValidationFailed("Missing required field: roadmapItems")
    return [item for item in raw if isinstance(item, dict)]


def _image(payload: Mapping[str, Any]) -> tuple[str, str]:
    data = _non_empty_str(payload, "imageData")
    mime_type = _non_empty_str(payload, "mimeType")
    if not mime_type.startswith("image/"):
        raise ValidationFailed("mimeType must be an image type")
    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationFailed("imageData must be base64 encoded") from None
    return data, mime_type


def parse_request(payload: Any) -> GenerationRequest:
    """Validate a decoded JSON body. Raises ``ValidationFailed`` on any problem."""

    if not isinstance(payload, dict):
        raise ValidationFailed("Request body must be a JSON object")
    action_value = payload.get("action")
    if not isinstance(action_value, str) or action_value not in _ACTION_VALUES:
        raise ValidationFailed("Invalid action")
    action = Action(action_value)

    if action in (Action.CHAT, Action.SUMMARY):
        return GenerationRequest(action, messages=_messages(payload))
    if action is Action.PRD:
        return GenerationRequest(action, idea_summary=_non_empty_str(payload, "ideaSummary"))
    if action is Action.ROADMAP:
        return GenerationRequest(action, prd_content=_non_empty_str(payload, "prdContent"))
    if action is Action.TASKS:
        return GenerationRequest(
            action,
            prd_content=_non_empty_str(payload, "prdContent"),
            roadmap_items=_roadmap_items(payload, required=True),
        )
    if action is Action.DESIGN_TASKS:
        return GenerationRequest(action, feedback_text=_non_empty_str(payload, "feedbackText"))
    if action is Action.DESIGN_TASKS_IMAGE:
        image_data, mime_type = _image(payload)
        return GenerationRequest(action, image_data=image_data, mime_type=mime_type)

    platforms = payload.get("platforms")
    if not isinstance(platforms, list) or not platforms:
        raise ValidationFailed("Missing required field: platforms")
    prd_content = payload.get("prdContent")
    return GenerationRequest(
        action,
        platforms=[p for p in platforms if isinstance(p, str)],
        prd_content=prd_content if isinstance(prd_content, str) else None,
        roadmap_items=_roadmap_items(payload, required=False),
    )
