"""Project workspaces: models, typed helpers and the HTTP API."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    # Models
    "Profile",
    "Project",
    "PRD",
    "RoadmapItem",
    "Task",
    "ScratchpadNote",
    "Prompt",
    "Secret",
    "DeploymentItem",
    # Service
    "DEFAULT_WORKSPACE_LAYOUT",
    "WorkspaceService",
    "WorkspaceSettings",
    "upsert_profile",
    # API
    "create_app",
]

_MODELS = {
    "Profile", "Project", "PRD", "RoadmapItem", "Task",
    "ScratchpadNote", "Prompt", "Secret", "DeploymentItem",
}
_SERVICE = {"DEFAULT_WORKSPACE_LAYOUT", "WorkspaceService", "WorkspaceSettings", "upsert_profile"}


def __getattr__(name: str) -> Any:  # pragma: no cover - thin import shim
    if name in _MODELS:
        module = import_module(".models", __name__)
    elif name in _SERVICE:
        module = import_module(".service", __name__)
    elif name == "create_app":
        module = import_module(".api", __name__)
    else:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    value = getattr(module, name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:  # pragma: no cover - introspection helper
    return sorted(__all__ + ["schema", "migrations"])
