"""LLM generation proxy."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "Action",
    "FieldSpec",
    "GenerationService",
    "ItemSchema",
    "ProxySettings",
    "RateLimiter",
    "create_app",
    "normalize_items",
    "sanitize_text",
]

_LOCATIONS = {
    "Action": ".actions",
    "FieldSpec": ".normalize",
    "ItemSchema": ".normalize",
    "normalize_items": ".normalize",
    "GenerationService": ".service",
    "ProxySettings": ".service",
    "RateLimiter": ".rate_limit",
    "sanitize_text": ".sanitize",
    "create_app": ".api",
}


def __getattr__(name: str) -> Any:  # pragma: no cover - thin import shim
    location = _LOCATIONS.get(name)
    if location is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    value = getattr(import_module(location, __name__), name)
    globals()[name] = value
    return value
