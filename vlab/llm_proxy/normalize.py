"""Declarative normalization of structured model output.

Each structured action describes its items as a tuple of :class:`FieldSpec`.
``normalize_items`` parses whatever the model produced, re-validates every
field and fills gaps from the field defaults. Output that cannot be salvaged
is replaced by a copy of the schema's fallback list.
"""

from __future__ import annotations

import copy
import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Collection, Mapping, Optional, Union

import structlog

__all__ = [
    "FieldSpec",
    "ItemSchema",
    "WRAPPER_KEYS",
    "strip_code_fences",
    "normalize_items",
]

logger = structlog.get_logger(__name__)

WRAPPER_KEYS = ("items", "tasks", "roadmap", "checklist")

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")
_URL_RE = re.compile(r"^https?://\S+$", re.IGNORECASE)

_INVALID = object()

DefaultFactory = Callable[[int, Mapping[str, Any]], Any]


def _text(value: Any) -> Any:
    if isinstance(value, str) and value.strip():
        return value
    return _INVALID


def _optional_text(value: Any) -> Any:
    if value is None or isinstance(value, str):
        return value
    return _INVALID


def _boolean(value: Any) -> Any:
    return value if isinstance(value, bool) else _INVALID


def _hours(value: Any) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return _INVALID
    if not math.isfinite(value) or value < 0:
        return _INVALID
    return value


def _string_list(value: Any) -> Any:
    if not isinstance(value, list):
        return _INVALID
    return [item for item in value if isinstance(item, str)]


def _color(value: Any) -> Any:
    if isinstance(value, str) and _COLOR_RE.match(value):
        return value
    return _INVALID


def _links(value: Any) -> Any:
    if not isinstance(value, list):
        return _INVALID
    return [
        {"title": link["title"], "url": link["url"]}
        for link in value
        if isinstance(link, dict)
        and isinstance(link.get("title"), str)
        and isinstance(link.get("url"), str)
        and _URL_RE.match(link["url"])
    ]


KINDS: Mapping[str, Callable[[Any], Any]] = {
    "text": _text,
    "optional_text": _optional_text,
    "bool": _boolean,
    "hours": _hours,
    "string_list": _string_list,
    "color": _color,
    "links": _links,
}


@dataclass(frozen=True)
class FieldSpec:
    """One output field: its type, optional allowed set and default."""

    name: str
    default: Union[Any, DefaultFactory] = None
    allowed: Optional[Collection[str]] = None
    kind: str = "text"

    def __post_init__(self) -> None:
        if self.kind not in KINDS:
            raise ValueError(f"Unknown field kind: {self.kind}")

    def default_for(self, index: int, context: Mapping[str, Any]) -> Any:
        if callable(self.default):
            return self.default(index, context)
        return copy.deepcopy(self.default)

    def coerce(self, raw: Any, index: int, context: Mapping[str, Any]) -> Any:
        value = KINDS[self.kind](raw)
        if value is _INVALID or (self.allowed is not None and value not in self.allowed):
            return self.default_for(index, context)
        return value


@dataclass(frozen=True)
class ItemSchema:
    name: str
    fields: tuple[FieldSpec, ...]
    fallback: tuple[Mapping[str, Any], ...]
    constants: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.fallback:
            raise ValueError(f"{self.name}: fallback list must not be empty")

    def normalize(self, item: Mapping[str, Any], index: int, context: Mapping[str, Any]) -> dict[str, Any]:
        result = {spec.name: spec.coerce(item.get(spec.name), index, context) for spec in self.fields}
        result.update(copy.deepcopy(dict(self.constants)))
        result["position"] = index
        return result

    def fallback_items(self) -> list[dict[str, Any]]:
        items = copy.deepcopy([dict(entry) for entry in self.fallback])
        for index, item in enumerate(items):
            item["position"] = index
        return items


def strip_code_fences(content: str) -> str:
    """Remove markdown code fences (with or without a ``json`` tag)."""

    return _FENCE_RE.sub("", content).strip()


def _unwrap(parsed: Any) -> Optional[list[Any]]:
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        for key in WRAPPER_KEYS:
            if isinstance(parsed.get(key), list):
                return parsed[key]
    return None


def normalize_items(
    content: Optional[str],
    schema: ItemSchema,
    context: Optional[Mapping[str, Any]] = None,
) -> list[dict[str, Any]]:
    """Parse model output into a list of schema-valid items.

    Never raises and never returns an empty list. ``position`` is always the
    item's index in the returned list.
    """

    context = context or {}
    try:
        parsed = json.loads(strip_code_fences(content or ""))
    except (TypeError, ValueError):
        logger.warning("llm_output_unparseable", schema=schema.name)
        return schema.fallback_items()

    raw_items = _unwrap(parsed)
    objects = [item for item in raw_items or () if isinstance(item, dict)]
    if not objects:
        logger.warning(
            "llm_output_fallback",
            schema=schema.name,
            output_type=type(parsed).__name__,
        )
        return schema.fallback_items()

    return [schema.normalize(item, index, context) for index, item in enumerate(objects)]
