"""Prompt input sanitization."""

from __future__ import annotations

from typing import Any

__all__ = ["MAX_INPUT_CHARS", "sanitize_text"]

MAX_INPUT_CHARS = 10_000
_STRIP = str.maketrans("", "", "<>\"'&")


def sanitize_text(value: Any, limit: int = MAX_INPUT_CHARS) -> str:
    """Remove markup-significant characters and cap the length.

    Non-string values are stringified first; ``None`` becomes ``""``.
    """

    if value is None:
        return ""
    text = value if isinstance(value, str) else str(value)
    return text.translate(_STRIP)[:limit]
