"""VLab backend: LLM generation proxy, community forum and project workspace.

Environment variables are loaded from ``.env`` files on first import so that
every ``Settings.from_env()`` call sees the same configuration.
"""

from __future__ import annotations

from .env import load_env

load_env()

__all__ = ["load_env"]
