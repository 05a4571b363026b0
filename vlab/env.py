"""Environment loading shared by every VLab entry point."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Iterator, Union

from dotenv import find_dotenv, load_dotenv

PathLike = Union[str, Path]
_LOADED = False

_TRUTHY = {"1", "true", "yes", "on"}


def _candidate_files(extra_paths: Iterable[PathLike] | None) -> Iterator[Path]:
    for raw_path in extra_paths or ():
        yield Path(raw_path).expanduser()
    found = find_dotenv(usecwd=True)
    if found:
        yield Path(found)
    # repository root, next to pyproject.toml
    yield Path(__file__).resolve().parent.parent / ".env"


def load_env(*, override: bool = False, extra_paths: Iterable[PathLike] | None = None) -> bool:
    """Load variables from `.env` files, once per process.

    Explicit ``extra_paths`` are loaded first, then the nearest `.env` found
    from the working directory, then the repository `.env`. A file is read at
    most once per call.

    Returns:
        ``True`` if any environment file was loaded.
    """

    global _LOADED

    if _LOADED and not override and extra_paths is None:
        return True

    seen: set[Path] = set()
    loaded_any = False
    for path in _candidate_files(extra_paths):
        if not path.exists():
            continue
        resolved = path.resolve()
        if resolved in seen:
            continue
        seen.add(resolved)
        loaded_any = load_dotenv(resolved, override=override) or loaded_any

    if not override:
        _LOADED = True
    return loaded_any


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean environment variable (``1``/``true``/``yes``/``on``)."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUTHY


def env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


def env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return float(value)
