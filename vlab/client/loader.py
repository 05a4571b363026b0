"""Concurrent loading of every module record of one project.

All seven fetches start together and are joined; each one gets the same
deadline measured from the start of the join. The first failure or
timeout fails the whole load with a single :class:`WorkspaceLoadError`.
"""

from __future__ import annotations

import time
import uuid
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import requests
import structlog
from sqlalchemy.exc import OperationalError

from ..errors import AuthenticationFailed

__all__ = ["WorkspaceData", "WorkspaceLoadError", "WorkspaceLoader", "classify_load_error"]

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_RETRIES = 3

# attribute on WorkspaceData -> backend method
FETCHES = (
    ("prds", "get_prds"),
    ("roadmap_items", "get_roadmap_items"),
    ("tasks", "get_tasks"),
    ("scratchpad_notes", "get_scratchpad_notes"),
    ("prompts", "get_prompts"),
    ("secrets", "get_secrets"),
    ("deployment_items", "get_deployment_items"),
)


@dataclass
class WorkspaceData:
    prds: list[Any] = field(default_factory=list)
    roadmap_items: list[Any] = field(default_factory=list)
    tasks: list[Any] = field(default_factory=list)
    scratchpad_notes: list[Any] = field(default_factory=list)
    prompts: list[Any] = field(default_factory=list)
    secrets: list[Any] = field(default_factory=list)
    deployment_items: list[Any] = field(default_factory=list)


class WorkspaceLoadError(Exception):
    """A failed workspace load. ``kind`` is timeout, network, auth or other."""

    def __init__(self, message: str, *, kind: str = "other") -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind


class _FetchTimedOut(Exception):
    def __init__(self, label: str, timeout: float) -> None:
        super().__init__(f"{label} fetch timed out after {timeout:g} seconds")
        self.label = label


def classify_load_error(exc: BaseException) -> WorkspaceLoadError:
    """Turn a fetch failure into the message shown next to the retry button."""

    if isinstance(exc, WorkspaceLoadError):
        return exc
    message = str(exc)
    lowered = message.lower()
    if isinstance(exc, _FetchTimedOut) or "timed out" in lowered:
        return WorkspaceLoadError(
            f"Database operation timed out: {message}. "
            "This might indicate a slow connection or server issues.",
            kind="timeout",
        )
    if isinstance(exc, (requests.ConnectionError, ConnectionError, OperationalError)) or (
        "network" in lowered or "fetch" in lowered
    ):
        return WorkspaceLoadError(
            "Unable to connect to the database. Please check your internet connection.",
            kind="network",
        )
    if isinstance(exc, (AuthenticationFailed, PermissionError)) or "jwt" in lowered or "auth" in lowered:
        return WorkspaceLoadError(
            "Authentication error. Please try signing in again.", kind="auth"
        )
    return WorkspaceLoadError(
        getattr(exc, "message", None) or message or "Failed to load workspace data"
    )


class WorkspaceLoader:
    """Loads a project's module records and tracks retry state.

    ``retry_count`` grows with every failure that is not an auth failure
    and is reset by a successful load. :meth:`retry` is refused once it
    reaches ``max_retries``.
    """

    def __init__(
        self,
        backend: Any,
        user_id: uuid.UUID,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.backend = backend
        self.user_id = user_id
        self.timeout = timeout
        self.max_retries = max_retries
        self.clock = clock
        self.loading = False
        self.data: Optional[WorkspaceData] = None
        self.error: Optional[WorkspaceLoadError] = None
        self.retry_count = 0

    @property
    def can_retry(self) -> bool:
        return self.retry_count < self.max_retries

    def load(self, project_id: uuid.UUID) -> Optional[WorkspaceData]:
        """Fetch everything for *project_id*.

        Returns ``None`` without fetching when a load is already running.
        """

        if self.loading:
            logger.info("workspace_load_skipped", project_id=str(project_id))
            return None
        self.loading = True
        self.error = None
        started = self.clock()
        try:
            data = self._join(project_id)
        except Exception as exc:
            error = classify_load_error(exc)
            self.error = error
            if error.kind != "auth":
                self.retry_count = min(self.retry_count + 1, self.max_retries)
            logger.warning(
                "workspace_load_failed",
                project_id=str(project_id),
                kind=error.kind,
                retry_count=self.retry_count,
                error=str(exc),
            )
            raise error from exc
        finally:
            self.loading = False

        self.data = data
        self.retry_count = 0
        logger.info(
            "workspace_loaded",
            project_id=str(project_id),
            elapsed=round(self.clock() - started, 3),
        )
        return data

    def retry(self, project_id: uuid.UUID) -> Optional[WorkspaceData]:
        if not self.can_retry:
            logger.info("workspace_retry_refused", project_id=str(project_id), retry_count=self.retry_count)
            return None
        return self.load(project_id)

    def _join(self, project_id: uuid.UUID) -> WorkspaceData:
        executor = ThreadPoolExecutor(max_workers=len(FETCHES), thread_name_prefix="workspace-load")
        try:
            futures: list[tuple[str, Future]] = [
                (attr, executor.submit(getattr(self.backend, method), project_id, self.user_id))
                for attr, method in FETCHES
            ]
            # stops waiting at the first failed fetch
            done, pending = wait(
                [future for _, future in futures], timeout=self.timeout, return_when=FIRST_EXCEPTION
            )
            for _attr, future in futures:
                if future in done and future.exception() is not None:
                    raise future.exception()
            for attr, future in futures:
                if future in pending:
                    raise _FetchTimedOut(attr.replace("_", " "), self.timeout)
            return WorkspaceData(**{attr: list(future.result()) for attr, future in futures})
        finally:
            # a hung fetch must not hold up the caller
            executor.shutdown(wait=False, cancel_futures=True)
