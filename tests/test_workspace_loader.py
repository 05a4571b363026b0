from __future__ import annotations

import threading
import time
import uuid

import pytest
import requests

from vlab.client.loader import (
    FETCHES,
    WorkspaceData,
    WorkspaceLoader,
    WorkspaceLoadError,
    classify_load_error,
)
from vlab.errors import AuthenticationFailed

PROJECT_ID = uuid.uuid4()


class FakeModuleBackend:
    """Every fetch returns one marker item unless told to fail or block."""

    def __init__(self) -> None:
        self.failures: dict[str, Exception] = {}
        self.blocked: set[str] = set()
        self.release = threading.Event()
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def __getattr__(self, method: str):
        if not method.startswith("get_"):
            raise AttributeError(method)

        def _fetch(project_id, user_id):
            with self._lock:
                self.calls.append(method)
            if method in self.blocked:
                self.release.wait(timeout=5)
            if method in self.failures:
                raise self.failures[method]
            return [f"{method}:{project_id}"]

        return _fetch


@pytest.fixture()
def backend():
    backend = FakeModuleBackend()
    yield backend
    backend.release.set()


def test_load_fetches_all_seven_modules(backend) -> None:
    loader = WorkspaceLoader(backend, uuid.uuid4())

    data = loader.load(PROJECT_ID)

    assert isinstance(data, WorkspaceData)
    assert sorted(backend.calls) == sorted(method for _, method in FETCHES)
    assert data.deployment_items == [f"get_deployment_items:{PROJECT_ID}"]
    assert loader.data is data
    assert loader.loading is False
    assert loader.error is None


def test_one_failure_fails_the_whole_load(backend) -> None:
    backend.failures["get_prompts"] = RuntimeError("relation prompts does not exist")
    loader = WorkspaceLoader(backend, uuid.uuid4())

    with pytest.raises(WorkspaceLoadError) as excinfo:
        loader.load(PROJECT_ID)

    assert excinfo.value.kind == "other"
    assert excinfo.value.message == "relation prompts does not exist"
    assert loader.error is excinfo.value
    assert loader.retry_count == 1
    assert loader.data is None


def test_failure_is_reported_without_waiting_for_slow_fetches(backend) -> None:
    backend.blocked.add("get_prds")
    backend.failures["get_deployment_items"] = RuntimeError("permission denied for table deployment_items")
    loader = WorkspaceLoader(backend, uuid.uuid4(), timeout=5)

    started = time.monotonic()
    with pytest.raises(WorkspaceLoadError) as excinfo:
        loader.load(PROJECT_ID)

    assert time.monotonic() - started < 2
    assert excinfo.value.kind == "other"
    assert excinfo.value.message == "permission denied for table deployment_items"


def test_slow_fetch_times_out(backend) -> None:
    backend.blocked.add("get_secrets")
    loader = WorkspaceLoader(backend, uuid.uuid4(), timeout=0.2)

    with pytest.raises(WorkspaceLoadError) as excinfo:
        loader.load(PROJECT_ID)

    assert excinfo.value.kind == "timeout"
    assert excinfo.value.message.startswith("Database operation timed out: secrets fetch timed out")
    assert loader.loading is False


def test_retries_are_capped_and_reset_on_success(backend) -> None:
    backend.failures["get_tasks"] = requests.ConnectionError("connection refused")
    loader = WorkspaceLoader(backend, uuid.uuid4(), max_retries=3)

    for _ in range(3):
        with pytest.raises(WorkspaceLoadError) as excinfo:
            loader.load(PROJECT_ID)
        assert excinfo.value.kind == "network"

    assert loader.retry_count == 3
    assert loader.can_retry is False
    calls_before = len(backend.calls)
    assert loader.retry(PROJECT_ID) is None
    assert len(backend.calls) == calls_before

    del backend.failures["get_tasks"]
    assert loader.load(PROJECT_ID) is not None
    assert loader.retry_count == 0
    assert loader.can_retry is True


def test_auth_failures_do_not_count_as_retries(backend) -> None:
    backend.failures["get_prds"] = AuthenticationFailed("JWT expired")
    loader = WorkspaceLoader(backend, uuid.uuid4())

    with pytest.raises(WorkspaceLoadError) as excinfo:
        loader.load(PROJECT_ID)

    assert excinfo.value.kind == "auth"
    assert excinfo.value.message == "Authentication error. Please try signing in again."
    assert loader.retry_count == 0


def test_load_while_loading_is_ignored(backend) -> None:
    loader = WorkspaceLoader(backend, uuid.uuid4())
    loader.loading = True

    assert loader.load(PROJECT_ID) is None
    assert backend.calls == []


@pytest.mark.parametrize(
    "exc, kind",
    [
        (TimeoutError("query timed out"), "timeout"),
        (ConnectionError("network unreachable"), "network"),
        (RuntimeError("TypeError: Failed to fetch"), "network"),
        (PermissionError("Not the project owner"), "auth"),
        (RuntimeError("invalid JWT signature"), "auth"),
        (RuntimeError(""), "other"),
    ],
)
def test_classify_load_error(exc, kind) -> None:
    error = classify_load_error(exc)

    assert error.kind == kind
    if kind == "other":
        assert error.message == "Failed to load workspace data"
