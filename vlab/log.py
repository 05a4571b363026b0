"""structlog setup shared by the ``vlab`` CLI and the served application."""

from __future__ import annotations

import logging
import os
import sys
import time
import uuid
from typing import Awaitable, Callable, Optional

import structlog
from starlette.requests import Request
from starlette.responses import Response

__all__ = ["LOG_FORMATS", "REQUEST_ID_HEADER", "configure_logging", "log_requests"]

LOG_FORMATS = ("kv", "json")
REQUEST_ID_HEADER = "X-Request-ID"

# uvicorn's own access lines duplicate ``request_completed``
_QUIETED_LOGGERS = ("uvicorn.access",)

_configured: Optional[tuple[str, str]] = None

logger = structlog.get_logger(__name__)


def _renderer(log_format: str):
    if log_format == "json":
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.processors.KeyValueRenderer(
        key_order=["timestamp", "level", "logger", "event", "request_id"],
        sort_keys=True,
        drop_missing=True,
    )


def configure_logging(
    level_name: Optional[str] = None,
    *,
    log_format: Optional[str] = None,
    force: bool = False,
) -> str:
    """Route structlog and stdlib logging through one stderr handler.

    Falls back to ``LOG_LEVEL`` and ``VLAB_LOG_FORMAT``. Repeated calls with
    the same settings are no-ops unless ``force`` is set. Returns the
    resolved level name.
    """

    global _configured

    level_name = (level_name or os.getenv("LOG_LEVEL") or "INFO").upper()
    log_format = (log_format or os.getenv("VLAB_LOG_FORMAT") or "kv").lower()
    if log_format not in LOG_FORMATS:
        raise ValueError(f"Unknown log format {log_format!r}; expected one of {', '.join(LOG_FORMATS)}")
    if _configured == (level_name, log_format) and not force:
        return level_name

    level_value = getattr(logging, level_name, logging.INFO)
    timestamper = structlog.processors.TimeStamper(fmt="iso", key="timestamp")
    shared = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        timestamper,
    ]

    structlog.configure(
        processors=[
            *shared,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=_renderer(log_format), foreign_pre_chain=shared)
    )
    handler.setLevel(level_value)
    logging.basicConfig(level=level_value, handlers=[handler], force=True)

    for name in _QUIETED_LOGGERS:
        logging.getLogger(name).setLevel(max(level_value, logging.WARNING))

    _configured = (level_name, log_format)
    return level_name


async def log_requests(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """HTTP middleware: bind a request id for every log line of the request."""

    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id, method=request.method, path=request.url.path
    )
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = round((time.perf_counter() - started) * 1000, 1)
    response.headers[REQUEST_ID_HEADER] = request_id
    logger.info("request_completed", status_code=response.status_code, duration_ms=duration_ms)
    structlog.contextvars.clear_contextvars()
    return response
