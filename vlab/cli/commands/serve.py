"""HTTP server command."""

from __future__ import annotations

from argparse import Namespace, _SubParsersAction

import structlog
import uvicorn

from ..config import RuntimeConfig

__all__ = ["register", "run"]

logger = structlog.get_logger(__name__)


def register(subparsers: _SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "serve", help="Run the workspace, community and generation APIs"
    )
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind (default: 8000)")
    parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )
    parser.set_defaults(handler=run)


def run(args: Namespace, config: RuntimeConfig) -> None:
    host = getattr(args, "host", "127.0.0.1")
    port = int(getattr(args, "port", 8000))
    # read back by the app factory, reload workers included
    config.export()
    logger.info("server_starting", host=host, port=port, docs=f"http://{host}:{port}/workspace/docs")
    uvicorn.run(
        "vlab.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=bool(getattr(args, "reload", False)),
        log_level=config.log_level.lower(),
        log_config=None,
    )
