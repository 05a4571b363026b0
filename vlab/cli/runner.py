"""Command-line entry point for the VLab backend."""

from __future__ import annotations

import argparse
import os
from typing import Callable, List, Optional

from ..log import LOG_FORMATS, configure_logging
from . import commands
from .config import RuntimeConfig, bootstrap, build_runtime_config

CommandHandler = Callable[[argparse.Namespace, RuntimeConfig], None]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vlab",
        description="Serve and maintain the VLab backend.",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (CRITICAL, ERROR, WARNING, INFO, DEBUG). Default: INFO",
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=os.getenv("VLAB_LOG_FORMAT", "kv"),
        help="Log line format for the CLI and the served app. Default: kv",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    commands.register(subparsers)
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    bootstrap()
    parser = build_parser()
    args = parser.parse_args(argv)

    level_name = configure_logging(args.log_level, log_format=args.log_format)
    handler: CommandHandler = args.handler
    handler(args, build_runtime_config(log_level=level_name, log_format=args.log_format))


if __name__ == "__main__":  # pragma: no cover
    main()
