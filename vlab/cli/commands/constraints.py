"""Render CHECK constraint SQL for the enum-backed columns."""

from __future__ import annotations

from argparse import Namespace, _SubParsersAction
from pathlib import Path

from ...workspace.schema.enums import render_constraints_sql
from ..config import RuntimeConfig

__all__ = ["MARKER", "register", "run", "update_file"]

MARKER = "vlab-constraints"


def update_file(path: Path, marker: str, replacement: str) -> None:
    """Replace the block between ``-- <marker:start>`` and ``-- <marker:end>``."""

    start_token = f"-- <{marker}:start>"
    end_token = f"-- <{marker}:end>"

    text = path.read_text(encoding="utf-8")
    if start_token not in text or end_token not in text:
        raise SystemExit(
            f"Unable to locate markers {start_token!r} and {end_token!r} in {path}"
        )

    before, _, remainder = text.partition(start_token)
    _, _, after = remainder.partition(end_token)

    path.write_text(f"{before}{start_token}\n{replacement}\n{end_token}{after}", encoding="utf-8")


def register(subparsers: _SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "render-constraints", help="Print or splice enum CHECK constraint SQL"
    )
    parser.add_argument(
        "--update",
        type=Path,
        help=(
            "SQL file whose block between "
            f"-- <{MARKER}:start> and -- <{MARKER}:end> should be replaced"
        ),
    )
    parser.set_defaults(handler=run)


def run(args: Namespace, config: RuntimeConfig) -> None:
    sql = "-- Generated via `vlab render-constraints`; do not edit manually.\n" + render_constraints_sql()
    if getattr(args, "update", None) is None:
        print(sql)
    else:
        update_file(args.update, MARKER, sql)
