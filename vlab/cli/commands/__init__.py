"""Command registrations for the vlab CLI."""

from __future__ import annotations

from argparse import _SubParsersAction

from . import constraints, migrate, serve

__all__ = ["register"]


def register(subparsers: _SubParsersAction) -> None:
    """Register all CLI commands with *subparsers*."""

    serve.register(subparsers)
    constraints.register(subparsers)
    migrate.register(subparsers)
