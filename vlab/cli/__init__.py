"""Command-line interface for the VLab backend."""

from .runner import build_parser, main

__all__ = ["build_parser", "main"]
