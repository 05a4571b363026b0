"""Declarative base, engine and session helpers shared by all VLab models."""

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from .session import Database, init_engine, normalize_database_url

__all__ = [
    "Base",
    "Database",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "init_engine",
    "normalize_database_url",
]
