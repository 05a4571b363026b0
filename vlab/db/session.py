"""Engine construction and session factory."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .base import Base

__all__ = ["Database", "init_engine", "normalize_database_url"]


def normalize_database_url(database_url: str) -> str:
    """Point bare PostgreSQL URLs at the psycopg (v3) driver."""

    if database_url.startswith("postgres://"):
        return "postgresql+psycopg://" + database_url[len("postgres://") :]
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return database_url


def init_engine(database_url: str, *, create_tables: bool = False) -> Engine:
    """Create an SQLAlchemy engine.

    SQLite URLs (used by tests and local runs) share a single connection
    across threads so that in-memory databases survive between sessions.
    """

    database_url = normalize_database_url(database_url)
    engine_kwargs: dict = {"future": True}
    if database_url.startswith("sqlite"):
        engine_kwargs["poolclass"] = StaticPool
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        engine_kwargs.update(pool_size=10, max_overflow=20)

    engine = create_engine(database_url, pool_pre_ping=True, **engine_kwargs)
    if create_tables:
        Base.metadata.create_all(engine)
    return engine


@dataclass(slots=True)
class Database:
    """Session factory wrapper."""

    engine: Engine
    _session_factory: sessionmaker = field(init=False)

    def __post_init__(self) -> None:
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def session(self) -> Session:
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        session = self.session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_all(self) -> None:
        """Create all tables (development and tests)."""
        Base.metadata.create_all(self.engine)
