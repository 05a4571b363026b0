"""Apply the bundled SQL migrations."""

from __future__ import annotations

from argparse import Namespace, _SubParsersAction
from pathlib import Path
from typing import Optional

import structlog
from sqlalchemy import text
from sqlalchemy.engine import Engine

from ...db import init_engine
from ...workspace.service import WorkspaceSettings
from ..config import RuntimeConfig

__all__ = ["MIGRATIONS_DIR", "apply_migrations", "register", "run"]

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "workspace" / "migrations"


def apply_migrations(engine: Engine, migrations_dir: Optional[Path] = None) -> list[str]:
    """Run every ``*.sql`` file in name order inside one transaction."""

    migration_files = sorted((migrations_dir or MIGRATIONS_DIR).glob("*.sql"))
    applied: list[str] = []
    with engine.begin() as conn:
        for migration_file in migration_files:
            conn.execute(text(migration_file.read_text(encoding="utf-8")))
            logger.info("migration_applied", name=migration_file.name)
            applied.append(migration_file.name)
    return applied


def register(subparsers: _SubParsersAction) -> None:
    parser = subparsers.add_parser("migrate", help="Apply SQL migrations to the database")
    parser.add_argument(
        "--database-url",
        dest="database_url",
        help="Override VLAB_DATABASE_URL / DATABASE_URL",
    )
    parser.set_defaults(handler=run)


def run(args: Namespace, config: RuntimeConfig) -> None:
    database_url = getattr(args, "database_url", None) or WorkspaceSettings.from_env().database_url
    applied = apply_migrations(init_engine(database_url))
    if not applied:
        logger.info("no_migrations_found", directory=str(MIGRATIONS_DIR))
