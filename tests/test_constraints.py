from __future__ import annotations

from pathlib import Path

import pytest

from vlab.cli.commands.constraints import MARKER, update_file
from vlab.cli.commands.migrate import MIGRATIONS_DIR
from vlab.cli.runner import build_parser
from vlab.db import Base
from vlab.workspace.schema.enums import (
    CONSTRAINT_DEFINITION_BY_NAME,
    CONSTRAINT_DEFINITIONS,
    DeploymentCategory,
    DeploymentPlatform,
    TaskPriority,
    render_check_constraint_sql,
    render_constraints_sql,
)


def test_render_check_constraint_sql() -> None:
    sql = render_check_constraint_sql("tasks", "priority", TaskPriority)

    assert sql == (
        "ALTER TABLE tasks DROP CONSTRAINT IF EXISTS tasks_priority_check;\n"
        "ALTER TABLE tasks ADD CONSTRAINT tasks_priority_check\n"
        "  CHECK (priority IN ('low', 'medium', 'high', 'urgent'));"
    )


def test_orm_constraints_match_rendered_definitions() -> None:
    orm_checks = {
        constraint.name
        for table in Base.metadata.tables.values()
        for constraint in table.constraints
        if constraint.name and constraint.name.endswith("_check")
    }

    assert set(CONSTRAINT_DEFINITION_BY_NAME) <= orm_checks
    rendered = render_constraints_sql()
    for definition in CONSTRAINT_DEFINITIONS:
        assert definition.render_sql() in rendered


@pytest.mark.parametrize(
    "filename, column, enum_cls",
    [
        ("001_add_performance_category.sql", "category", DeploymentCategory),
        ("002_add_universal_platform.sql", "platform", DeploymentPlatform),
    ],
)
def test_migrations_match_enums(filename, column, enum_cls) -> None:
    text = (MIGRATIONS_DIR / filename).read_text(encoding="utf-8")

    assert render_check_constraint_sql("deployment_items", column, enum_cls) in text


def test_update_file_replaces_marked_block(tmp_path: Path) -> None:
    target = tmp_path / "schema.sql"
    target.write_text(
        f"CREATE TABLE x ();\n-- <{MARKER}:start>\nstale\n-- <{MARKER}:end>\nCOMMIT;\n",
        encoding="utf-8",
    )

    update_file(target, MARKER, "fresh")

    assert target.read_text(encoding="utf-8") == (
        f"CREATE TABLE x ();\n-- <{MARKER}:start>\nfresh\n-- <{MARKER}:end>\nCOMMIT;\n"
    )


def test_update_file_requires_markers(tmp_path: Path) -> None:
    target = tmp_path / "schema.sql"
    target.write_text("SELECT 1;\n", encoding="utf-8")

    with pytest.raises(SystemExit):
        update_file(target, MARKER, "fresh")


def test_render_constraints_command_prints_sql(capsys) -> None:
    args = build_parser().parse_args(["render-constraints"])

    args.handler(args, None)

    out = capsys.readouterr().out
    assert "deployment_items_platform_check" in out
    assert "community_post_votes_vote_type_check" in out


def test_serve_command_defaults() -> None:
    args = build_parser().parse_args(["--log-level", "debug", "serve", "--port", "9000"])

    assert args.command == "serve"
    assert (args.host, args.port, args.reload) == ("127.0.0.1", 9000, False)
    assert args.log_level == "debug"
