"""CLI tests for store maintenance commands."""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from projectfs.cli import app

runner = CliRunner()


def test_store_migrate_creates_database(tmp_path: Path) -> None:
    db_path = tmp_path / "store" / "custom.db"
    result = runner.invoke(app, ["store", "migrate", "--db-path", str(db_path)])

    assert result.exit_code == 0
    assert "0001_init" in result.stdout
    assert db_path.exists()


def test_store_migrate_is_idempotent(tmp_path: Path) -> None:
    db_path = tmp_path / "projectfs.db"
    runner.invoke(app, ["store", "migrate", "--db-path", str(db_path)])

    result = runner.invoke(app, ["store", "migrate", "--db-path", str(db_path)])

    assert result.exit_code == 0
    assert "is up to date" in result.stdout
