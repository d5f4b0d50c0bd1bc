"""Tests for project store path resolution."""

from pathlib import Path

import pytest

from projectfs.store.paths import resolve_store_db_path


def test_explicit_path_wins(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROJECTFS_STORE_PATH", str(tmp_path / "env.db"))
    target = tmp_path / "explicit" / "store.db"

    assert resolve_store_db_path(target) == str(target)
    assert target.parent.is_dir()


def test_env_var_used_when_no_path(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("PROJECTFS_STORE_PATH", str(tmp_path / "env.db"))
    assert resolve_store_db_path() == str(tmp_path / "env.db")


def test_default_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PROJECTFS_STORE_PATH", raising=False)
    monkeypatch.chdir(tmp_path)

    assert resolve_store_db_path() == str(Path(".cache") / "projectfs.db")
    assert (tmp_path / ".cache").is_dir()


def test_memory(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PROJECTFS_STORE_PATH", raising=False)
    assert resolve_store_db_path(":memory:") == ":memory:"
