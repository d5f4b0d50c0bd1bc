"""Helpers for resolving project store database paths."""

from __future__ import annotations

import os
from pathlib import Path

__all__ = ["DEFAULT_STORE_PATH", "resolve_store_db_path"]

DEFAULT_STORE_PATH = Path(".cache") / "projectfs.db"


def resolve_store_db_path(db_path: str | Path | None = None) -> str:
    """Resolve the on-disk path for the project store database.

    Args:
        db_path: Optional explicit path or `":memory:"` for in-memory usage.
            When omitted, `PROJECTFS_STORE_PATH` is consulted before the
            `./.cache/projectfs.db` default.

    Returns:
        String path suitable for sqlite3; parent directories are created.
    """

    chosen: str | Path | None = db_path
    env_path = os.getenv("PROJECTFS_STORE_PATH")
    if chosen is None and env_path:
        chosen = env_path
    if chosen is None:
        chosen = DEFAULT_STORE_PATH

    if str(chosen) == ":memory:":
        return ":memory:"

    resolved = Path(chosen).expanduser()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return str(resolved)
