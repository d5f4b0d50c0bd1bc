"""SQLite-backed project store with schema migrations.

Projects are persisted whole: each row holds the serialize() blob plus a
few denormalized columns (name, timestamps, file count) so listing never
has to deserialize a project.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from projectfs.core.models import (
    FileNode,
    Project,
    duplicate_project,
    new_project,
    utc_now,
)
from projectfs.core.serialization import deserialize, serialize
from projectfs.store.migrations import ensure_connection_migrated
from projectfs.store.paths import resolve_store_db_path

LAST_PROJECT_KEY = "last_project_id"


@dataclass(frozen=True)
class ProjectSummary:
    """Listing row for a stored project."""

    id: str
    name: str
    description: str | None
    file_count: int
    created_at: datetime
    updated_at: datetime
    last_opened_at: datetime | None


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat(timespec="microseconds")


class ProjectStore:
    """Async SQLite store for projects."""

    def __init__(self, db_path: str | Path | None = None, logger: Any = None) -> None:
        """Initialize the project store.

        Args:
            db_path: Path to SQLite database file (":memory:" for in-memory). When
                omitted, resolves to `PROJECTFS_STORE_PATH` or `./.cache/projectfs.db`.
            logger: Optional structlog logger instance
        """

        self._db_path = resolve_store_db_path(db_path)
        self._db: aiosqlite.Connection | None = None
        self._logger = logger or structlog.get_logger()

    @property
    def db_path(self) -> str:
        return self._db_path

    async def _get_connection(self) -> aiosqlite.Connection:
        if self._db is None:
            self._db = await aiosqlite.connect(self._db_path)
            await ensure_connection_migrated(self._db)
        return self._db

    async def create_project(self, name: str, description: str | None = None) -> Project:
        """Create, persist and select a new empty project."""

        project = new_project(name, description)
        await self.save_project(project)
        await self._set_last_project_id(project.id)
        self._logger.info("store.create", project_id=project.id, name=name)
        return project

    async def save_project(self, project: Project) -> None:
        """Insert or replace the stored copy of a project."""

        db = await self._get_connection()
        file_count = sum(1 for n in project.nodes.values() if isinstance(n, FileNode))
        await db.execute(
            """
            INSERT OR REPLACE INTO projects
            (id, name, description, data, file_count,
             created_at, updated_at, last_opened_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                project.id,
                project.name,
                project.description,
                serialize(project),
                file_count,
                _iso(project.created_at),
                _iso(project.updated_at),
                _iso(project.last_opened_at),
            ),
        )
        await db.commit()
        self._logger.debug("store.save", project_id=project.id, files=file_count)

    async def load_project(self, project_id: str) -> Project | None:
        """Load a project and mark it as the most recently opened.

        Returns:
            The project, or None if no project has that id

        Raises:
            ProjectCorrupted: If the stored blob fails validation
        """

        project = await self._fetch(project_id)
        if project is None:
            return None

        project.last_opened_at = utc_now()
        await self.save_project(project)
        await self._set_last_project_id(project.id)
        self._logger.info("store.load", project_id=project.id)
        return project

    async def list_projects(self) -> list[ProjectSummary]:
        """Summaries, most recently opened first, then most recently updated."""

        db = await self._get_connection()
        async with db.execute(
            """
            SELECT id, name, description, file_count,
                   created_at, updated_at, last_opened_at
            FROM projects
            ORDER BY last_opened_at IS NULL, last_opened_at DESC, updated_at DESC
            """
        ) as cursor:
            rows = await cursor.fetchall()

        return [
            ProjectSummary(
                id=row[0],
                name=row[1],
                description=row[2],
                file_count=row[3],
                created_at=datetime.fromisoformat(row[4]),
                updated_at=datetime.fromisoformat(row[5]),
                last_opened_at=datetime.fromisoformat(row[6]) if row[6] else None,
            )
            for row in rows
        ]

    async def delete_project(self, project_id: str) -> bool:
        """Delete a project, forgetting it as the last project if it was.

        Returns:
            False if no project has that id
        """

        db = await self._get_connection()
        cursor = await db.execute("DELETE FROM projects WHERE id = ?", (project_id,))
        deleted = cursor.rowcount > 0
        await cursor.close()
        await db.commit()

        if deleted and await self.get_last_project_id() == project_id:
            await self._set_last_project_id(None)

        self._logger.info("store.delete", project_id=project_id, deleted=deleted)
        return deleted

    async def duplicate_project(self, project_id: str, new_name: str) -> Project | None:
        """Store a copy of a project under fresh ids and select it."""

        original = await self._fetch(project_id)
        if original is None:
            return None

        copy = duplicate_project(original, new_name)
        await self.save_project(copy)
        await self._set_last_project_id(copy.id)
        self._logger.info("store.duplicate", source_id=project_id, project_id=copy.id)
        return copy

    async def rename_project(self, project_id: str, new_name: str) -> bool:
        """Rename a stored project.

        Returns:
            False if no project has that id
        """

        project = await self._fetch(project_id)
        if project is None:
            return False

        project.name = new_name
        project.touch()
        await self.save_project(project)
        return True

    async def get_last_project_id(self) -> str | None:
        db = await self._get_connection()
        async with db.execute(
            "SELECT value FROM metadata WHERE key = ?", (LAST_PROJECT_KEY,)
        ) as cursor:
            row = await cursor.fetchone()
        return row[0] if row else None

    async def _set_last_project_id(self, project_id: str | None) -> None:
        db = await self._get_connection()
        await db.execute(
            "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
            (LAST_PROJECT_KEY, project_id),
        )
        await db.commit()

    async def _fetch(self, project_id: str) -> Project | None:
        db = await self._get_connection()
        async with db.execute(
            "SELECT data FROM projects WHERE id = ?", (project_id,)
        ) as cursor:
            row = await cursor.fetchone()

        if row is None:
            return None
        return deserialize(row[0])

    async def close(self) -> None:
        """Close database connection."""

        if self._db is not None:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> ProjectStore:
        await self._get_connection()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
