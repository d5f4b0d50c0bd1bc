"""Snapshot-based undo/redo for a project.

HistoryManager wraps arbitrary operation-engine mutations in reversible
entries. Each entry stores two full deep copies of the node map (before and
after) plus the diff between them. Undo and redo swap the project's whole
node map for a fresh copy of the stored snapshot, so the live project and
the history never share node objects.

History is linear: recording after an undo discards the redo branch.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar
from uuid import uuid4

import structlog

from projectfs.core.constants import DEFAULT_HISTORY_CAPACITY, SNAPSHOT_NODE_COST
from projectfs.core.models import (
    Change,
    DirectoryNode,
    FileNode,
    NodeMap,
    Project,
    clone_nodes,
    utc_now,
)
from projectfs.fs.fs_ops import FileSystemOperations, diff_nodes
from projectfs.fs.paths import basename

T = TypeVar("T")


@dataclass
class HistoryEntry:
    """One undo/redo unit.

    Attributes:
        id: Entry identifier
        timestamp: When the mutation was recorded
        description: Human-readable label ("Rename "a" to "b"")
        changes: Diff between ``before`` and ``after``
        before: Node map snapshot taken before the mutation
        after: Node map snapshot taken after the mutation
    """

    id: str
    timestamp: datetime
    description: str
    changes: list[Change]
    before: NodeMap
    after: NodeMap


@dataclass(frozen=True)
class UndoRedoState:
    """What the undo/redo buttons should show."""

    can_undo: bool
    can_redo: bool
    undo_description: str | None = None
    redo_description: str | None = None


@dataclass(frozen=True)
class HistorySummary:
    """Size information about the retained history."""

    total_entries: int
    current_index: int
    memory_usage: int


class HistoryManager:
    """Records reversible groups of mutations against one project.

    Args:
        project: Project whose node map is snapshotted and restored
        capacity: Maximum number of retained entries
        logger: Optional structlog logger instance
    """

    def __init__(
        self,
        project: Project,
        *,
        capacity: int = DEFAULT_HISTORY_CAPACITY,
        logger: Any = None,
    ) -> None:
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")

        self.project = project
        self.capacity = capacity
        self._entries: list[HistoryEntry] = []
        self._current_index = -1
        self._logger = (logger or structlog.get_logger()).bind(project_id=project.id)

    @property
    def current_index(self) -> int:
        """Index of the last applied entry (-1 when nothing is applied)."""
        return self._current_index

    def __len__(self) -> int:
        return len(self._entries)

    def record(
        self, description: str, mutate: Callable[[], object]
    ) -> HistoryEntry | None:
        """Run ``mutate`` and record it as one undoable entry.

        ``mutate`` must perform its edits through a FileSystemOperations bound
        to the same project. If it raises, the node map is restored to its
        state before the call, nothing is recorded and the exception
        propagates.

        Args:
            description: Label shown in undo/redo UI
            mutate: Callable performing the edits

        Returns:
            The new entry, or None when the mutation changed nothing
        """
        before = clone_nodes(self.project.nodes)
        updated_at = self.project.updated_at

        try:
            mutate()
        except Exception:
            self.project.nodes = before
            self.project.updated_at = updated_at
            self._logger.info("history.record_failed", description=description)
            raise

        after = clone_nodes(self.project.nodes)
        changes = diff_nodes(before, after)
        if not changes:
            self._logger.debug("history.noop", description=description)
            return None

        entry = HistoryEntry(
            id=f"hst_{uuid4().hex}",
            timestamp=utc_now(),
            description=description,
            changes=changes,
            before=before,
            after=after,
        )

        del self._entries[self._current_index + 1 :]
        self._entries.append(entry)
        self._current_index += 1

        if len(self._entries) > self.capacity:
            evicted = self._entries.pop(0)
            self._current_index -= 1
            self._logger.debug("history.evict", description=evicted.description)

        self._logger.info(
            "history.record",
            description=description,
            changes=len(changes),
            index=self._current_index,
        )
        return entry

    def undo(self) -> bool:
        """Restore the state before the current entry.

        Returns:
            False if there is nothing to undo
        """
        if not self.can_undo():
            return False

        entry = self._entries[self._current_index]
        self._replace_nodes(entry.before)
        self._current_index -= 1

        self._logger.info("history.undo", description=entry.description)
        return True

    def redo(self) -> bool:
        """Re-apply the next entry.

        Returns:
            False if already at the newest entry
        """
        if not self.can_redo():
            return False

        self._current_index += 1
        entry = self._entries[self._current_index]
        self._replace_nodes(entry.after)

        self._logger.info("history.redo", description=entry.description)
        return True

    def jump_to(self, index: int) -> bool:
        """Move directly to any retained point in history.

        Index -1 restores the oldest retained state (the state before the
        first entry).

        Args:
            index: Target entry index, -1 to len(self) - 1

        Returns:
            False if ``index`` is out of range
        """
        if index < -1 or index >= len(self._entries):
            return False
        if index == self._current_index:
            return True

        if index == -1:
            self._replace_nodes(self._entries[0].before)
        else:
            self._replace_nodes(self._entries[index].after)
        self._current_index = index

        self._logger.info("history.jump", index=index)
        return True

    def can_undo(self) -> bool:
        return self._current_index >= 0

    def can_redo(self) -> bool:
        return self._current_index < len(self._entries) - 1

    def state(self) -> UndoRedoState:
        """Return the flags and labels for undo/redo controls."""
        can_undo = self.can_undo()
        can_redo = self.can_redo()
        return UndoRedoState(
            can_undo=can_undo,
            can_redo=can_redo,
            undo_description=(
                self._entries[self._current_index].description if can_undo else None
            ),
            redo_description=(
                self._entries[self._current_index + 1].description
                if can_redo
                else None
            ),
        )

    def entries(self, *, include_redo: bool = False) -> list[HistoryEntry]:
        """Return applied entries, oldest first (plus the redo branch if asked)."""
        if include_redo:
            return list(self._entries)
        return self._entries[: self._current_index + 1]

    def clear(self) -> None:
        """Forget all entries; the project itself is left as is."""
        self._entries = []
        self._current_index = -1

    def summary(self) -> HistorySummary:
        """Estimate how much memory the retained snapshots use."""
        memory_usage = 0
        for entry in self._entries:
            memory_usage += (len(entry.before) + len(entry.after)) * SNAPSHOT_NODE_COST
            memory_usage += sum(len(c.model_dump_json()) for c in entry.changes)

        return HistorySummary(
            total_entries=len(self._entries),
            current_index=self._current_index,
            memory_usage=memory_usage,
        )

    def _replace_nodes(self, snapshot: NodeMap) -> None:
        self.project.nodes = clone_nodes(snapshot)
        self.project.touch()


class HistoryCommands:
    """Recorded versions of each operation-engine mutation.

    Each method runs the engine call inside HistoryManager.record() with a
    descriptive label and returns what the engine returned.

    Args:
        history: History manager to record into
        ops: Engine bound to the same project (created if omitted)
    """

    def __init__(
        self, history: HistoryManager, ops: FileSystemOperations | None = None
    ) -> None:
        self.history = history
        self.ops = ops or FileSystemOperations(history.project)

    def create_file(
        self, parent_path: str, name: str, content: str = "", **options: Any
    ) -> FileNode:
        return self._run(
            f'Create file "{name}"',
            lambda: self.ops.create_file(parent_path, name, content, **options),
        )

    def create_directory(self, parent_path: str, name: str) -> DirectoryNode:
        return self._run(
            f'Create folder "{name}"',
            lambda: self.ops.create_directory(parent_path, name),
        )

    def update_file(self, path: str, content: str) -> FileNode:
        return self._run(
            f'Update file "{basename(path)}"',
            lambda: self.ops.update_file_content(path, content),
        )

    def rename(self, path: str, new_name: str) -> FileNode | DirectoryNode:
        return self._run(
            f'Rename "{basename(path)}" to "{new_name}"',
            lambda: self.ops.rename(path, new_name),
        )

    def move(self, source_path: str, target_dir_path: str) -> FileNode | DirectoryNode:
        return self._run(
            f'Move "{basename(source_path)}" to "{target_dir_path}"',
            lambda: self.ops.move(source_path, target_dir_path),
        )

    def delete(self, path: str) -> None:
        self._run(f'Delete "{basename(path)}"', lambda: self.ops.delete(path))

    def _run(self, description: str, action: Callable[[], T]) -> T:
        results: list[T] = []
        self.history.record(description, lambda: results.append(action()))
        return results[0]
