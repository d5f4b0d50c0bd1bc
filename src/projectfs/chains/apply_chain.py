"""Apply chain for change plans authored outside the editor.

This module provides the ApplyChain class that drives the operation engine
with a batch of create/update/delete intents (typically produced by an LLM).
Each intent is validated and applied on its own; a failing intent is
recorded in the report and the batch carries on. Nothing is raised past the
batch boundary.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from typing import Any, Literal

import structlog
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)

from projectfs.core.constants import DEFAULT_ALLOWED_DIRS, MAX_PLAN_PATH_LENGTH
from projectfs.core.errors import AlreadyExists, NotAFile, NotFound, ProjectFSError
from projectfs.core.history import HistoryManager
from projectfs.core.models import ChangeIntent, ChangePlan, FileNode, utc_now
from projectfs.fs.fs_ops import FileSystemOperations
from projectfs.fs.paths import basename, dirname, is_sub_path, normalize_path

OnExisting = Literal["update", "fail"]
ItemStatus = Literal["created", "updated", "deleted", "rejected", "failed"]
PathPredicate = Callable[[str], bool]


def allowed_prefixes(*dirs: str) -> PathPredicate:
    """Build an allow-list predicate restricting paths to some subtrees.

    Besides living under one of ``dirs``, a path must be non-empty, shorter
    than MAX_PLAN_PATH_LENGTH and contain neither ``..`` nor ``//``.

    Args:
        dirs: Allowed directories (defaults to DEFAULT_ALLOWED_DIRS)

    Returns:
        Predicate taking the raw intent path
    """
    roots = [normalize_path(d) for d in (dirs or DEFAULT_ALLOWED_DIRS)]

    def _allowed(path: str) -> bool:
        if not path or len(path) >= MAX_PLAN_PATH_LENGTH:
            return False
        if ".." in path or "//" in path:
            return False
        normalized = normalize_path(path)
        return any(is_sub_path(root, normalized) for root in roots)

    return _allowed


@dataclass
class ApplyOptions:
    """Options for applying a change plan.

    Attributes:
        allow: Optional predicate; intents whose path it rejects are skipped
        on_existing: What a create does when the file already exists:
            "update" overwrites its content, "fail" reports AlreadyExists
        description: Label for the history entry when a history is given
    """

    allow: PathPredicate | None = None
    on_existing: OnExisting = "update"
    description: str = "Apply change plan"


@dataclass
class ApplyOutcome:
    """Result of a single change intent."""

    path: str
    type: str
    status: ItemStatus
    reason: str | None = None
    node_id: str | None = None


@dataclass
class ApplyReport:
    """Summary report of plan application."""

    total_items: int
    changed: bool
    outcomes: list[ApplyOutcome] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def applied_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status in _SUCCESS_STATUSES)

    @property
    def rejected_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "rejected")

    @property
    def failed_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "failed")


_SUCCESS_STATUSES = ("created", "updated", "deleted")


class ApplyChain:
    """Applies change intents to a project, tolerating per-item failure.

    Args:
        logger: Optional structlog logger instance
        ui: Optional Rich console for progress and per-item output
    """

    def __init__(self, logger: Any = None, ui: Console | None = None) -> None:
        self._logger = logger or structlog.get_logger()
        self._ui = ui or Console(stderr=True)

    def apply(
        self,
        ops: FileSystemOperations,
        intents: Sequence[ChangeIntent],
        opts: ApplyOptions | None = None,
        *,
        history: HistoryManager | None = None,
    ) -> ApplyReport:
        """Apply intents in order.

        Args:
            ops: Engine bound to the target project
            intents: Change intents to apply
            opts: Apply options (defaults to create-or-update, no allow-list)
            history: When given, the whole batch becomes one undoable entry

        Returns:
            ApplyReport with the success flag, per-item outcomes and errors
        """
        opts = opts or ApplyOptions()
        bound_logger = self._logger.bind(
            project_id=ops.project.id,
            total_items=len(intents),
            on_existing=opts.on_existing,
        )

        outcomes: list[ApplyOutcome] = []

        def _apply_all() -> None:
            with self._create_progress() as progress:
                task = progress.add_task("Apply change plan", total=len(intents))
                for intent in intents:
                    outcome = self._apply_item(ops, intent, opts)
                    outcomes.append(outcome)
                    bound_logger.info(
                        "apply.item",
                        path=outcome.path,
                        type=outcome.type,
                        status=outcome.status,
                        reason=outcome.reason,
                    )
                    self._show_item_result(outcome)
                    progress.advance(task)

        if history is not None:
            history.record(opts.description, _apply_all)
        else:
            _apply_all()

        changed = any(o.status in _SUCCESS_STATUSES for o in outcomes)
        if changed:
            ops.project.touch(utc_now())

        report = ApplyReport(
            total_items=len(intents),
            changed=changed,
            outcomes=outcomes,
            errors=[
                f"{o.path}: {o.reason}"
                for o in outcomes
                if o.status in ("rejected", "failed")
            ],
        )

        bound_logger.info(
            "apply.summary",
            changed=report.changed,
            applied_count=report.applied_count,
            rejected_count=report.rejected_count,
            failed_count=report.failed_count,
        )
        return report

    def apply_plan(
        self,
        ops: FileSystemOperations,
        plan: ChangePlan,
        opts: ApplyOptions | None = None,
        *,
        history: HistoryManager | None = None,
    ) -> ApplyReport:
        """Apply a ChangePlan, labelling the history entry with its description."""
        opts = opts or ApplyOptions()
        opts = replace(opts, description=plan.description)
        self._logger.info("apply.plan", plan_id=plan.id, changes=len(plan.changes))
        return self.apply(ops, plan.changes, opts, history=history)

    def _apply_item(
        self, ops: FileSystemOperations, intent: ChangeIntent, opts: ApplyOptions
    ) -> ApplyOutcome:
        """Apply one intent, converting every failure into an outcome."""
        path = normalize_path(intent.path)

        if opts.allow is not None and not opts.allow(intent.path):
            return ApplyOutcome(
                path=path,
                type=intent.type,
                status="rejected",
                reason="path not allowed",
            )

        try:
            if intent.type == "create":
                return self._create(ops, path, intent, opts)
            if intent.type == "update":
                return self._update(ops, path, intent)
            return self._delete(ops, path, intent)
        except ProjectFSError as e:
            return ApplyOutcome(
                path=path, type=intent.type, status="failed", reason=e.message
            )
        except Exception as e:
            self._logger.warning("apply.unexpected_error", path=path, error=str(e))
            return ApplyOutcome(
                path=path,
                type=intent.type,
                status="failed",
                reason=f"unexpected error: {e}",
            )

    def _create(
        self,
        ops: FileSystemOperations,
        path: str,
        intent: ChangeIntent,
        opts: ApplyOptions,
    ) -> ApplyOutcome:
        content = intent.content if intent.content is not None else ""
        existing = ops.resolve(path)

        if isinstance(existing, FileNode):
            if opts.on_existing == "fail":
                raise AlreadyExists(f"File already exists: {path}", path=path)
            node = ops.update_file_content(path, content)
            return ApplyOutcome(
                path=path,
                type=intent.type,
                status="updated",
                reason="file existed, content replaced",
                node_id=node.id,
            )

        node = ops.create_file(dirname(path), basename(path), content)
        return ApplyOutcome(
            path=path, type=intent.type, status="created", node_id=node.id
        )

    def _update(
        self, ops: FileSystemOperations, path: str, intent: ChangeIntent
    ) -> ApplyOutcome:
        existing = ops.resolve(path)
        if existing is None:
            raise NotFound(f"File not found: {path}", path=path)
        if not isinstance(existing, FileNode):
            raise NotAFile(f"Not a file: {path}", path=path)
        if intent.content is None:
            return ApplyOutcome(
                path=path,
                type=intent.type,
                status="failed",
                reason="update without content",
            )

        node = ops.update_file_content(path, intent.content)
        return ApplyOutcome(
            path=path, type=intent.type, status="updated", node_id=node.id
        )

    def _delete(
        self, ops: FileSystemOperations, path: str, intent: ChangeIntent
    ) -> ApplyOutcome:
        existing = ops.resolve(path)
        if existing is None:
            raise NotFound(f"Node not found: {path}", path=path)

        ops.delete(path)
        return ApplyOutcome(
            path=path, type=intent.type, status="deleted", node_id=existing.id
        )

    def _create_progress(self) -> Progress:
        """Create Rich progress display."""
        return Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=self._ui,
            transient=True,
        )

    def _show_item_result(self, outcome: ApplyOutcome) -> None:
        """Show Rich output for item result."""
        path = escape(outcome.path)
        reason = escape(outcome.reason or "")
        if outcome.status == "created":
            self._ui.print(f"✅ [green]CREATED[/green] {path}")
        elif outcome.status == "updated":
            self._ui.print(f"✏️ [green]UPDATED[/green] {path}")
        elif outcome.status == "deleted":
            self._ui.print(f"🗑️ [green]DELETED[/green] {path}")
        elif outcome.status == "rejected":
            self._ui.print(f"⚠️ [yellow]REJECTED[/yellow] {path} ({reason})")
        elif outcome.status == "failed":
            self._ui.print(f"❌ [red]FAILED[/red] {path} ({reason})")
