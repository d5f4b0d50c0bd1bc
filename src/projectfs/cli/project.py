"""CLI commands for working with stored projects."""

from __future__ import annotations

import asyncio
import importlib
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

if TYPE_CHECKING:  # pragma: no cover - typing only
    import typer
    from typer import Typer as TyperType
else:  # pragma: no cover - runtime fallback for typing
    typer = importlib.import_module("typer")
    TyperType = Any

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from projectfs.chains.apply_chain import ApplyChain, ApplyOptions, allowed_prefixes
from projectfs.core.models import ChangePlan, DirectoryNode, Project
from projectfs.fs.archive import (
    export_filename,
    export_zip,
    format_file_size,
    import_zip,
    validate_export,
    validate_import,
)
from projectfs.fs.fs_ops import FileSystemOperations
from projectfs.store import ProjectStore

app: TyperType = typer.Typer(help="Create, inspect and edit stored projects.")

console = Console()

DbPathOption = Annotated[
    Path | None,
    typer.Option(
        "--db-path",
        help="Optional override for the project store location.",
    ),
]
ProjectIdArgument = Annotated[str, typer.Argument(help="Stored project id.")]


def _fail(message: str) -> typer.Exit:
    typer.secho(message, err=True, fg=typer.colors.RED)
    return typer.Exit(code=1)


async def _load(db_path: Path | None, project_id: str) -> Project | None:
    async with ProjectStore(db_path) as store:
        return await store.load_project(project_id)


async def _save(db_path: Path | None, project: Project) -> None:
    async with ProjectStore(db_path) as store:
        await store.save_project(project)


def create_project(
    name: Annotated[str, typer.Argument(help="Project name.")],
    description: Annotated[
        str | None, typer.Option("--description", help="Optional description.")
    ] = None,
    db_path: DbPathOption = None,
) -> None:
    """Create an empty project and print its id."""

    async def _create() -> Project:
        async with ProjectStore(db_path) as store:
            return await store.create_project(name, description)

    project = asyncio.run(_create())
    typer.secho(f"Created project {project.id}", fg=typer.colors.GREEN)


def list_projects(db_path: DbPathOption = None) -> None:
    """List stored projects, most recently opened first."""

    async def _list() -> list[Any]:
        async with ProjectStore(db_path) as store:
            return await store.list_projects()

    summaries = asyncio.run(_list())
    if not summaries:
        typer.echo("No projects stored.")
        return

    table = Table(title="Projects")
    table.add_column("Id", no_wrap=True)
    table.add_column("Name")
    table.add_column("Files", justify="right")
    table.add_column("Updated")
    table.add_column("Last opened")
    for summary in summaries:
        table.add_row(
            summary.id,
            escape(summary.name),
            str(summary.file_count),
            summary.updated_at.strftime("%Y-%m-%d %H:%M"),
            (
                summary.last_opened_at.strftime("%Y-%m-%d %H:%M")
                if summary.last_opened_at
                else "-"
            ),
        )
    console.print(table)


def show_tree(project_id: ProjectIdArgument, db_path: DbPathOption = None) -> None:
    """Print a project's directory tree."""

    project = asyncio.run(_load(db_path, project_id))
    if project is None:
        raise _fail(f"Project not found: {project_id}")

    ops = FileSystemOperations(project)
    tree = Tree(f"[bold]{escape(project.name)}[/bold]")
    stack: list[tuple[Tree, DirectoryNode]] = [(tree, project.root)]
    while stack:
        branch, directory = stack.pop()
        for child in ops.list_directory(directory.path):
            if isinstance(child, DirectoryNode):
                sub_branch = branch.add(f"[blue]{escape(child.name)}/[/blue]")
                stack.append((sub_branch, child))
            else:
                branch.add(f"{escape(child.name)} ({format_file_size(child.size)})")
    console.print(tree)


def import_archive(
    archive: Annotated[
        Path, typer.Argument(help="ZIP archive to import.", exists=True, dir_okay=False)
    ],
    name: Annotated[
        str | None, typer.Option("--name", help="Project name (defaults to archive name).")
    ] = None,
    db_path: DbPathOption = None,
) -> None:
    """Import a ZIP archive as a new project."""

    project = import_zip(archive.read_bytes(), name, archive_name=archive.name)
    for warning in validate_import(project).warnings:
        typer.secho(f"Warning: {warning}", err=True, fg=typer.colors.YELLOW)
    asyncio.run(_save(db_path, project))

    files = sum(1 for _ in FileSystemOperations(project).iter_files())
    typer.secho(
        f"Imported {files} files into project {project.id}", fg=typer.colors.GREEN
    )


def export_archive(
    project_id: ProjectIdArgument,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Destination file or directory."),
    ] = None,
    db_path: DbPathOption = None,
) -> None:
    """Export a project to a ZIP archive."""

    project = asyncio.run(_load(db_path, project_id))
    if project is None:
        raise _fail(f"Project not found: {project_id}")

    validation = validate_export(project)
    for warning in validation.warnings:
        typer.secho(f"Warning: {warning}", err=True, fg=typer.colors.YELLOW)
    if not validation.valid:
        for error in validation.errors:
            typer.secho(error, err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)

    target = output or Path.cwd()
    if target.is_dir():
        target = target / export_filename(project.name)
    target.write_bytes(export_zip(project))
    typer.secho(f"Exported {project.name} to {target}", fg=typer.colors.GREEN)


def apply_plan(
    project_id: ProjectIdArgument,
    plan_file: Annotated[
        Path,
        typer.Argument(help="ChangePlan JSON file.", exists=True, dir_okay=False),
    ],
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Fail creates that target an existing file."),
    ] = False,
    allow: Annotated[
        list[str] | None,
        typer.Option("--allow", help="Restrict changes to this directory (repeatable)."),
    ] = None,
    db_path: DbPathOption = None,
) -> None:
    """Apply a change plan to a stored project."""

    try:
        plan = ChangePlan.model_validate_json(plan_file.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise _fail(f"Invalid change plan: {exc.error_count()} errors") from exc

    project = asyncio.run(_load(db_path, project_id))
    if project is None:
        raise _fail(f"Project not found: {project_id}")

    opts = ApplyOptions(
        allow=allowed_prefixes(*allow) if allow else None,
        on_existing="fail" if strict else "update",
    )
    report = ApplyChain(ui=console).apply_plan(
        FileSystemOperations(project), plan, opts
    )

    if report.changed:
        asyncio.run(_save(db_path, project))

    typer.echo(
        f"applied: {report.applied_count}, rejected: {report.rejected_count}, "
        f"failed: {report.failed_count}"
    )
    if report.errors:
        raise typer.Exit(code=1)


def delete_project(project_id: ProjectIdArgument, db_path: DbPathOption = None) -> None:
    """Delete a stored project."""

    async def _delete() -> bool:
        async with ProjectStore(db_path) as store:
            return await store.delete_project(project_id)

    if not asyncio.run(_delete()):
        raise _fail(f"Project not found: {project_id}")
    typer.secho(f"Deleted project {project_id}", fg=typer.colors.GREEN)


app.command("create")(create_project)
app.command("list")(list_projects)
app.command("tree")(show_tree)
app.command("import")(import_archive)
app.command("export")(export_archive)
app.command("apply")(apply_plan)
app.command("delete")(delete_project)
