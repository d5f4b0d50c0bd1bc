"""CLI commands for project store maintenance."""

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

from projectfs.store.migrations import apply_migrations
from projectfs.store.paths import resolve_store_db_path

app: TyperType = typer.Typer(help="Manage the project store database.")

DbPathOption = Annotated[
    Path | None,
    typer.Option(
        "--db-path",
        help="Optional override for the project store location.",
    ),
]


def migrate(db_path: DbPathOption = None) -> None:
    """Apply store migrations to bring the schema up to date."""

    resolved_path = resolve_store_db_path(db_path)
    applied = asyncio.run(apply_migrations(resolved_path))
    if applied:
        typer.secho(
            f"Applied {', '.join(applied)} to {resolved_path}", fg=typer.colors.GREEN
        )
    else:
        typer.secho(f"{resolved_path} is up to date", fg=typer.colors.GREEN)


app.command("migrate")(migrate)
