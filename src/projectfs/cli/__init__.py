"""CLI entrypoints for projectfs."""

from __future__ import annotations

import importlib
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing only
    import typer
    from typer import Typer as TyperType
else:  # pragma: no cover - runtime fallback for typing
    typer = importlib.import_module("typer")
    TyperType = Any

from projectfs.cli.project import app as project_app
from projectfs.cli.store import app as store_app

app: TyperType = typer.Typer(
    help="Inspect and edit projectfs projects.", no_args_is_help=True
)
app.add_typer(project_app, name="project")
app.add_typer(store_app, name="store")


def main(args: Sequence[str] | None = None) -> None:
    app(args=args)


__all__ = ["app", "main", "project_app", "store_app"]
