# src/vaultkeeper/cli.py
"""
Vaultkeeper Command Line Interface (CLI).

This module implements the terminal interface using `typer` and `rich`. It
is a thin collaborator over :class:`~vaultkeeper.service.DataManager`: every
command maps to exactly one facade operation.

Features
--------
- **Overview**: `show` prints the school profile and record counts.
- **Scoped Export**: full, per-school, per-teacher or per-record-type files.
- **Safe Import**: the current data is archived automatically first.
- **Archive**: list the last five snapshots and restore any of them.

Usage
-----
    $ vaultkeeper show
    $ vaultkeeper export --scope owner --owner "Ahmed Ali" -o ahmed.json
    $ vaultkeeper import backup.json
    $ vaultkeeper snapshots
    $ vaultkeeper restore 3f2a...
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from vaultkeeper.core.contracts.document import COLLECTION_FIELDS, collection_alias
from vaultkeeper.core.errors import ErrorCategory, ValidationErrorKind, VaultError
from vaultkeeper.core.export import ExportScope
from vaultkeeper.core.guard import MutationOutcome
from vaultkeeper.core.result import Err, Result
from vaultkeeper.service import DataManager

load_dotenv()

app = typer.Typer(
    help="Vaultkeeper: archive-safe import, export and restore of school data.",
    rich_markup_mode="markdown",
)
console = Console()


class ScopeChoice(str, Enum):
    full = "full"
    school = "school"
    owner = "owner"
    type = "type"


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


def _manager(ctx: typer.Context) -> DataManager:
    manager = ctx.obj
    if not isinstance(manager, DataManager):
        manager = DataManager.from_settings()
        ctx.obj = manager
    return manager


def _report_failure(error: VaultError) -> None:
    """Print an error so that bad input and a broken environment look different."""
    if error.category is ErrorCategory.PARSE:
        if error.kind is ValidationErrorKind.WRONG_FILE_KIND:
            title = "Wrong file kind"
        else:
            title = "Invalid file"
        console.print(
            Panel(f"{error.message}", title=f"❌ {title}", border_style="red")
        )
        console.print("[dim]Your current data was not changed.[/dim]")
    elif error.category is ErrorCategory.NOT_FOUND:
        console.print(
            Panel(
                f"{error.message}\nIt may have been rotated out of the archive.",
                title="Snapshot not found",
                border_style="yellow",
            )
        )
    else:
        console.print(
            Panel(
                f"{error.message}\nThe operation was cancelled; nothing was changed.",
                title="⚠️ Storage failure",
                border_style="red",
            )
        )


def _finish(result: Result[MutationOutcome, VaultError], action: str) -> None:
    if isinstance(result, Err):
        _report_failure(result.error)
        raise typer.Exit(code=1)
    outcome = result.unwrap()
    console.print(f"[bold green]✅ {action} complete.[/bold green]")
    if outcome.snapshot_id:
        console.print(f"[dim]Previous data archived as snapshot {outcome.snapshot_id}[/dim]")
    else:
        console.print("[dim]No previous data existed, so nothing was archived.[/dim]")


def _build_scope(scope: ScopeChoice, owner: str | None, type_key: str | None) -> ExportScope:
    try:
        if scope is ScopeChoice.owner:
            return ExportScope.by_owner(owner or "")
        if scope is ScopeChoice.type:
            return ExportScope.by_entity_type(type_key or "")
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if scope is ScopeChoice.school:
        return ExportScope.school()
    return ExportScope.full()


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.callback()  # type: ignore[misc]
def main(
    ctx: typer.Context,
    data_dir: Annotated[
        Path | None,
        typer.Option(
            "--data-dir",
            "-d",
            envvar="VAULTKEEPER_DATA_DIR",
            file_okay=False,
            help="Directory holding the persisted document and archive.",
        ),
    ] = None,
) -> None:
    """Vaultkeeper data management."""
    ctx.obj = DataManager.from_settings(data_dir)


@app.command()  # type: ignore[misc]
def show(ctx: typer.Context) -> None:
    """Show the school profile and how many records each collection holds."""
    doc = _manager(ctx).read_current()
    school = doc.profile.get("schoolName") or "(unnamed school)"
    console.print(Panel.fit(f"[bold cyan]{school}[/bold cyan]", border_style="cyan"))

    table = Table(title="Records")
    table.add_column("Collection")
    table.add_column("Count", justify="right")
    for name in COLLECTION_FIELDS:
        table.add_row(collection_alias(name), str(len(getattr(doc, name))))
    console.print(table)


@app.command()  # type: ignore[misc]
def owners(ctx: typer.Context) -> None:
    """List the teachers that appear in the daily reports."""
    names = _manager(ctx).list_owners()
    if not names:
        console.print("[dim]No teachers found.[/dim]")
        return
    for name in names:
        console.print(f" • {name}")


@app.command()  # type: ignore[misc]
def export(
    ctx: typer.Context,
    scope: Annotated[
        ScopeChoice,
        typer.Option("--scope", "-s", help="What to export."),
    ] = ScopeChoice.full,
    owner: Annotated[
        str | None,
        typer.Option("--owner", help="Teacher name (with --scope owner)."),
    ] = None,
    type_key: Annotated[
        str | None,
        typer.Option("--type", "-t", help="Record type, e.g. 'violations' (with --scope type)."),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Destination file (default: generated name)."),
    ] = None,
) -> None:
    """Write an export file; never changes the stored data."""
    export_scope = _build_scope(scope, owner, type_key)
    bundle = _manager(ctx).request_export(export_scope)
    target = output if output is not None else Path(bundle.filename)
    try:
        target.write_bytes(bundle.content)
    except OSError as e:
        console.print(f"[bold red]⚠️ Failed to save to {target}: {e}[/bold red]")
        raise typer.Exit(code=1) from e
    console.print(
        Panel(
            f"Saved to: [link=file://{target}]{target}[/link]",
            title="Export",
            border_style="green",
        )
    )


@app.command("import")  # type: ignore[misc]
def import_(
    ctx: typer.Context,
    file: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            help="Path to the JSON data file.",
        ),
    ],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip the confirmation prompt."),
    ] = False,
) -> None:
    """Replace the current data with FILE (current data is archived first)."""
    console.print(
        Panel.fit(
            "Current data will be archived automatically before the import.\n"
            "You can restore it later with `vaultkeeper restore`.",
            title="🛡️ Safety",
            border_style="cyan",
        )
    )
    if not yes and not Confirm.ask(f"Import {file.name}?", default=False):
        raise typer.Exit(code=0)
    result = _manager(ctx).request_import(file.read_bytes(), filename=file.name)
    _finish(result, "Import")


@app.command()  # type: ignore[misc]
def snapshots(ctx: typer.Context) -> None:
    """List archived snapshots, newest first."""
    entries = _manager(ctx).list_snapshots()
    if not entries:
        console.print("[dim]The archive is empty. Snapshots are created on import/restore.[/dim]")
        return
    table = Table(title="Archive")
    table.add_column("#", justify="right")
    table.add_column("Taken (UTC)")
    table.add_column("Note")
    table.add_column("ID")
    for info in entries:
        table.add_row(str(info.sequence), info.timestamp, info.note, info.id)
    console.print(table)
    console.print("[dim]FIFO: only the 5 most recent snapshots are kept.[/dim]")


@app.command()  # type: ignore[misc]
def restore(
    ctx: typer.Context,
    snapshot_id: Annotated[str, typer.Argument(help="ID of the snapshot to restore.")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip the confirmation prompt."),
    ] = False,
) -> None:
    """Restore a snapshot (current data is archived first)."""
    if not yes and not Confirm.ask(
        "Are you sure? Current data will be archived first.", default=False
    ):
        raise typer.Exit(code=0)
    _finish(_manager(ctx).request_restore(snapshot_id), "Restore")


if __name__ == "__main__":
    app()
