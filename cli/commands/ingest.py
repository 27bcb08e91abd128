"""Import entries from an ICS or VCS file."""

import logging
from pathlib import Path

import typer
from rich.markup import escape
from typing_extensions import Annotated

from agenda.exceptions import AgendaError
from cli.context import get_context
from cli.display import console

logger = logging.getLogger(__name__)


def ingest(
    path: Annotated[
        Path,
        typer.Argument(help="Calendar file to import (.ics or .vcs)"),
    ],
) -> None:
    """Import entries from an ICS or VCS file into the calendar.

    Imported entries are appended; nothing already in the calendar is
    replaced. Events without a usable start date are skipped.
    """
    ctx = get_context()
    try:
        controller = ctx.loaded_controller()
        imported = controller.import_from(path)
    except AgendaError as e:
        console.print(f"[red]Import failed:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if controller.last_error is not None:
        console.print(
            f"[red]Calendar not saved:[/red] {escape(str(controller.last_error))}"
        )
        raise typer.Exit(1)

    entry_word = "entry" if len(imported) == 1 else "entries"
    console.print(
        f"\n[bold green]✓[/bold green] Imported {len(imported)} {entry_word} from {path}"
    )
    console.print(f"  Calendar: {ctx.config.calendar_path.resolve()}")
    console.print(f"  Total: {len(controller.entries)}")
