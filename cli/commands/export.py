"""Export the calendar to an ICS or VCS file."""

import logging
from enum import Enum
from pathlib import Path

import typer
from rich.markup import escape
from typing_extensions import Annotated

from agenda.codec.base import Dialect
from agenda.exceptions import AgendaError
from cli.context import get_context
from cli.display import console

logger = logging.getLogger(__name__)


# Format option choices as Enum (Typer doesn't support Literal types)
class FormatChoice(str, Enum):
    ics = "ics"
    vcs = "vcs"


def export(
    path: Annotated[
        Path,
        typer.Argument(help="Output file; the format's extension is added if missing"),
    ],
    format: Annotated[
        FormatChoice | None,
        typer.Option(
            "--format", "-f", help="Output format (default: from extension, else ics)"
        ),
    ] = None,
) -> None:
    """Export the calendar to an ICS or VCS file."""
    ctx = get_context()
    dialect = Dialect(format.value) if format is not None else None

    try:
        controller = ctx.loaded_controller()
        written = controller.export_to(path, dialect)
    except AgendaError as e:
        console.print(f"[red]Export failed:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    count = len(controller.snapshot())
    entry_word = "entry" if count == 1 else "entries"
    console.print(f"[bold green]✓[/bold green] Exported {count} {entry_word}")
    console.print(f"  {written.resolve()}")
