"""Delete a calendar entry."""

import logging

import typer
from rich.markup import escape
from typing_extensions import Annotated

from agenda.exceptions import AgendaError
from cli.context import get_context
from cli.display import console
from cli.utils import parse_datetime

logger = logging.getLogger(__name__)


def rm(
    title: Annotated[
        str,
        typer.Argument(help="Title of the entry to delete"),
    ],
    start: Annotated[
        str,
        typer.Option("--start", "-s", help="Start of the entry (YYYY-MM-DDTHH:MM)"),
    ],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
) -> None:
    """Delete the entry with this title and start.

    Deleting the last entry saves a copy of the previous calendar file
    beside it (with a .bak suffix).
    """
    start_dt = parse_datetime(start)
    ctx = get_context()

    try:
        controller = ctx.loaded_controller()
        key = (title, start_dt)
        if not force:
            controller.find_entry(key)
            console.print(f"\nDelete entry '{escape(title)}' at {start_dt:%Y-%m-%d %H:%M}")
            if len(controller.entries) == 1:
                console.print(
                    "  [yellow]⚠[/yellow] This is the last entry; the current file "
                    f"will be kept as {ctx.config.backup_path}"
                )
            console.print()
            if not typer.confirm("Continue?"):
                typer.echo("Delete cancelled.")
                return
        controller.delete_entry(key)
    except AgendaError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if controller.last_error is not None:
        console.print(
            f"[red]Calendar not saved:[/red] {escape(str(controller.last_error))}"
        )
        raise typer.Exit(1)

    console.print(f"\n[bold green]✓[/bold green] Entry '{escape(title)}' deleted")
