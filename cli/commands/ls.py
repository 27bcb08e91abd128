"""List calendar entries."""

from datetime import datetime

import typer
from rich.markup import escape
from typing_extensions import Annotated

from agenda.exceptions import AgendaError
from cli.context import get_context
from cli.display import EntryRenderer, console


def ls(
    show_all: Annotated[
        bool,
        typer.Option("--all", "-a", help="Show past entries too"),
    ] = False,
) -> None:
    """List calendar entries.

    By default only entries that have not ended yet are shown.
    """
    ctx = get_context()
    renderer = EntryRenderer()

    try:
        entries = ctx.loaded_controller().entries
    except AgendaError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if show_all:
        title = "All entries"
    else:
        now = datetime.now()
        entries = [e for e in entries if e.start and (e.end or e.start) >= now]
        title = "Upcoming"

    if not entries:
        renderer.render_empty(
            "No entries found" if show_all else "No upcoming entries"
        )
        return

    renderer.render_agenda(entries, title=title, subtitle=str(ctx.config.calendar_path))
