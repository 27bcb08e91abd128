"""Create a new calendar entry."""

import logging

import typer
from rich.markup import escape
from typing_extensions import Annotated

from agenda.exceptions import AgendaError
from cli.context import get_context
from cli.display import console, format_reminder, format_time_range
from cli.utils import parse_datetime

logger = logging.getLogger(__name__)


def add(
    title: Annotated[
        str,
        typer.Argument(help="Entry title"),
    ],
    start: Annotated[
        str,
        typer.Option("--start", "-s", help="Start (YYYY-MM-DDTHH:MM, local time)"),
    ],
    end: Annotated[
        str,
        typer.Option("--end", "-e", help="End (YYYY-MM-DDTHH:MM, local time)"),
    ],
    description: Annotated[
        str | None,
        typer.Option("--description", "-d", help="Free text description"),
    ] = None,
    remind: Annotated[
        int | None,
        typer.Option("--remind", "-r", min=0, help="Reminder, minutes before start"),
    ] = None,
    category: Annotated[
        str | None,
        typer.Option("--category", "-c", help="Category (defaults to General)"),
    ] = None,
) -> None:
    """Create a new calendar entry and save the calendar.

    Example:
        agenda add "Dentist" --start 2026-03-02T14:00 --end 2026-03-02T15:00 -r 30
    """
    start_dt = parse_datetime(start)
    end_dt = parse_datetime(end)

    ctx = get_context()
    try:
        controller = ctx.loaded_controller()
        entry = controller.create_entry(
            title=title,
            description=description,
            start=start_dt,
            end=end_dt,
            reminder_minutes_before=remind,
            category=category,
        )
    except AgendaError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if controller.last_error is not None:
        console.print(
            f"[red]Entry not saved:[/red] {escape(str(controller.last_error))}"
        )
        raise typer.Exit(1)

    console.print(f"\n[bold green]✓[/bold green] Entry '{escape(entry.title)}' created")
    console.print(
        f"  When: {entry.start:%a %Y-%m-%d} {format_time_range(entry.start, entry.end)}"
    )
    console.print(f"  Category: {escape(entry.category)}")
    if entry.description:
        console.print(f"  Description: {escape(entry.description)}")
    if entry.has_reminder:
        console.print(f"  Reminder: {format_reminder(entry.reminder_minutes_before)} before")
