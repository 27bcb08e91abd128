"""Show calendar file status and pending reminders."""

import logging
from datetime import datetime

import typer
from rich.markup import escape
from rich.table import Table

from agenda.exceptions import AgendaError
from cli.context import get_context
from cli.display import (
    console,
    format_file_size,
    format_relative_time,
    format_reminder,
)

logger = logging.getLogger(__name__)


def info() -> None:
    """Show calendar path, size, entry count, backup and pending reminders."""
    ctx = get_context()
    config = ctx.config
    path = config.calendar_path

    try:
        controller = ctx.loaded_controller()
    except AgendaError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    entries = controller.entries
    now = datetime.now()

    console.print()
    console.print("━" * 50)
    console.print("[bold]  Calendar[/bold]")
    console.print("━" * 50)

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Path", str(path.resolve()))
    if path.exists():
        stat = path.stat()
        modified = datetime.fromtimestamp(stat.st_mtime)
        table.add_row("Size", format_file_size(stat.st_size))
        table.add_row(
            "Modified",
            f"{modified:%Y-%m-%d %H:%M:%S} ({format_relative_time(modified, now)})",
        )
    else:
        table.add_row("Size", "[dim]not created yet[/dim]")

    table.add_row("Entries", str(len(entries)))
    upcoming = sum(1 for e in entries if e.start and e.start >= now)
    table.add_row("Upcoming", str(upcoming))

    backup = config.backup_path
    if backup.exists():
        backup_time = datetime.fromtimestamp(backup.stat().st_mtime)
        table.add_row(
            "Backup", f"{backup} ({format_relative_time(backup_time, now)})"
        )
    else:
        table.add_row("Backup", "[dim]none[/dim]")

    console.print(table)

    pending = controller.reminders.pending(now)
    console.print(f"\n[bold]Pending reminders:[/bold] {len(pending)}")
    for entry in pending[:5]:
        console.print(
            f"  {entry.reminder_at:%Y-%m-%d %H:%M}  {escape(entry.title)} "
            f"[dim]({format_reminder(entry.reminder_minutes_before)} before "
            f"{entry.start:%H:%M})[/dim]"
        )
    if len(pending) > 5:
        console.print(f"  [dim]… and {len(pending) - 5} more[/dim]")
    console.print()
