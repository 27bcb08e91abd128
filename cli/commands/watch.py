"""Run the change poll and reminder timers in the foreground."""

import logging
import time

import typer
from rich.markup import escape

from agenda.exceptions import AgendaError
from cli.context import get_context
from cli.display import EntryRenderer, console

logger = logging.getLogger(__name__)


def watch() -> None:
    """Print reminders as they become due until interrupted.

    The calendar is saved once more on exit.
    """
    ctx = get_context()
    renderer = EntryRenderer()

    try:
        controller = ctx.loaded_controller(notifier=renderer.render_reminder)
    except AgendaError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    pending = controller.reminders.pending()
    console.print(
        f"Watching {ctx.config.calendar_path} "
        f"({len(controller.entries)} entries, {len(pending)} pending reminders)"
    )
    console.print("[dim]Press Ctrl-C to stop.[/dim]\n")

    # Reminders already due fire immediately
    controller.tick()
    controller.start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        console.print("\nStopping...")
    finally:
        result = controller.shutdown()

    if result is not None:
        console.print(f"[bold green]✓[/bold green] Saved {result.entry_count} entries")
    if controller.last_error is not None:
        console.print(
            f"[red]Calendar not saved:[/red] {escape(str(controller.last_error))}"
        )
        raise typer.Exit(1)
