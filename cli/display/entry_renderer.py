"""Rich-based entry renderer for terminal display."""

from collections import defaultdict
from datetime import date, datetime

from rich.console import Console
from rich.text import Text

from agenda.models.entry import Entry
from agenda.sync.reminder_scheduler import Reminder
from cli.display.console import console as shared_console
from cli.display.formatters import format_reminder, format_time_range


class EntryRenderer:
    """Render calendar entries using Rich for terminal display.

    Uses neutral hierarchy-based colors:
    - Headers: bold
    - Day labels: cyan
    - Times: blue
    - Titles: default
    - Categories: dim italic
    - Reminders: magenta
    """

    def __init__(self, console: Console | None = None):
        """Initialize the renderer.

        Args:
            console: Rich Console instance (uses shared console if not provided).
        """
        self.console = console or shared_console

    def render_agenda(
        self,
        entries: list[Entry],
        title: str | None = None,
        subtitle: str | None = None,
        today: date | None = None,
    ) -> None:
        """Render entries grouped by day.

        Args:
            entries: Entries to render; sorted by start here.
            title: Optional title for the display header.
            subtitle: Optional subtitle (e.g., calendar path).
            today: Reference day for relative labels.
        """
        entries = [e for e in entries if e.start is not None]
        if not entries:
            self.render_empty()
            return

        self._print_header(title, subtitle)

        by_date: dict[date, list[Entry]] = defaultdict(list)
        for entry in sorted(entries, key=lambda e: (e.start, e.title)):
            by_date[entry.start.date()].append(entry)

        today = today or date.today()
        for entry_date in sorted(by_date):
            day_label = self._format_day_label(entry_date, today)
            self.console.print(f"\n[cyan]{day_label}[/cyan]")
            for entry in by_date[entry_date]:
                self._render_entry(entry)

        self._print_footer(len(entries))

    def render_empty(self, message: str | None = None) -> None:
        msg = message or "No entries found"
        self.console.print(f"\n[dim]{msg}[/dim]\n")

    def render_reminder(self, reminder: Reminder, now: datetime | None = None) -> None:
        """Print a fired reminder as a single highlighted line."""
        now = now or datetime.now()
        line = Text()
        line.append("⏰ ", style="magenta")
        line.append(reminder.message(now), style="bold")
        if reminder.description:
            line.append(f"  {reminder.description.splitlines()[0]}", style="dim")
        self.console.print(line)

    # ─────────────────────────────────────────────────────────────────────────
    # Private helpers
    # ─────────────────────────────────────────────────────────────────────────

    def _print_header(self, title: str | None, subtitle: str | None) -> None:
        self.console.print()
        self.console.print("━" * 40)
        if title:
            header_text = f"  {title}"
            if subtitle:
                header_text += f" [dim]({subtitle})[/dim]"
            self.console.print(f"[bold]{header_text}[/bold]")
        self.console.print("━" * 40)

    def _print_footer(self, count: int) -> None:
        self.console.print()
        self.console.print("─" * 40)
        entry_word = "entry" if count == 1 else "entries"
        self.console.print(f"[dim]{count} {entry_word}[/dim]")
        self.console.print()

    def _format_day_label(self, entry_date: date, today: date) -> str:
        """Format a date like "TODAY (Thu Jan 16)" or "Mon Jan 19"."""
        delta = (entry_date - today).days

        if delta == 0:
            return f"TODAY ({entry_date.strftime('%a %b %d')})"
        elif delta == 1:
            return f"Tomorrow ({entry_date.strftime('%a %b %d')})"
        elif delta == -1:
            return f"Yesterday ({entry_date.strftime('%a %b %d')})"
        else:
            return entry_date.strftime("%a %b %d %Y")

    def _render_entry(self, entry: Entry) -> None:
        line = Text()
        line.append("  ")
        line.append(f"{format_time_range(entry.start, entry.end):<16}", style="blue")
        line.append(entry.title)
        line.append(f" [{entry.category}]", style="italic dim")

        reminder = format_reminder(entry.reminder_minutes_before)
        if reminder:
            line.append(f" ⏰ {reminder}", style="magenta")
        if entry.recurrence_rule:
            line.append(" ↻", style="dim")

        self.console.print(line)
