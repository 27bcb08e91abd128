"""Display configuration file path and settings."""

import os
from pathlib import Path

from rich.table import Table

from agenda.config import AgendaConfig
from cli.context import get_context
from cli.display import console


def _find_env_file() -> Path | None:
    """Find .env file by searching current directory and parent directories."""
    current = Path.cwd()

    for path in [current] + list(current.parents):
        env_file = path / ".env"
        if env_file.exists():
            return env_file.resolve()

    return None


def _get_source(env_key: str, value, default_value) -> str:
    """Determine the source of a config value."""
    if env_key in os.environ:
        return "env"
    elif value != default_value:
        return "override"
    else:
        return "default"


def _create_table(setting_width: int, source_width: int) -> Table:
    """Create a styled table for config sections with fixed column widths."""
    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("SETTING", style="cyan", min_width=setting_width, no_wrap=True)
    table.add_column("SOURCE", style="dim", min_width=source_width, no_wrap=True)
    table.add_column("VALUE")
    return table


def config() -> None:
    """Display configuration file path and effective settings."""
    env_file = _find_env_file()
    default_config = AgendaConfig()
    cfg = get_context().config

    def row(name: str, env_key: str, display: str | None = None):
        value = getattr(cfg, name)
        return (
            name,
            display if display is not None else str(value),
            _get_source(env_key, value, getattr(default_config, name)),
        )

    sections: list[tuple[str, list[tuple[str, str, str]]]] = [
        (
            "Storage Paths",
            [
                row(
                    "calendar_path",
                    "AGENDA_CALENDAR_PATH",
                    str(cfg.calendar_path.resolve()),
                ),
                ("backup_path", str(cfg.backup_path.resolve()), "derived"),
                row("log_dir", "AGENDA_LOG_DIR", str(cfg.log_dir.resolve())),
                row("log_filename", "AGENDA_LOG_FILENAME"),
            ],
        ),
        (
            "Date Handling",
            [
                row(
                    "ics_date_fallback",
                    "AGENDA_ICS_DATE_FALLBACK",
                    cfg.ics_date_fallback.value,
                ),
                row(
                    "vcs_date_fallback",
                    "AGENDA_VCS_DATE_FALLBACK",
                    cfg.vcs_date_fallback.value,
                ),
            ],
        ),
        (
            "Timers",
            [
                row("change_poll_seconds", "AGENDA_CHANGE_POLL_SECONDS"),
                row("reminder_tick_seconds", "AGENDA_REMINDER_TICK_SECONDS"),
            ],
        ),
    ]

    # Calculate max widths across all sections
    all_rows = [r for _, rows in sections for r in rows]
    setting_width = max(max(len(r[0]) for r in all_rows), len("SETTING"))
    source_width = max(max(len(r[2]) for r in all_rows), len("SOURCE"))

    console.print()
    console.print("━" * 50)
    console.print("[bold]  Configuration[/bold]")
    console.print("━" * 50)

    console.print("\n[bold]Config File:[/bold]")
    if env_file:
        console.print(f"  [cyan]{env_file}[/cyan]")
    else:
        console.print("  [dim]Not found (using defaults and environment variables)[/dim]")

    for section_name, rows in sections:
        console.print(f"\n[bold]{section_name}:[/bold]")
        table = _create_table(setting_width, source_width)
        for setting, value, source in rows:
            table.add_row(setting, source, value)
        console.print(table)

    console.print()
