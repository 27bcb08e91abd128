"""CLI utilities for argument parsing."""

from datetime import datetime

import typer

DATETIME_FORMATS = ("%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M:%S")


def parse_datetime(value: str) -> datetime:
    """Parse a local date-time given as YYYY-MM-DDTHH:MM (seconds optional).

    Raises:
        typer.BadParameter: If the format is invalid.
    """
    for fmt in DATETIME_FORMATS:
        try:
            return datetime.strptime(value.strip(), fmt)
        except ValueError:
            continue
    raise typer.BadParameter(
        f"Invalid date-time: {value}. Use YYYY-MM-DDTHH:MM."
    )
