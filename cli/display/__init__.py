"""Display module for rendering agenda output.

Provides:
- console: Shared Rich console instance
- EntryRenderer: Rich-based entry and reminder display
- Formatting functions for times, reminder lead times, and file sizes
"""

from cli.display.console import console
from cli.display.entry_renderer import EntryRenderer
from cli.display.formatters import (
    format_file_size,
    format_relative_time,
    format_reminder,
    format_time_range,
)

__all__ = [
    "console",
    "EntryRenderer",
    "format_file_size",
    "format_relative_time",
    "format_reminder",
    "format_time_range",
]
