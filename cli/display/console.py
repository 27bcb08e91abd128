"""Shared Rich console instance for terminal output."""

from rich.console import Console

# Shared by all commands and renderers
console = Console()
