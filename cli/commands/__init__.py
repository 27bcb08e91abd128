"""CLI commands package."""

from cli.commands.add import add
from cli.commands.config import config
from cli.commands.export import export
from cli.commands.info import info
from cli.commands.ingest import ingest
from cli.commands.ls import ls
from cli.commands.rm import rm
from cli.commands.watch import watch

__all__ = [
    "add",
    "config",
    "export",
    "info",
    "ingest",
    "ls",
    "rm",
    "watch",
]
