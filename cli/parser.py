"""Typer application and command routing."""

import typer
from typing_extensions import Annotated

from agenda import __version__
from cli import setup_logging
from cli.commands import add, config, export, info, ingest, ls, rm, watch
from cli.context import CLIContext, set_context

app = typer.Typer(
    name="agenda",
    help="Personal calendar stored as a single ICS or VCS file.",
    no_args_is_help=True,
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"agenda {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show info messages"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Only show errors"),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version", callback=_version_callback, is_eager=True, help="Show version"
        ),
    ] = False,
) -> None:
    """Personal calendar stored as a single ICS or VCS file."""
    ctx = CLIContext(verbose=verbose, quiet=quiet)
    set_context(ctx)
    setup_logging(verbose=verbose, quiet=quiet, config=ctx.config)


app.command("ls")(ls)
app.command("add")(add)
app.command("rm")(rm)
app.command("import")(ingest)
app.command("export")(export)
app.command("info")(info)
app.command("config")(config)
app.command("watch")(watch)
