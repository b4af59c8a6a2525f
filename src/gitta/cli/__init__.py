"""
Gitta CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys

import typer
from rich.console import Console

from gitta import __version__
from gitta.cli import doctor, ids, sprint
from gitta.cli.common import load_project_config
from gitta.core.config.env import load_layered_env
from gitta.utils.project import find_project_root

# Create the main Typer app
app = typer.Typer(
    name="gitta",
    help="Sprint lifecycle and consistency tooling",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def configure_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    Gitta - sprint lifecycle and consistency tooling.

    Sprints are folders under tasks/sprints (or sprints/) whose name starts
    with a status prefix: ! active, + ready, @ planning, ~ archived. Each
    sprint's .gitta/status record is the source of truth.

    Common Workflows:
        gitta sprint plan Payments     # New planning sprint
        gitta sprint start 24          # Activate Sprint_24
        gitta sprint list              # See every sprint
        gitta doctor --fix             # Repair folder names
        gitta id next US               # Allocate a story ID
    """
    # Precedence: OS env > project .env > user .env
    project_dir = find_project_root()
    load_layered_env(project_dir=project_dir)

    if debug:
        level = logging.DEBUG
    else:
        config = load_project_config(project_dir)
        level = getattr(logging, config.log_level.upper())
    configure_logging(level)

    ctx.obj = {"debug": debug}


app.add_typer(sprint.app, name="sprint")
app.add_typer(doctor.app, name="doctor")
app.add_typer(ids.app, name="id")


@app.command()
def version() -> None:
    """Show gitta version and exit."""
    console.print(f"gitta version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
