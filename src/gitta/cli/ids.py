"""
Gitta CLI - ID commands.

Allocate story identifiers from the shared counter file.
"""

import typer
from rich.console import Console

from gitta.cli.common import (
    interruptible,
    is_debug,
    load_project_config,
    print_json,
    require_project_root,
)
from gitta.cli.errors import handle_gitta_error
from gitta.core.errors import GittaError
from gitta.core.ids.counters import IDCounter

app = typer.Typer(
    name="id",
    help="Allocate story IDs",
    no_args_is_help=True,
)

console = Console()


@app.command(name="next")
def next_id(
    ctx: typer.Context,
    prefix: str = typer.Argument(..., help="Two uppercase letters, e.g. US or BG"),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    Allocate the next ID for PREFIX.

    Safe to run from several terminals at once: every call gets a distinct
    number.

    Examples:
        gitta id next US          # US-1, US-2, ...
        gitta id next BG --json
    """
    project_dir = require_project_root()
    config = load_project_config(project_dir)

    try:
        with interruptible() as cancel:
            new_id = IDCounter(project_dir, config.ids).generate_next_id(prefix, cancel=cancel)
    except GittaError as e:
        handle_gitta_error(e, debug=is_debug(ctx))

    if json_output:
        print_json({"id": new_id, "prefix": prefix})
    else:
        console.print(new_id)
