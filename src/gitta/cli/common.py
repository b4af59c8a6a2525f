"""
Helpers shared by gitta CLI commands.
"""

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console

from gitta.cli.errors import ExitCode, print_error, print_not_project_root_error
from gitta.core.cancel import CancelToken
from gitta.core.config import GittaConfig, load_config
from gitta.utils.project import find_project_root

console = Console()


def is_debug(ctx: typer.Context) -> bool:
    return bool(ctx.obj.get("debug", False)) if ctx.obj else False


def require_project_root() -> Path:
    """Return the project root or exit with a user error."""
    project_dir = find_project_root()
    if project_dir is None:
        print_not_project_root_error()
        raise typer.Exit(ExitCode.USER_ERROR)
    return project_dir


def load_project_config(project_dir: Path | None) -> GittaConfig:
    """Load layered config, exiting with a user error if it does not validate."""
    try:
        return load_config(project_dir)
    except ValidationError as e:
        print_error(
            "Invalid gitta configuration",
            reason=str(e),
            solution="fix .gitta/config.json or ~/.config/gitta/config.json",
        )
        raise typer.Exit(ExitCode.USER_ERROR)


def print_json(data: Any) -> None:
    console.print(json.dumps(data, indent=2, default=str), soft_wrap=True, markup=False)


@contextmanager
def interruptible() -> Iterator[CancelToken]:
    """Route Ctrl+C into a CancelToken for the duration of a command."""
    token = CancelToken()
    token.register()
    try:
        yield token
    finally:
        token.unregister()
