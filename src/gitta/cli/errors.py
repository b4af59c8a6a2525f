"""
Standardized error handling and exit codes for the gitta CLI.

Core operations raise GittaError subclasses tagged with an ErrorKind. This
module turns them into a consistent message, a suggested next step, and
an exit code.
"""

import traceback
from enum import IntEnum
from typing import NoReturn

import typer
from rich.console import Console

from gitta.core.errors import ActivationError, ErrorKind, GittaError

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for gitta CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error, or problems found that need attention."""

    USER_ERROR = 2
    """User input or configuration error (actionable by user)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


_EXIT_CODES = {
    ErrorKind.NOT_FOUND: ExitCode.USER_ERROR,
    ErrorKind.ALREADY_EXISTS: ExitCode.USER_ERROR,
    ErrorKind.INVALID_INPUT: ExitCode.USER_ERROR,
    ErrorKind.ILLEGAL_TRANSITION: ExitCode.USER_ERROR,
    ErrorKind.CORRUPTION: ExitCode.GENERAL_ERROR,
    ErrorKind.LOCK_TIMEOUT: ExitCode.GENERAL_ERROR,
    ErrorKind.IO_FAILURE: ExitCode.GENERAL_ERROR,
    ErrorKind.CANCELLED: ExitCode.SIGINT,
}


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
    doc_url: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it
        doc_url: Optional documentation URL for more help

    Example:
        >>> print_error(
        ...     "Sprint 'Sprint_99' not found",
        ...     reason="Only Ready or Planning sprints can be started",
        ...     solution="gitta sprint list",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}", soft_wrap=True)

    if reason:
        console.print(f"[dim]{reason}[/dim]", soft_wrap=True)

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}", soft_wrap=True)

    if doc_url:
        console.print(f"[dim]Docs: {doc_url}[/dim]")


def exit_code_for(error: GittaError) -> ExitCode:
    return _EXIT_CODES.get(error.kind, ExitCode.GENERAL_ERROR)


def suggest_solution(error: GittaError) -> str | None:
    """Next step to offer the user for a core error, if there is one."""
    if isinstance(error, ActivationError):
        if error.completed_steps:
            return "gitta doctor --fix  # reconcile folder names with status records"
        return None

    kind = error.kind
    if kind is ErrorKind.NOT_FOUND:
        return "gitta sprint list  # see available sprints and their status"
    if kind is ErrorKind.ALREADY_EXISTS:
        return "choose a different sprint ID, or remove the existing folder"
    if kind is ErrorKind.LOCK_TIMEOUT:
        target = error.path or "the .lock marker"
        return f"if no other gitta process is running, delete {target} and retry"
    if kind is ErrorKind.CORRUPTION:
        target = error.path or "the file"
        return f"inspect and repair {target} by hand"
    if kind is ErrorKind.IO_FAILURE:
        return "check permissions and close programs using the sprint directory"
    return None


def handle_gitta_error(error: GittaError, *, debug: bool = False) -> NoReturn:
    """
    Print a core error and exit with the matching code.

    Raises:
        typer.Exit: Always.
    """
    if error.kind is ErrorKind.CANCELLED:
        console.print("[yellow]Cancelled.[/yellow]")
    else:
        print_error(str(error), solution=suggest_solution(error))

    if debug:
        console.print(traceback.format_exc(), style="dim", markup=False)

    raise typer.Exit(exit_code_for(error))


def print_not_project_root_error() -> None:
    """Print error when not inside a gitta project."""
    print_error(
        "Not in a gitta project directory",
        reason="Could not find .gitta/ or .git/ in this directory or its parents",
        solution="cd to your repository root",
    )
