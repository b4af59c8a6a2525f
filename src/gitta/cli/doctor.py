"""
Gitta CLI - Doctor command.

Detect and optionally repair sprints whose folder prefix disagrees with
their status record, and check the Current pointer.
"""

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from gitta.cli.common import interruptible, is_debug, print_json, require_project_root
from gitta.cli.errors import ExitCode, handle_gitta_error
from gitta.core.errors import GittaError
from gitta.core.sprints.doctor import PointerHealth, SprintDoctor
from gitta.core.sprints.models import Inconsistency, RepairResult

app = typer.Typer(
    name="doctor",
    help="Detect and repair sprint status inconsistencies",
    no_args_is_help=False,
)

console = Console()


def _inconsistency_json(item: Inconsistency) -> dict[str, object]:
    return item.model_dump(mode="json")


def _pointer_json(health: PointerHealth) -> dict[str, object]:
    data = health.model_dump(mode="json")
    data["healthy"] = health.healthy
    return data


def _report(found: list[Inconsistency]) -> None:
    noun = "inconsistency" if len(found) == 1 else "inconsistencies"
    console.print(f"[red]✗[/red] Found {len(found)} {noun}:\n")
    for index, item in enumerate(found, start=1):
        console.print(f"{index}. Sprint \"{escape(item.folder_name)}\"")
        console.print(
            f"   - Folder name: {escape(item.folder_name)} ({item.folder_status.value})"
        )
        console.print(f"   - Status file: {item.file_status.value}")
        console.print(f"   → Should rename to: {escape(item.expected_name)}\n")


def _report_repairs(result: RepairResult) -> None:
    for old, new in result.repaired:
        console.print(f"[green]✓[/green] Renamed {escape(old)} to {escape(new)}")
    if result.failed_count:
        console.print(f"\n[red]✗[/red] {result.failed_count} repair(s) failed:")
        for error in result.errors:
            console.print(f"  - {escape(error)}", soft_wrap=True)
    elif result.repaired_count:
        console.print("\n[green]✓[/green] All inconsistencies repaired")


def _report_pointer(health: PointerHealth) -> None:
    if health.healthy:
        console.print(f"[green]✓[/green] {escape(health.message)}")
    else:
        console.print(f"[red]✗[/red] {escape(health.message)}")


@app.callback(invoke_without_command=True)
def doctor(
    ctx: typer.Context,
    fix: bool = typer.Option(
        False,
        "--fix",
        help="Rename folders to match their status records",
    ),
    sprint: str | None = typer.Option(
        None,
        "--sprint",
        help="Check one sprint only (folder name or ID)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    Detect and repair sprint status inconsistencies.

    Compares each sprint's folder prefix with its .gitta/status record.
    The record wins: --fix renames folders, it never rewrites records.
    Also checks that the Current pointer targets the active sprint.

    Examples:
        gitta doctor                      # Report only
        gitta doctor --fix                # Report and repair
        gitta doctor --sprint Sprint_24   # Check one sprint
        gitta doctor --json               # Machine-readable output
    """
    debug = is_debug(ctx)
    project_dir = require_project_root()
    service = SprintDoctor(project_dir)

    try:
        with interruptible() as cancel:
            found = service.detect(cancel=cancel, sprint=sprint)
            result = service.repair(found, cancel=cancel) if fix and found else None
        health = service.check_current_pointer()
    except GittaError as e:
        handle_gitta_error(e, debug=debug)

    remaining = result.failed_count if result is not None else len(found)

    if json_output:
        output: dict[str, object] = {
            "status": "inconsistencies_found" if remaining else "ok",
            "inconsistencies": [_inconsistency_json(item) for item in found],
            "current_link": _pointer_json(health),
            "current_link_valid": health.healthy,
        }
        if result is not None:
            output["repair"] = result.model_dump(mode="json")
        print_json(output)
        raise typer.Exit(ExitCode.GENERAL_ERROR if remaining else ExitCode.SUCCESS)

    console.print(Panel("[bold]Gitta Doctor[/bold] - Sprint Consistency", expand=False))

    if not found:
        console.print("[green]✓[/green] All sprints are consistent")
    else:
        _report(found)
        if result is None:
            console.print("[dim]Run 'gitta doctor --fix' to repair these issues[/dim]")
        else:
            console.print("[bold]Repairing inconsistencies:[/bold]")
            _report_repairs(result)

    _report_pointer(health)

    raise typer.Exit(ExitCode.GENERAL_ERROR if remaining else ExitCode.SUCCESS)
