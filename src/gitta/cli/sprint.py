"""
Gitta CLI - Sprint commands.

Start, plan, and list sprints.
"""

import logging
from datetime import date, datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gitta.cli.common import (
    interruptible,
    is_debug,
    load_project_config,
    print_json,
    require_project_root,
)
from gitta.cli.errors import ExitCode, handle_gitta_error, print_error
from gitta.core.errors import GittaError
from gitta.core.sprints.activation import SprintActivationService
from gitta.core.sprints.models import Sprint, SprintStatus
from gitta.core.sprints.planning import SprintPlanService, SprintStartService
from gitta.core.sprints.repository import SprintRepository
from gitta.core.sprints.status_file import read_status_view
from gitta.core.workspace import resolve_workspace

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="sprint",
    help="Start, plan, and list sprints",
    no_args_is_help=True,
)

console = Console()

_STATUS_COLORS = {
    SprintStatus.ACTIVE: "green",
    SprintStatus.READY: "cyan",
    SprintStatus.PLANNING: "yellow",
    SprintStatus.ARCHIVED: "dim",
}


def _sprint_json(sprint: Sprint) -> dict[str, object]:
    data = sprint.model_dump(mode="json", exclude={"created_at", "updated_at"})
    data["folder"] = sprint.folder_name
    return data


def _parse_start_date(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        print_error(
            f"Invalid start date {value!r}",
            reason="Dates must be written as YYYY-MM-DD",
            solution="gitta sprint start --start-date 2025-01-06",
        )
        raise typer.Exit(ExitCode.USER_ERROR)


@app.command()
def start(
    ctx: typer.Context,
    sprint_id: str | None = typer.Argument(
        None,
        help="Ready or Planning sprint to activate (partial IDs match)",
    ),
    duration: str | None = typer.Option(
        None,
        "--duration",
        "-d",
        help="Duration of a new sprint, e.g. 2w or 10d",
    ),
    start_date: str | None = typer.Option(
        None,
        "--start-date",
        help="Start date of a new sprint (YYYY-MM-DD, default today)",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show what would be done without making changes",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    Activate a sprint, or create a new active sprint.

    With a sprint ID, the matching Ready or Planning sprint becomes Active
    and the previous active sprint is archived. Without one, a new
    `Sprint-NN` sprint is created and made active.

    Examples:
        gitta sprint start 24               # Activate Sprint_24
        gitta sprint start                  # Create and activate the next sprint
        gitta sprint start --duration 10d   # New 10-day sprint
        gitta sprint start 24 --dry-run     # Preview only
    """
    debug = is_debug(ctx)
    project_dir = require_project_root()
    config = load_project_config(project_dir)

    try:
        if sprint_id:
            _activate(project_dir, sprint_id, dry_run=dry_run, json_output=json_output)
        else:
            _start_new(
                project_dir,
                duration=duration or config.sprints.default_duration,
                start_date=_parse_start_date(start_date),
                dry_run=dry_run,
                json_output=json_output,
            )
    except GittaError as e:
        handle_gitta_error(e, debug=debug)


def _activate(project_dir: Path, sprint_id: str, *, dry_run: bool, json_output: bool) -> None:
    service = SprintActivationService(project_dir)

    if dry_run:
        preview = service.preview(sprint_id)
        if json_output:
            print_json(
                {
                    "dry_run": True,
                    "action": "activate",
                    "target": {
                        "sprint_id": preview.target.name,
                        "folder": preview.target.folder_name,
                        "status": preview.target_status.value,
                    },
                    "would_archive": (
                        preview.would_archive.folder_name if preview.would_archive else None
                    ),
                }
            )
            return
        console.print(
            f"{escape('[DRY RUN]')} Would activate sprint: {preview.target.folder_name}"
        )
        if preview.would_archive:
            console.print(
                f"{escape('[DRY RUN]')} Would archive current active sprint: "
                f"{preview.would_archive.folder_name}"
            )
        return

    with interruptible() as cancel:
        result = service.activate(sprint_id, cancel=cancel)

    if json_output:
        output: dict[str, object] = {"activated": _sprint_json(result.activated)}
        if result.archived:
            output["archived"] = _sprint_json(result.archived)
        output["current_link"] = str(result.pointer_path)
        print_json(output)
        return

    console.print(f"[green]✓[/green] Activated sprint: {result.activated.folder_name}")
    if result.archived:
        console.print(
            f"[green]✓[/green] Archived previous active sprint: {result.archived.folder_name}"
        )
    console.print("[green]✓[/green] Current sprint link updated")


def _start_new(
    project_dir: Path,
    *,
    duration: str,
    start_date: date | None,
    dry_run: bool,
    json_output: bool,
) -> None:
    service = SprintStartService(project_dir)

    if dry_run:
        name = service.preview_name()
        if json_output:
            print_json({"dry_run": True, "action": "create", "would_create": {"name": name}})
        else:
            console.print(f"{escape('[DRY RUN]')} Would create sprint: {name}")
        return

    with interruptible() as cancel:
        sprint = service.start_new_sprint(
            duration=duration, start_date=start_date, cancel=cancel
        )

    if json_output:
        print_json(_sprint_json(sprint))
        return

    console.print(f"[green]✓[/green] Created sprint: {sprint.name}")
    console.print(f"[green]✓[/green] Start date: {sprint.start_date}")
    console.print(f"[green]✓[/green] End date: {sprint.end_date}")
    console.print(f"[green]✓[/green] Duration: {sprint.duration}")
    console.print("[green]✓[/green] Current sprint link updated")


@app.command()
def plan(
    ctx: typer.Context,
    description: str = typer.Argument(..., help="Short description, e.g. 'Payments'"),
    sprint_id: str | None = typer.Option(
        None,
        "--id",
        help="Sprint ID to use (default: next Sprint_NN)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    Create a sprint in Planning status.

    Examples:
        gitta sprint plan Payments
        gitta sprint plan Payments --id Sprint_30
    """
    project_dir = require_project_root()

    try:
        with interruptible() as cancel:
            sprint = SprintPlanService(project_dir).create_planning_sprint(
                description, sprint_id=sprint_id, cancel=cancel
            )
    except GittaError as e:
        handle_gitta_error(e, debug=is_debug(ctx))

    if json_output:
        print_json(_sprint_json(sprint))
        return

    console.print(f"[green]Created:[/green] {sprint.folder_name}")
    console.print(f"  Start it with: gitta sprint start {sprint.name}")


@app.command(name="list")
def list_sprints(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    List sprints with their folder and status-record status.

    Examples:
        gitta sprint list
        gitta sprint list --json
    """
    project_dir = require_project_root()

    rows: list[dict[str, object]] = []
    try:
        repo = SprintRepository(resolve_workspace(project_dir).sprints_path)
        for name in repo.list_sprints():
            row: dict[str, object] = {"folder": name}
            try:
                view = read_status_view(repo.sprint_path(name))
            except GittaError as e:
                logger.warning("Cannot read status of %s: %s", name, e)
                row.update(status=None, folder_status=None, file_status=None, consistent=False)
            else:
                row.update(
                    status=view.effective_status.value,
                    folder_status=view.folder_status.value,
                    file_status=view.file_status.value if view.file_status else None,
                    consistent=view.is_consistent,
                )
            rows.append(row)
    except GittaError as e:
        handle_gitta_error(e, debug=is_debug(ctx))

    if json_output:
        print_json(rows)
        return

    if not rows:
        console.print("[dim]No sprints found.[/dim]")
        console.print("  Create one with: gitta sprint plan <description>")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Sprint", overflow="fold")
    table.add_column("Status", width=10)
    table.add_column("Record", width=10)
    table.add_column("OK", width=3, justify="center")

    for row in rows:
        status = row["status"]
        if status is None:
            status_cell = "[red]unreadable[/red]"
        else:
            color = _STATUS_COLORS[SprintStatus(status)]
            status_cell = f"[{color}]{status}[/{color}]"
        table.add_row(
            escape(str(row["folder"])),
            status_cell,
            str(row["file_status"] or "-"),
            "[green]✓[/green]" if row["consistent"] else "[red]✗[/red]",
        )

    console.print(table)
