"""
Sprint activation workflow.

Activating a Ready or Planning sprint archives whatever sprint is currently
active, promotes the target, and repoints `Current`. For each sprint the
status record is written before the folder is renamed, so an interrupted
run leaves the record ahead of the prefix, which the doctor can repair.

Nothing is rolled back. A failure raises ActivationError naming the step
that failed and the steps already on disk.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import NamedTuple

from gitta.core.cancel import CancelToken, check_cancelled
from gitta.core.errors import ActivationError, CancelledError, GittaError
from gitta.core.sprints.models import ActivationResult, Sprint, SprintStatus
from gitta.core.sprints.pointer import POINTER_NAME, set_current
from gitta.core.sprints.repository import SprintRepository
from gitta.core.sprints.status_file import read_status, write_status
from gitta.core.sprints.transitions import validate_transition
from gitta.core.workspace import resolve_workspace

logger = logging.getLogger(__name__)


class ActivationStep(str, Enum):
    """Durable steps of the activation workflow, in execution order."""

    ARCHIVE_STATUS = "archive_status"
    ARCHIVE_RENAME = "archive_rename"
    ACTIVATE_STATUS = "activate_status"
    ACTIVATE_RENAME = "activate_rename"
    UPDATE_POINTER = "update_pointer"
    CREATE_DIRECTORY = "create_directory"


_FAILURE_HINTS = {
    ActivationStep.ARCHIVE_STATUS: "no changes were made",
    ActivationStep.ARCHIVE_RENAME: (
        "previous sprint's status updated, but folder rename failed"
    ),
    ActivationStep.ACTIVATE_STATUS: "sprint status record not updated",
    ActivationStep.ACTIVATE_RENAME: "status updated, but folder rename failed",
    ActivationStep.UPDATE_POINTER: "sprint activated, but Current pointer update failed",
    ActivationStep.CREATE_DIRECTORY: "previous sprint archived, but new sprint directory not created",
}


class ActivationPreview(NamedTuple):
    """What activate() would do, computed without touching the disk."""

    target: Sprint
    target_status: SprintStatus
    would_archive: Sprint | None


class StepRecorder:
    """
    Runs workflow steps in order and turns failures into ActivationError.

    Cancellation and GittaError failures inside a step are wrapped with the
    step name and every step completed so far.
    """

    def __init__(self, sprint_label: str) -> None:
        self.sprint_label = sprint_label
        self.completed: list[ActivationStep] = []

    def fail(self, step: ActivationStep, error: GittaError) -> ActivationError:
        if self.completed:
            hint = _FAILURE_HINTS[step] + "; run `gitta doctor --fix`"
        else:
            hint = "no changes were made"
        return ActivationError(
            f"failed to activate sprint {self.sprint_label} at step {step.value} "
            f"({hint}): {error}",
            step=step,
            completed_steps=self.completed,
            path=error.path,
            operation=step.value,
            cause=error,
        )

    def run(self, step: ActivationStep, action, *args, **kwargs):  # type: ignore[no-untyped-def]
        try:
            result = action(*args, **kwargs)
        except CancelledError as e:
            if not self.completed:
                raise
            raise self.fail(step, e) from e
        except GittaError as e:
            raise self.fail(step, e) from e
        self.completed.append(step)
        logger.debug("Activation step %s done", step.value)
        return result


def archive_active(
    repo: SprintRepository,
    active: Sprint,
    steps: StepRecorder,
    cancel: CancelToken | None = None,
) -> Sprint:
    """
    Archive the currently active sprint: status record first, then rename.

    Returns:
        The archived sprint at its new path.
    """
    identifier, description = active.name, active.description

    steps.run(
        ActivationStep.ARCHIVE_STATUS,
        write_status,
        active.directory_path,
        SprintStatus.ARCHIVED,
        cancel,
    )
    new_path = steps.run(
        ActivationStep.ARCHIVE_RENAME,
        repo.rename_with_status,
        active.directory_path,
        SprintStatus.ARCHIVED,
        identifier,
        description,
        cancel,
    )
    logger.info("Archived sprint %s", identifier)

    return Sprint(
        name=identifier,
        description=description,
        directory_path=new_path,
        status=SprintStatus.ARCHIVED,
    )


class SprintActivationService:
    """
    Promote a Ready or Planning sprint to Active.

    Example:
        >>> service = SprintActivationService(Path("/repo"))
        >>> result = service.activate("24")
        >>> result.activated.folder_name
        '!Sprint_24_Login'
    """

    def __init__(self, project_dir: Path, sprints_dir: Path | None = None) -> None:
        self.project_dir = project_dir
        self._sprints_dir = sprints_dir

    @property
    def sprints_dir(self) -> Path:
        if self._sprints_dir is None:
            self._sprints_dir = resolve_workspace(self.project_dir).sprints_path
        return self._sprints_dir

    def _resolve_target(
        self, repo: SprintRepository, sprint_id: str, cancel: CancelToken | None
    ) -> tuple[Sprint, SprintStatus]:
        target = repo.resolve_by_id(sprint_id, cancel)
        status = read_status(target.directory_path, cancel)
        validate_transition(status, SprintStatus.ACTIVE)
        return target, status

    def preview(self, sprint_id: str, cancel: CancelToken | None = None) -> ActivationPreview:
        """
        Report what activate() would do without changing anything.

        Raises:
            NotFoundError: If no Ready or Planning sprint matches.
            IllegalTransitionError: If the target cannot become active.
        """
        repo = SprintRepository(self.sprints_dir)
        target, status = self._resolve_target(repo, sprint_id, cancel)
        return ActivationPreview(
            target=target,
            target_status=status,
            would_archive=repo.find_active(cancel),
        )

    def activate(self, sprint_id: str, cancel: CancelToken | None = None) -> ActivationResult:
        """
        Activate the sprint matching `sprint_id`.

        Steps, in order:
            1. resolve the target among Ready/Planning sprints
            2. validate the transition (no mutation if illegal)
            3. archive the current active sprint, if any
            4. write the target's status record, then rename its folder
            5. point `Current` at the target

        Raises:
            NotFoundError: If no Ready or Planning sprint matches.
            IllegalTransitionError: If the target cannot become active.
            ActivationError: If a step fails after the workflow started.
            CancelledError: If `cancel` fires before any mutation.
        """
        check_cancelled(cancel, "activate sprint")

        sprints_dir = self.sprints_dir
        repo = SprintRepository(sprints_dir)
        target, _ = self._resolve_target(repo, sprint_id, cancel)
        active = repo.find_active(cancel)

        steps = StepRecorder(target.name)

        archived = None
        if active is not None:
            archived = archive_active(repo, active, steps, cancel)

        identifier, description = target.name, target.description
        steps.run(
            ActivationStep.ACTIVATE_STATUS,
            write_status,
            target.directory_path,
            SprintStatus.ACTIVE,
            cancel,
        )
        new_path = steps.run(
            ActivationStep.ACTIVATE_RENAME,
            repo.rename_with_status,
            target.directory_path,
            SprintStatus.ACTIVE,
            identifier,
            description,
            cancel,
        )
        steps.run(ActivationStep.UPDATE_POINTER, set_current, sprints_dir, new_path)

        logger.info("Activated sprint %s", identifier)

        return ActivationResult(
            activated=Sprint(
                name=identifier,
                description=description,
                directory_path=new_path,
                status=SprintStatus.ACTIVE,
            ),
            archived=archived,
            pointer_path=sprints_dir / POINTER_NAME,
        )
