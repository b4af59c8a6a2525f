"""
Creating sprints: planning sprints for later, and new active sprints.

Planning sprints are named `@Sprint_NN_<description>`; sprints started
from scratch are named `!Sprint-NN`. Both get a status record on creation.
"""

from __future__ import annotations

import logging
import re
import shutil
from datetime import date, timedelta
from pathlib import Path
from typing import Iterable

from gitta.core.cancel import CancelToken, check_cancelled
from gitta.core.errors import GittaError, InvalidInputError
from gitta.core.sprints.activation import ActivationStep, StepRecorder, archive_active
from gitta.core.sprints.folder_name import encode, strip_status_prefix, validate_sprint_label
from gitta.core.sprints.models import Sprint, SprintStatus
from gitta.core.sprints.pointer import set_current
from gitta.core.sprints.repository import SprintRepository, ensure_no_identifier_clash
from gitta.core.sprints.status_file import write_status
from gitta.core.workspace import resolve_workspace

logger = logging.getLogger(__name__)

DEFAULT_DURATION = "2w"
DEFAULT_DURATION_DAYS = 14

_SPRINT_NUMBER = re.compile(r"Sprint[_-](\d+)")
_DURATION = re.compile(r"^(\d+)([wWdD])$")


def parse_duration(duration: str) -> int:
    """
    Convert a duration such as "2w" or "10d" into days.

    An empty string means the default of two weeks.

    Raises:
        InvalidInputError: If the format is not <positive number><w|d>.
    """
    if not duration:
        return DEFAULT_DURATION_DAYS

    match = _DURATION.match(duration.strip())
    if match is None:
        raise InvalidInputError(
            f"invalid duration format {duration!r}: must be <number><unit>, e.g. 2w or 10d"
        )

    amount = int(match.group(1))
    if amount <= 0:
        raise InvalidInputError(f"duration must be positive (got {duration!r})")

    if match.group(2).lower() == "w":
        return amount * 7
    return amount


def calculate_end_date(start_date: date, duration: str) -> date:
    return start_date + timedelta(days=parse_duration(duration))


def next_sprint_id(existing: Iterable[str], separator: str = "_") -> str:
    """
    Next sequential sprint identifier after the highest number in use.

    Example:
        >>> next_sprint_id(["~Sprint_01_Setup", "!Sprint-03"])
        'Sprint_04'
    """
    highest = 0
    for name in existing:
        match = _SPRINT_NUMBER.search(strip_status_prefix(name))
        if match:
            highest = max(highest, int(match.group(1)))
    return f"Sprint{separator}{highest + 1:02d}"


def _validate_identifier(identifier: str) -> None:
    if not identifier:
        raise InvalidInputError("sprint name cannot be empty")
    if any(part in identifier for part in ("/", "\\", "..")):
        raise InvalidInputError(
            "sprint name cannot contain path separators or parent directory references"
        )
    validate_sprint_label(identifier)


class _SprintService:
    def __init__(self, project_dir: Path, sprints_dir: Path | None = None) -> None:
        self.project_dir = project_dir
        self._sprints_dir = sprints_dir

    @property
    def sprints_dir(self) -> Path:
        if self._sprints_dir is None:
            self._sprints_dir = resolve_workspace(self.project_dir).sprints_path
        return self._sprints_dir

    @property
    def repository(self) -> SprintRepository:
        return SprintRepository(self.sprints_dir)


class SprintPlanService(_SprintService):
    """Create sprints in Planning status."""

    def create_planning_sprint(
        self,
        description: str,
        sprint_id: str | None = None,
        cancel: CancelToken | None = None,
    ) -> Sprint:
        """
        Create `@<id>_<description>` with a planning status record.

        Args:
            description: Required; may not contain status prefix characters
            sprint_id: Identifier to use; the next `Sprint_NN` if omitted
            cancel: Optional cancellation token

        Raises:
            InvalidInputError: On an empty or reserved-character description or ID.
            AlreadyExistsError: If a sprint with the same ID exists.
            IOFailureError: If the directory or status record cannot be written.
        """
        check_cancelled(cancel, "plan sprint")

        description = description.strip()
        if not description:
            raise InvalidInputError("sprint description cannot be empty")
        validate_sprint_label(description)

        repo = self.repository
        if not sprint_id:
            sprint_id = next_sprint_id(repo.list_sprints(cancel))
        _validate_identifier(sprint_id)
        ensure_no_identifier_clash(repo, sprint_id)

        folder_name = encode(SprintStatus.PLANNING, sprint_id, description)
        sprint = repo.create_sprint(
            folder_name,
            sprint_id,
            description=description,
            status=SprintStatus.PLANNING,
        )

        try:
            write_status(sprint.directory_path, SprintStatus.PLANNING, cancel)
        except GittaError:
            shutil.rmtree(sprint.directory_path, ignore_errors=True)
            raise

        logger.info("Planned sprint %s", folder_name)
        return sprint


class SprintStartService(_SprintService):
    """Create a new sprint and make it the active one."""

    def preview_name(self, name: str | None = None) -> str:
        return name or next_sprint_id(self.repository.list_sprints(), separator="-")

    def start_new_sprint(
        self,
        name: str | None = None,
        duration: str = DEFAULT_DURATION,
        start_date: date | None = None,
        cancel: CancelToken | None = None,
    ) -> Sprint:
        """
        Create `!<name>` as the active sprint.

        The currently active sprint, if any, is archived first (status
        record, then rename), and `Current` is pointed at the new sprint.

        Raises:
            InvalidInputError: On a bad name or duration.
            AlreadyExistsError: If a sprint with the name exists.
            ActivationError: If a step fails after the previous sprint was touched.
        """
        check_cancelled(cancel, "start sprint")

        repo = self.repository
        name = name or next_sprint_id(repo.list_sprints(cancel), separator="-")
        _validate_identifier(name)
        duration = duration or DEFAULT_DURATION
        start_date = start_date or date.today()
        end_date = calculate_end_date(start_date, duration)
        ensure_no_identifier_clash(repo, name)

        steps = StepRecorder(name)
        active = repo.find_active(cancel)
        if active is not None:
            archive_active(repo, active, steps, cancel)

        sprint = steps.run(
            ActivationStep.CREATE_DIRECTORY,
            repo.create_sprint,
            encode(SprintStatus.ACTIVE, name),
            name,
            start_date=start_date,
            end_date=end_date,
            duration=duration,
            status=SprintStatus.ACTIVE,
        )
        steps.run(
            ActivationStep.ACTIVATE_STATUS,
            write_status,
            sprint.directory_path,
            SprintStatus.ACTIVE,
        )
        steps.run(
            ActivationStep.UPDATE_POINTER, set_current, self.sprints_dir, sprint.directory_path
        )

        logger.info("Started sprint %s (%s to %s)", name, start_date, end_date)
        return sprint
