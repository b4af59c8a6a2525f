"""
Detect and repair sprint folders whose prefix disagrees with their status record.

The status record is authoritative: repairs only ever rename folders so
the prefix matches the record, never the other way around.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel

from gitta.core.cancel import CancelToken, check_cancelled
from gitta.core.errors import CancelledError, GittaError, NotFoundError
from gitta.core.sprints.folder_name import decode, encode, strip_status_prefix
from gitta.core.sprints.models import Inconsistency, RepairResult, SprintStatus
from gitta.core.sprints.pointer import LinkType, resolve_current
from gitta.core.sprints.repository import SprintRepository
from gitta.core.sprints.status_file import read_status_view
from gitta.core.workspace import resolve_workspace

logger = logging.getLogger(__name__)


class PointerHealth(BaseModel):
    """State of the `Current` pointer."""

    exists: bool = False
    target: Path | None = None
    link_type: LinkType | None = None
    target_exists: bool = False
    target_status: SprintStatus | None = None
    message: str = ""

    @property
    def healthy(self) -> bool:
        return self.target_exists and self.target_status is SprintStatus.ACTIVE


def _matches_filter(folder_name: str, sprint: str) -> bool:
    wanted = sprint.strip().strip("/\\")
    if wanted in (folder_name, strip_status_prefix(folder_name)):
        return True
    try:
        return decode(folder_name).identifier == wanted
    except GittaError:
        return False


class SprintDoctor:
    """
    Consistency checker for one repository's sprints.

    Example:
        >>> doctor = SprintDoctor(Path("/repo"))
        >>> found = doctor.detect()
        >>> result = doctor.repair(found)
        >>> result.success
        True
    """

    def __init__(self, project_dir: Path, sprints_dir: Path | None = None) -> None:
        self.project_dir = project_dir
        self._sprints_dir = sprints_dir

    @property
    def sprints_dir(self) -> Path:
        if self._sprints_dir is None:
            self._sprints_dir = resolve_workspace(self.project_dir).sprints_path
        return self._sprints_dir

    def detect(
        self, cancel: CancelToken | None = None, sprint: str | None = None
    ) -> list[Inconsistency]:
        """
        Find sprints whose folder prefix disagrees with their status record.

        Sprints without a record are consistent by definition. Folders whose
        names cannot be decoded and records that cannot be parsed are logged
        and skipped.

        Args:
            cancel: Polled before each entry
            sprint: Only check this folder (full name, unprefixed name, or ID)

        Raises:
            CancelledError: If `cancel` fires during the scan.
        """
        check_cancelled(cancel, "detect inconsistencies")

        repo = SprintRepository(self.sprints_dir)
        found: list[Inconsistency] = []

        for name in repo.list_sprints(cancel):
            check_cancelled(cancel, "detect inconsistencies")

            if sprint and not _matches_filter(name, sprint):
                continue

            path = repo.sprint_path(name)
            try:
                view = read_status_view(path)
            except GittaError as e:
                logger.warning("Skipping %s: %s", name, e)
                continue

            if view.file_status is None or view.is_consistent:
                continue

            try:
                parsed = decode(name)
            except GittaError as e:
                logger.warning("Skipping %s: cannot parse folder name: %s", name, e)
                continue

            expected = encode(view.file_status, parsed.identifier, parsed.description)
            found.append(
                Inconsistency(
                    sprint_path=path,
                    folder_name=name,
                    folder_status=view.folder_status,
                    file_status=view.file_status,
                    expected_name=expected,
                )
            )

        if found:
            logger.info("Found %d inconsistent sprint(s)", len(found))
        return found

    def repair(
        self, inconsistencies: list[Inconsistency], cancel: CancelToken | None = None
    ) -> RepairResult:
        """
        Rename each folder to its expected name.

        Failures are collected in the result, never raised. The status
        record is never touched.

        Raises:
            CancelledError: If `cancel` fires; repairs already done stay done.
        """
        repo = SprintRepository(self.sprints_dir)
        result = RepairResult()

        for item in inconsistencies:
            check_cancelled(cancel, "repair inconsistencies")

            try:
                parsed = decode(item.folder_name)
                new_path = repo.rename_with_status(
                    item.sprint_path,
                    item.file_status,
                    parsed.identifier,
                    parsed.description,
                    cancel,
                )
            except CancelledError:
                raise
            except GittaError as e:
                result.failed_count += 1
                result.errors.append(
                    f"failed to rename {item.folder_name!r} to {item.expected_name!r}: {e}"
                )
                logger.warning("Repair of %s failed: %s", item.folder_name, e)
                continue

            result.repaired_count += 1
            result.repaired.append((item.folder_name, new_path.name))

        return result

    def check_current_pointer(self) -> PointerHealth:
        """Report whether `Current` points at an existing, active sprint."""
        try:
            pointer = resolve_current(self.sprints_dir)
        except NotFoundError:
            return PointerHealth(message="Current pointer is missing")
        except GittaError as e:
            return PointerHealth(message=f"Current pointer is unreadable: {e}")

        health = PointerHealth(
            exists=True,
            target=pointer.target,
            link_type=pointer.link_type,
            target_exists=pointer.target.is_dir(),
        )
        if not health.target_exists:
            health.message = f"Current points to missing directory {pointer.target}"
            return health

        try:
            health.target_status = read_status_view(pointer.target).effective_status
        except GittaError as e:
            health.message = f"cannot read status of {pointer.target.name}: {e}"
            return health

        if health.target_status is SprintStatus.ACTIVE:
            health.message = f"Current points to active sprint {pointer.target.name}"
        else:
            health.message = (
                f"Current points to {pointer.target.name}, "
                f"which is {health.target_status.value}, not active"
            )
        return health
