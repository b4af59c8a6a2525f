"""
Filesystem access to sprint directories.

SprintRepository lists, resolves, creates, and renames sprint folders in a
sprints root. It knows nothing about workflows; the activation service, the
doctor, and sprint planning build on it.
"""

from __future__ import annotations

import logging
import os
from datetime import date, datetime
from pathlib import Path

from gitta.core.cancel import CancelToken, check_cancelled, wait_or_cancel
from gitta.core.errors import (
    AlreadyExistsError,
    GittaError,
    InvalidInputError,
    IOFailureError,
    NotFoundError,
)
from gitta.core.sprints.folder_name import (
    decode,
    encode,
    extract_status,
    has_status_prefix,
    strip_status_prefix,
)
from gitta.core.sprints.models import Sprint, SprintStatus
from gitta.core.sprints.status_file import read_status

logger = logging.getLogger(__name__)

RENAME_MAX_ATTEMPTS = 3
RENAME_RETRY_DELAY = 0.1

# Windows ERROR_ACCESS_DENIED / ERROR_SHARING_VIOLATION: usually another
# program holding a handle inside the directory
_TRANSIENT_WINERRORS = frozenset({5, 32})

_ACTIVATABLE = (SprintStatus.READY, SprintStatus.PLANNING)


def _is_transient_rename_error(error: OSError) -> bool:
    return getattr(error, "winerror", None) in _TRANSIENT_WINERRORS


class SprintRepository:
    """
    Sprint directories under one sprints root.

    Example:
        >>> repo = SprintRepository(Path("tasks/sprints"))
        >>> repo.list_sprints()
        ['!Sprint_02_Auth', '~Sprint_01_Setup']
    """

    def __init__(self, sprints_dir: Path) -> None:
        self.sprints_dir = sprints_dir

    def sprint_path(self, folder_name: str) -> Path:
        return self.sprints_dir / folder_name

    def list_sprints(self, cancel: CancelToken | None = None) -> list[str]:
        """
        List sprint folder names, sorted case-insensitively.

        A folder counts as a sprint if it carries a status prefix, or if its
        name starts with "sprint" (older, unprefixed repositories). Pointer
        links and hidden folders are not sprints. A missing sprints root is
        an empty list.

        Raises:
            CancelledError: If `cancel` fires mid-scan.
            IOFailureError: If the sprints root cannot be read.
        """
        check_cancelled(cancel, "list sprints")

        try:
            entries = list(os.scandir(self.sprints_dir))
        except FileNotFoundError:
            return []
        except OSError as e:
            raise IOFailureError.wrap("read", self.sprints_dir, e) from e

        names: list[str] = []
        for entry in entries:
            check_cancelled(cancel, "list sprints")

            if not entry.is_dir(follow_symlinks=False):
                continue
            name = entry.name
            if has_status_prefix(name) or strip_status_prefix(name).lower().startswith(
                "sprint"
            ):
                names.append(name)

        names.sort(key=str.lower)
        return names

    def sprint_exists(self, path: Path) -> bool:
        return path.is_dir()

    def resolve_by_id(self, sprint_id: str, cancel: CancelToken | None = None) -> Sprint:
        """
        Find a Ready or Planning sprint by partial identifier.

        Matching is a case-insensitive substring test in either direction
        ("24" matches "Sprint_24"). Active and archived sprints are never
        candidates. With several matches the first in listing order wins.

        Raises:
            InvalidInputError: If `sprint_id` is empty.
            NotFoundError: If nothing matches.
        """
        needle = sprint_id.strip().lower()
        if not needle:
            raise InvalidInputError("sprint ID cannot be empty")

        for name in self.list_sprints(cancel):
            check_cancelled(cancel, "resolve sprint")

            try:
                parsed = decode(name)
            except InvalidInputError:
                continue
            if parsed.status not in _ACTIVATABLE:
                continue

            identifier = parsed.identifier.lower()
            if needle not in identifier and identifier not in needle:
                continue

            path = self.sprint_path(name)
            try:
                status = read_status(path)
            except GittaError as e:
                logger.warning("Skipping %s while resolving %r: %s", name, sprint_id, e)
                continue
            if status not in _ACTIVATABLE:
                continue

            return Sprint(
                name=parsed.identifier,
                description=parsed.description,
                directory_path=path,
                status=status,
            )

        raise NotFoundError(
            f"sprint {sprint_id!r} not found in Ready or Planning status "
            f"in {self.sprints_dir}",
            path=self.sprints_dir,
            operation="resolve",
        )

    def find_active(self, cancel: CancelToken | None = None) -> Sprint | None:
        """
        Find the active sprint, if any.

        A folder qualifies when its prefix says active and its status
        (record, or explicit "!" prefix) confirms it.
        """
        for name in self.list_sprints(cancel):
            check_cancelled(cancel, "find active sprint")

            if extract_status(name) is not SprintStatus.ACTIVE:
                continue

            path = self.sprint_path(name)
            try:
                status = read_status(path)
            except GittaError as e:
                logger.debug("Skipping %s while finding active sprint: %s", name, e)
                continue
            if status is not SprintStatus.ACTIVE:
                continue

            try:
                parsed = decode(name)
                identifier, description = parsed.identifier, parsed.description
            except InvalidInputError:
                identifier, description = name, ""

            return Sprint(
                name=identifier,
                description=description,
                directory_path=path,
                status=status,
            )

        return None

    def rename_with_status(
        self,
        old_path: Path,
        status: SprintStatus,
        identifier: str,
        description: str = "",
        cancel: CancelToken | None = None,
    ) -> Path:
        """
        Rename a sprint folder to carry the prefix for `status`.

        Transient Windows sharing violations are retried with a doubling
        delay; anything else fails straight away.

        Returns:
            The new folder path.

        Raises:
            AlreadyExistsError: If the target folder already exists.
            IOFailureError: If the rename fails.
        """
        check_cancelled(cancel, "rename sprint")

        new_path = old_path.parent / encode(status, identifier, description)
        if new_path == old_path:
            return new_path
        if new_path.exists():
            raise AlreadyExistsError(
                f"cannot rename {old_path.name} to {new_path.name}: target already exists",
                path=new_path,
                operation="rename",
            )

        delay = RENAME_RETRY_DELAY
        for attempt in range(1, RENAME_MAX_ATTEMPTS + 1):
            try:
                os.rename(old_path, new_path)
            except OSError as e:
                if attempt < RENAME_MAX_ATTEMPTS and _is_transient_rename_error(e):
                    logger.warning(
                        "Rename of %s blocked (attempt %d/%d): %s",
                        old_path,
                        attempt,
                        RENAME_MAX_ATTEMPTS,
                        e,
                    )
                    wait_or_cancel(cancel, delay, "rename sprint")
                    delay *= 2
                    continue
                raise IOFailureError(
                    f"failed to rename sprint folder {old_path} to {new_path.name} "
                    f"after {attempt} attempt(s): {e}. Close any programs using the "
                    "sprint directory and check permissions",
                    path=old_path,
                    operation="rename",
                    cause=e,
                ) from e
            break

        logger.info("Renamed %s -> %s", old_path.name, new_path.name)
        return new_path

    def create_sprint(
        self,
        folder_name: str,
        name: str,
        *,
        description: str = "",
        start_date: date | None = None,
        end_date: date | None = None,
        duration: str = "",
        status: SprintStatus | None = None,
    ) -> Sprint:
        """
        Create a new sprint directory.

        Raises:
            InvalidInputError: If the name is empty or contains path separators.
            AlreadyExistsError: If the directory exists.
            IOFailureError: If the directory cannot be created.
        """
        if not name:
            raise InvalidInputError("sprint name cannot be empty")
        if any(part in name for part in ("/", "\\", "..")):
            raise InvalidInputError(
                "sprint name cannot contain path separators or parent directory references"
            )

        path = self.sprint_path(folder_name)
        try:
            path.mkdir(parents=True, exist_ok=False)
        except FileExistsError:
            raise AlreadyExistsError(
                f"sprint {folder_name!r} already exists", path=path, operation="create"
            ) from None
        except OSError as e:
            raise IOFailureError.wrap("create", path, e) from e

        logger.info("Created sprint directory %s", path)
        now = datetime.now()
        return Sprint(
            name=name,
            description=description,
            directory_path=path,
            status=status,
            start_date=start_date,
            end_date=end_date,
            duration=duration,
            created_at=now,
            updated_at=now,
        )


def ensure_no_identifier_clash(repo: SprintRepository, identifier: str) -> None:
    """
    Raise AlreadyExistsError if any sprint already uses `identifier`.

    Prefixed folders are compared by decoded identifier, unprefixed ones by
    full name.
    """
    for name in repo.list_sprints():
        if has_status_prefix(name):
            try:
                existing = decode(name).identifier
            except InvalidInputError:
                continue
        else:
            existing = name
        if existing == identifier:
            raise AlreadyExistsError(
                f"sprint with ID {identifier!r} already exists ({name})",
                path=repo.sprint_path(name),
                operation="create",
            )
