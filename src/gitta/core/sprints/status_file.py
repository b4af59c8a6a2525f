"""
Sidecar status record for sprint directories.

The record lives at `<sprint>/.gitta/status` and holds a single status token
followed by a newline. When present it is authoritative over the folder
prefix; when absent the prefix is all we have.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from gitta.core.cancel import CancelToken, check_cancelled
from gitta.core.errors import CorruptionError, InvalidInputError, IOFailureError
from gitta.core.sprints.folder_name import extract_status, has_status_prefix
from gitta.core.sprints.models import SprintStatus, SprintStatusView

logger = logging.getLogger(__name__)

STATUS_DIR = ".gitta"
STATUS_FILE = "status"


def status_file_path(sprint_dir: Path) -> Path:
    """Path of the status record inside `sprint_dir`."""
    return sprint_dir / STATUS_DIR / STATUS_FILE


def status_file_exists(sprint_dir: Path) -> bool:
    return status_file_path(sprint_dir).is_file()


def _read_record(sprint_dir: Path) -> SprintStatus | None:
    path = status_file_path(sprint_dir)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except UnicodeDecodeError as e:
        raise CorruptionError(
            f"corrupt status record {path}: not UTF-8 text",
            path=path,
            operation="read",
            cause=e,
        ) from e
    except OSError as e:
        raise IOFailureError.wrap("read", path, e) from e

    try:
        return SprintStatus.parse(content)
    except InvalidInputError as e:
        raise CorruptionError(
            f"corrupt status record {path}: {e}",
            path=path,
            operation="read",
            cause=e,
        ) from e


def read_status(sprint_dir: Path, cancel: CancelToken | None = None) -> SprintStatus:
    """
    Read the authoritative status of a sprint.

    Uses the status record when it exists; otherwise falls back to the
    folder prefix.

    Args:
        sprint_dir: Sprint directory
        cancel: Optional cancellation token

    Returns:
        The sprint's status.

    Raises:
        CorruptionError: If the record exists but holds an unknown token.
        InvalidInputError: If there is no record and the folder name has no
            status prefix.
    """
    check_cancelled(cancel, "read sprint status")

    status = _read_record(sprint_dir)
    if status is not None:
        return status

    name = sprint_dir.name
    if not has_status_prefix(name):
        raise InvalidInputError(
            f"cannot determine status for sprint {sprint_dir}: no "
            f"{STATUS_DIR}/{STATUS_FILE} file and folder name has no status prefix",
            path=sprint_dir,
            operation="read",
        )
    return extract_status(name)


def read_status_view(sprint_dir: Path) -> SprintStatusView:
    """
    Read both status sources for a sprint without reconciling them.

    Raises:
        CorruptionError: If the record exists but holds an unknown token.
    """
    return SprintStatusView(
        sprint_path=sprint_dir,
        folder_status=extract_status(sprint_dir.name),
        file_status=_read_record(sprint_dir),
    )


def write_status(
    sprint_dir: Path,
    status: SprintStatus,
    cancel: CancelToken | None = None,
) -> None:
    """
    Write the status record for a sprint.

    Creates the `.gitta` directory if needed. The record is rewritten via a
    temp file and os.replace, so readers see either the old or the new token.

    Raises:
        IOFailureError: If the directory or file cannot be written.
    """
    check_cancelled(cancel, "write sprint status")

    record = status_file_path(sprint_dir)
    try:
        record.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise IOFailureError.wrap("create", record.parent, e) from e

    temp_path = record.with_name(f"{STATUS_FILE}.tmp")
    try:
        temp_path.write_text(f"{status.value}\n", encoding="utf-8")
        os.replace(temp_path, record)
    except OSError as e:
        if temp_path.exists():
            temp_path.unlink()
        raise IOFailureError.wrap("write", record, e) from e

    logger.debug("Wrote status %s to %s", status.value, record)
