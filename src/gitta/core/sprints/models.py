"""
Data models for sprints and their lifecycle status.

A sprint's status lives in two places: the single-character prefix on its
folder name, and the sidecar status record at `<sprint>/.gitta/status`.
The record is authoritative when present. SprintStatusView keeps both
readings side by side so the doctor can reconcile them.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from gitta.core.errors import InvalidInputError

_PREFIXES = {
    "active": "!",
    "ready": "+",
    "planning": "@",
    "archived": "~",
}


class SprintStatus(str, Enum):
    """
    Lifecycle state of a sprint.

    Each status maps to exactly one folder prefix and one lowercase token
    used in the status record:

        ACTIVE   "!"  active
        READY    "+"  ready
        PLANNING "@"  planning
        ARCHIVED "~"  archived
    """

    ACTIVE = "active"
    READY = "ready"
    PLANNING = "planning"
    ARCHIVED = "archived"

    @property
    def prefix(self) -> str:
        """Folder name prefix character for this status."""
        return _PREFIXES[self.value]

    @property
    def ascii_value(self) -> int:
        """Code point of the prefix character (33, 43, 64, 126)."""
        return ord(self.prefix)

    @classmethod
    def parse(cls, token: str) -> SprintStatus:
        """
        Parse a status token, ignoring case and surrounding whitespace.

        Raises:
            InvalidInputError: If the token is not one of the four statuses.
        """
        normalized = token.strip().lower()
        try:
            return cls(normalized)
        except ValueError:
            raise InvalidInputError(
                f"invalid status: {normalized!r} "
                "(must be one of: active, ready, planning, archived)"
            ) from None

    @classmethod
    def from_prefix(cls, char: str) -> SprintStatus:
        """
        Map a prefix character back to its status.

        Raises:
            InvalidInputError: If `char` is not a recognized prefix.
        """
        for status in cls:
            if status.prefix == char:
                return status
        raise InvalidInputError(
            f"invalid status prefix {char!r} (must be one of: !, +, @, ~)"
        )


STATUS_PREFIX_CHARS: tuple[str, ...] = tuple(s.prefix for s in SprintStatus)


class Sprint(BaseModel):
    """
    A time-boxed unit of work, represented on disk as a directory.

    Example:
        >>> sprint = Sprint(
        ...     name="Sprint_24",
        ...     description="Login",
        ...     directory_path=Path("tasks/sprints/!Sprint_24_Login"),
        ...     status=SprintStatus.ACTIVE,
        ... )
    """

    model_config = ConfigDict(frozen=False)

    name: str = Field(description="Sprint identifier, e.g. 'Sprint_24'")
    description: str = Field(default="", description="Human-readable description")
    directory_path: Path = Field(description="Filesystem path to the sprint directory")
    status: SprintStatus | None = Field(default=None)
    start_date: date | None = Field(default=None)
    end_date: date | None = Field(default=None)
    duration: str = Field(default="", description="Duration string such as '2w'")
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def folder_name(self) -> str:
        return self.directory_path.name


class SprintStatusView(BaseModel):
    """
    Both readings of a sprint's status, kept distinct.

    folder_status is derived from the folder prefix; file_status comes from
    the status record and is None when the sprint has no record.
    """

    sprint_path: Path
    folder_status: SprintStatus
    file_status: SprintStatus | None = None

    @property
    def has_status_file(self) -> bool:
        return self.file_status is not None

    @property
    def effective_status(self) -> SprintStatus:
        """The status record if present, otherwise the folder prefix."""
        if self.file_status is not None:
            return self.file_status
        return self.folder_status

    @property
    def is_consistent(self) -> bool:
        return self.file_status is None or self.file_status == self.folder_status


class Inconsistency(BaseModel):
    """A sprint whose folder prefix disagrees with its status record."""

    sprint_path: Path
    folder_name: str
    folder_status: SprintStatus
    file_status: SprintStatus
    expected_name: str
    has_status_file: bool = True


class RepairResult(BaseModel):
    """Outcome of a doctor repair pass."""

    repaired_count: int = 0
    failed_count: int = 0
    errors: list[str] = Field(default_factory=list)
    repaired: list[tuple[str, str]] = Field(
        default_factory=list,
        description="(old folder name, new folder name) for each successful rename",
    )

    @property
    def success(self) -> bool:
        return self.failed_count == 0


class ActivationResult(BaseModel):
    """Which sprint was activated and which (if any) was archived to make room."""

    activated: Sprint
    archived: Sprint | None = None
    pointer_path: Path | None = None
