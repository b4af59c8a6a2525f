"""
Encoding and decoding of sprint folder names.

Format: {PREFIX}{identifier} or {PREFIX}{identifier}_{description}

The identifier may itself contain underscores (e.g. "Sprint_24"), so names
are split on the last underscore, and a purely numeric tail is kept as part
of the identifier:

    "!Sprint_24"        -> ACTIVE, "Sprint_24", ""
    "+Sprint_24_Login"  -> READY,  "Sprint_24", "Login"
    "@Sprint_42"        -> PLANNING, "Sprint_42", ""   (never desc "42")
"""

from __future__ import annotations

from typing import NamedTuple

from gitta.core.errors import InvalidInputError
from gitta.core.sprints.models import STATUS_PREFIX_CHARS, SprintStatus


class ParsedFolderName(NamedTuple):
    status: SprintStatus
    identifier: str
    description: str


def has_status_prefix(name: str) -> bool:
    """Check whether `name` starts with one of the four status prefixes."""
    return bool(name) and name[0] in STATUS_PREFIX_CHARS


def strip_status_prefix(name: str) -> str:
    """Remove the status prefix from `name`, if it has one."""
    return name[1:] if has_status_prefix(name) else name


def extract_status(name: str) -> SprintStatus:
    """
    Read the status from a folder name prefix without failing.

    Returns ACTIVE for empty names and names without a recognized prefix,
    which keeps repositories from before status prefixes readable.
    """
    if not has_status_prefix(name):
        return SprintStatus.ACTIVE
    return SprintStatus.from_prefix(name[0])


def decode(name: str) -> ParsedFolderName:
    """
    Parse a sprint folder name into status, identifier and description.

    Args:
        name: Folder base name, e.g. "+Sprint_24_Login"

    Returns:
        ParsedFolderName(status, identifier, description)

    Raises:
        InvalidInputError: If `name` is empty or lacks a valid status prefix.
    """
    if not name:
        raise InvalidInputError("folder name cannot be empty")
    if not has_status_prefix(name):
        raise InvalidInputError(
            f"folder name {name!r} must start with a valid status prefix (!, +, @, ~)"
        )

    status = SprintStatus.from_prefix(name[0])
    rest = name[1:]

    identifier, sep, tail = rest.rpartition("_")
    if not sep or _is_ascii_digits(tail):
        # No underscore, or a numeric tail that belongs to the identifier
        return ParsedFolderName(status, rest, "")

    return ParsedFolderName(status, identifier, tail)


def encode(status: SprintStatus, identifier: str, description: str = "") -> str:
    """Build a folder name; the inverse of decode()."""
    if not description:
        return f"{status.prefix}{identifier}"
    return f"{status.prefix}{identifier}_{description}"


def validate_sprint_label(text: str) -> None:
    """
    Reject identifiers or descriptions containing status prefix characters.

    Raises:
        InvalidInputError: Naming every reserved character found.
    """
    found = [char for char in STATUS_PREFIX_CHARS if char in text]
    if found:
        raise InvalidInputError(
            "sprint name/description cannot contain status prefix characters: "
            + ", ".join(found)
        )


def _is_ascii_digits(text: str) -> bool:
    # An empty tail counts as numeric, so "Sprint_" keeps its underscore
    return all("0" <= char <= "9" for char in text)
