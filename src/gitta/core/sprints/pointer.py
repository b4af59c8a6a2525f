"""
The `Current` pointer to the active sprint directory.

The pointer lives in the sprints root and is realized as the first
mechanism that works on this machine:

1. a symbolic link `Current`
2. on Windows, a directory junction `Current` (no admin rights needed)
3. a text file `Current.txt` holding the target path (relative if possible)

The pointer is advisory. It is always removed and rewritten, never edited
in place, and readers must tolerate it being missing or stale. An older
`.current-sprint` pointer is still read and is cleaned up on the next write.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from enum import Enum
from pathlib import Path
from typing import NamedTuple

from gitta.core.errors import AlreadyExistsError, IOFailureError, NotFoundError

logger = logging.getLogger(__name__)

POINTER_NAME = "Current"
LEGACY_POINTER_NAME = ".current-sprint"
TEXT_SUFFIX = ".txt"


class LinkType(str, Enum):
    """Mechanism used to realize the pointer."""

    SYMLINK = "symlink"
    JUNCTION = "junction"
    TEXT = "text"


class ResolvedPointer(NamedTuple):
    target: Path
    link_type: LinkType


def _is_windows() -> bool:
    return sys.platform == "win32"


def _text_path(link_path: Path) -> Path:
    return link_path.with_name(link_path.name + TEXT_SUFFIX)


def _is_junction(path: Path) -> bool:
    if not _is_windows():
        return False
    is_junction = getattr(os.path, "isjunction", None)
    if is_junction is not None:
        return bool(is_junction(path))
    # Python < 3.12: a junction is a directory os.readlink can still read
    try:
        os.readlink(path)
    except (OSError, ValueError):
        return False
    return not os.path.islink(path)


def _remove_pointer(link_path: Path) -> None:
    """Remove every pointer kind stored under `link_path`."""
    try:
        if link_path.is_symlink():
            link_path.unlink()
        elif _is_junction(link_path):
            os.rmdir(link_path)
        elif link_path.exists():
            raise AlreadyExistsError(
                f"{link_path} exists and is not a sprint pointer; remove it manually",
                path=link_path,
                operation="replace",
            )
        text_path = _text_path(link_path)
        if text_path.is_file():
            text_path.unlink()
    except OSError as e:
        raise IOFailureError.wrap("remove", link_path, e) from e


def _create_junction(target: Path, link_path: Path) -> None:
    subprocess.run(
        ["cmd", "/c", "mklink", "/J", str(link_path), str(target)],
        capture_output=True,
        text=True,
        check=True,
    )


def _create_text(target: Path, link_path: Path) -> None:
    text_path = _text_path(link_path)
    try:
        value = os.path.relpath(target, text_path.parent)
    except ValueError:
        # Different drives on Windows
        value = str(target)
    try:
        text_path.write_text(value, encoding="utf-8")
    except OSError as e:
        raise IOFailureError.wrap("write", text_path, e) from e


def set_current(sprints_dir: Path, target: Path) -> LinkType:
    """
    Point `Current` in `sprints_dir` at the `target` sprint directory.

    Any existing pointer, of any kind and under the legacy name, is removed
    first. Mechanisms are tried in order and the first that succeeds wins.

    Args:
        sprints_dir: Sprints root directory
        target: Sprint directory to point at

    Returns:
        The LinkType that was written.

    Raises:
        NotFoundError: If `target` is not an existing directory.
        IOFailureError: If no mechanism could write the pointer.
    """
    target = Path(os.path.abspath(target))
    if not target.is_dir():
        raise NotFoundError(
            f"pointer target {target} does not exist or is not a directory",
            path=target,
            operation="link",
        )

    link_path = sprints_dir / POINTER_NAME
    _remove_pointer(link_path)
    _remove_pointer(sprints_dir / LEGACY_POINTER_NAME)

    try:
        os.symlink(target, link_path, target_is_directory=True)
        logger.debug("Linked %s -> %s (symlink)", link_path, target)
        return LinkType.SYMLINK
    except (OSError, NotImplementedError) as e:
        logger.debug("Symlink failed for %s: %s", link_path, e)

    if _is_windows():
        try:
            _create_junction(target, link_path)
            logger.debug("Linked %s -> %s (junction)", link_path, target)
            return LinkType.JUNCTION
        except (OSError, subprocess.CalledProcessError) as e:
            logger.debug("Junction failed for %s: %s", link_path, e)

    _create_text(target, link_path)
    logger.debug("Linked %s -> %s (text file)", link_path, target)
    return LinkType.TEXT


def _normalize_link_target(raw: str) -> str:
    # Windows may report junction targets with the \\?\ namespace prefix
    if raw.startswith("\\\\?\\"):
        return raw[4:]
    return raw


def _resolve_at(link_path: Path) -> ResolvedPointer | None:
    base = link_path.parent

    if link_path.is_symlink():
        raw = _normalize_link_target(os.readlink(link_path))
        return ResolvedPointer(Path(os.path.normpath(base / raw)), LinkType.SYMLINK)

    if _is_junction(link_path):
        raw = _normalize_link_target(os.readlink(link_path))
        return ResolvedPointer(Path(os.path.normpath(base / raw)), LinkType.JUNCTION)

    text_path = _text_path(link_path)
    if text_path.is_file():
        try:
            raw = text_path.read_text(encoding="utf-8").strip()
        except OSError as e:
            raise IOFailureError.wrap("read", text_path, e) from e
        if raw:
            return ResolvedPointer(
                Path(os.path.normpath(text_path.parent / raw)), LinkType.TEXT
            )

    return None


def resolve_current(sprints_dir: Path) -> ResolvedPointer:
    """
    Find where the `Current` pointer points.

    Relative targets are resolved against the sprints root, never against
    the working directory. The legacy `.current-sprint` name is consulted
    last.

    Raises:
        NotFoundError: If no pointer exists.
    """
    for name in (POINTER_NAME, LEGACY_POINTER_NAME):
        resolved = _resolve_at(sprints_dir / name)
        if resolved is not None:
            return resolved

    raise NotFoundError(
        f"no {POINTER_NAME} pointer in {sprints_dir}",
        path=sprints_dir / POINTER_NAME,
        operation="resolve",
    )


def clear_current(sprints_dir: Path) -> None:
    """Remove the pointer (all kinds, both names) if present."""
    _remove_pointer(sprints_dir / POINTER_NAME)
    _remove_pointer(sprints_dir / LEGACY_POINTER_NAME)
