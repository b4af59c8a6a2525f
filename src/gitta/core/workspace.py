"""
Workspace layout detection.

A repository keeps its task folders in one of two layouts:

    consolidated:  tasks/backlog/   tasks/sprints/
    legacy:        backlog/         sprints/

New repositories default to the consolidated layout. A repository with
folders from both layouts is rejected rather than guessed at.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel

from gitta.core.errors import InvalidInputError, NotFoundError


class Structure(str, Enum):
    CONSOLIDATED = "consolidated"
    LEGACY = "legacy"


class WorkspacePaths(BaseModel):
    """Resolved task directories for a repository."""

    repo_path: Path
    backlog_path: Path
    sprints_path: Path
    structure: Structure

    def sprint_path(self, folder_name: str) -> Path:
        return self.sprints_path / folder_name


def detect_structure(repo_path: Path) -> Structure:
    """
    Determine which layout a repository uses.

    Raises:
        NotFoundError: If `repo_path` is not a directory.
        InvalidInputError: If both layouts are present.
    """
    if not repo_path.is_dir():
        raise NotFoundError(
            f"invalid repository path: {repo_path}", path=repo_path, operation="stat"
        )

    consolidated = (repo_path / "tasks" / "backlog").is_dir() or (
        repo_path / "tasks" / "sprints"
    ).is_dir()
    legacy = (repo_path / "backlog").is_dir() or (repo_path / "sprints").is_dir()

    if consolidated and legacy:
        raise InvalidInputError(
            "inconsistent workspace structure: both legacy and consolidated "
            f"task folders found in {repo_path}",
            path=repo_path,
        )
    if legacy:
        return Structure.LEGACY
    return Structure.CONSOLIDATED


def build_paths(repo_path: Path, structure: Structure) -> WorkspacePaths:
    base = repo_path / "tasks" if structure is Structure.CONSOLIDATED else repo_path
    return WorkspacePaths(
        repo_path=repo_path,
        backlog_path=base / "backlog",
        sprints_path=base / "sprints",
        structure=structure,
    )


def resolve_workspace(repo_path: Path) -> WorkspacePaths:
    """Detect the layout of `repo_path` and return its task directories."""
    return build_paths(repo_path, detect_structure(repo_path))
