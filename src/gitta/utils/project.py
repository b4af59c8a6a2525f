"""
Project root discovery utilities for gitta.

This module provides functions for discovering project boundaries
by searching for marker directories like .gitta/ or .git/.
"""

from pathlib import Path

# Markers that indicate a project root, in order of priority
PROJECT_ROOT_MARKERS = [
    ".gitta",  # gitta metadata (counters, config)
    ".git",  # Git repository
]


def _is_sprint_dir(path: Path) -> bool:
    # Sprint folders carry their own .gitta/status record
    return (path / ".gitta" / "status").is_file()


def find_project_root(start: Path | None = None) -> Path | None:
    """
    Find the project root directory by searching upward for marker files.

    Args:
        start: Directory to start searching from. Defaults to current working directory.

    Returns:
        Path to the project root directory, or None if not found.

    Example:
        >>> find_project_root(Path("/project/tasks/sprints"))
        PosixPath('/project')
    """
    if start is None:
        start = Path.cwd()

    current = start.resolve()
    for candidate in (current, *current.parents):
        if _is_sprint_dir(candidate):
            continue
        for marker in PROJECT_ROOT_MARKERS:
            if (candidate / marker).exists():
                return candidate

    return None


def get_project_root(start: Path | None = None) -> Path:
    """
    Get the project root directory, raising an error if not found.

    Raises:
        FileNotFoundError: If no project root can be found.
    """
    root = find_project_root(start)
    if root is None:
        start_dir = start.resolve() if start else Path.cwd()
        raise FileNotFoundError(
            f"Could not find project root from {start_dir}. "
            f"Expected one of: {', '.join(PROJECT_ROOT_MARKERS)}"
        )
    return root
