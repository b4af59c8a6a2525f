"""
Pytest configuration and shared fixtures.

Provides fixtures for temporary repositories with a sprints directory,
helpers to create sprint folders with or without status records, and
isolation from the user's real config and environment.
"""

from pathlib import Path

import pytest

from gitta.core.config import clear_cache
from gitta.core.sprints.status_file import STATUS_DIR, STATUS_FILE

# ==============================================================================
# Isolation
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_config(tmp_path_factory, monkeypatch):
    """Keep tests away from ~/.config/gitta and GITTA_* variables."""
    xdg = tmp_path_factory.mktemp("xdg")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg))
    for name in ("GITTA_LOG_LEVEL", "GITTA_LOCK_TIMEOUT", "GITTA_MAX_RETRIES"):
        monkeypatch.delenv(name, raising=False)
    clear_cache()
    yield
    clear_cache()


# ==============================================================================
# Directory Fixtures
# ==============================================================================


@pytest.fixture
def project_dir(tmp_path):
    """
    Provide a temporary repository in the consolidated layout.

    Creates:
    - .git/ directory
    - tasks/backlog/
    - tasks/sprints/
    """
    project = tmp_path / "project"
    (project / ".git").mkdir(parents=True)
    (project / "tasks" / "backlog").mkdir(parents=True)
    (project / "tasks" / "sprints").mkdir(parents=True)
    return project


@pytest.fixture
def sprints_dir(project_dir):
    """The sprints root of project_dir."""
    return project_dir / "tasks" / "sprints"


# ==============================================================================
# Sprint Helpers
# ==============================================================================


def write_record(sprint_dir: Path, token: str) -> Path:
    """Write a raw status record token into a sprint folder."""
    record = sprint_dir / STATUS_DIR / STATUS_FILE
    record.parent.mkdir(parents=True, exist_ok=True)
    record.write_text(token + "\n", encoding="utf-8")
    return record


@pytest.fixture
def make_sprint(sprints_dir):
    """
    Factory creating a sprint folder, optionally with a status record.

    Usage:
        make_sprint("+Sprint_24_Login", record="ready")
    """

    def _make(folder_name: str, record: str | None = None) -> Path:
        path = sprints_dir / folder_name
        path.mkdir(parents=True)
        (path / "story.md").write_text(f"# {folder_name}\n", encoding="utf-8")
        if record is not None:
            write_record(path, record)
        return path

    return _make


def snapshot_tree(root: Path) -> dict[str, bytes | None]:
    """Map every path under root to its bytes (None for directories)."""
    result: dict[str, bytes | None] = {}
    for path in sorted(root.rglob("*")):
        key = str(path.relative_to(root))
        if path.is_symlink():
            result[key] = ("link:" + str(path.readlink())).encode()
        elif path.is_dir():
            result[key] = None
        else:
            result[key] = path.read_bytes()
    return result
