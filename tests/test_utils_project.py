"""
Tests for project root discovery.
"""

from pathlib import Path

import pytest

from gitta.utils.project import PROJECT_ROOT_MARKERS, find_project_root, get_project_root


class TestFindProjectRoot:
    """Tests for find_project_root function."""

    def test_markers(self):
        """.gitta is checked before .git."""
        assert PROJECT_ROOT_MARKERS == [".gitta", ".git"]

    @pytest.mark.parametrize("marker", [".git", ".gitta"])
    def test_find_at_start(self, tmp_path: Path, marker: str) -> None:
        """A marker in the start directory makes it the root."""
        (tmp_path / marker).mkdir()
        assert find_project_root(tmp_path) == tmp_path.resolve()

    def test_find_from_nested(self, project_dir: Path) -> None:
        """The root is found from deep inside the tree."""
        start = project_dir / "tasks" / "sprints"
        assert find_project_root(start) == project_dir.resolve()

    def test_skips_sprint_status_dirs(self, project_dir: Path, make_sprint) -> None:
        """A sprint's own .gitta/status folder is not a project root."""
        sprint = make_sprint("!Sprint_1", record="active")
        assert find_project_root(sprint) == project_dir.resolve()

    def test_defaults_to_cwd(self, project_dir: Path, monkeypatch) -> None:
        """Without a start directory the cwd is used."""
        monkeypatch.chdir(project_dir / "tasks")
        assert find_project_root() == project_dir.resolve()


class TestGetProjectRoot:
    """Tests for get_project_root function."""

    def test_found(self, project_dir: Path) -> None:
        assert get_project_root(project_dir) == project_dir.resolve()

    def test_not_found(self, tmp_path: Path) -> None:
        """Raises FileNotFoundError when no marker exists anywhere above."""
        start = tmp_path / "empty"
        start.mkdir()
        if find_project_root(start) is not None:
            pytest.skip("temporary directory is inside a repository")
        with pytest.raises(FileNotFoundError, match="Could not find project root"):
            get_project_root(start)
