"""
Tests for the id CLI commands.
"""

import json

import pytest
from typer.testing import CliRunner

from gitta.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def in_project(project_dir, monkeypatch):
    monkeypatch.chdir(project_dir)
    return project_dir


class TestIdNext:
    """Test `gitta id next`."""

    def test_sequential(self, project_dir):
        first = runner.invoke(app, ["id", "next", "US"])
        second = runner.invoke(app, ["id", "next", "US"])

        assert first.exit_code == 0
        assert first.stdout.strip() == "US-1"
        assert second.stdout.strip() == "US-2"
        assert (project_dir / ".gitta" / "id-counters.json").is_file()

    def test_json(self):
        result = runner.invoke(app, ["id", "next", "BG", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"id": "BG-1", "prefix": "BG"}

    def test_invalid_prefix(self):
        result = runner.invoke(app, ["id", "next", "us"])

        assert result.exit_code == 2
        assert "2 uppercase letters" in result.output

    def test_lock_timeout(self, project_dir, monkeypatch):
        """A stuck lock marker fails with a hint to remove it."""
        monkeypatch.setenv("GITTA_LOCK_TIMEOUT", "0.1")
        monkeypatch.setenv("GITTA_MAX_RETRIES", "1")
        (project_dir / ".gitta").mkdir()
        (project_dir / ".gitta" / "id-counters.json.lock").touch()

        result = runner.invoke(app, ["id", "next", "US"])

        assert result.exit_code == 1
        assert "id-counters.json.lock" in result.output

    def test_corrupt_counter_file(self, project_dir):
        (project_dir / ".gitta").mkdir()
        (project_dir / ".gitta" / "id-counters.json").write_text("{oops")

        result = runner.invoke(app, ["id", "next", "US"])

        assert result.exit_code == 1
        assert "corrupted" in result.output
