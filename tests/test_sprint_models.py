"""
Tests for sprint data models.
"""

from pathlib import Path

import pytest

from gitta.core.errors import InvalidInputError
from gitta.core.sprints.models import (
    STATUS_PREFIX_CHARS,
    RepairResult,
    Sprint,
    SprintStatus,
)


class TestSprintStatus:
    """Test SprintStatus enum."""

    def test_prefixes(self):
        """Each status has a distinct prefix character."""
        assert SprintStatus.ACTIVE.prefix == "!"
        assert SprintStatus.READY.prefix == "+"
        assert SprintStatus.PLANNING.prefix == "@"
        assert SprintStatus.ARCHIVED.prefix == "~"
        assert STATUS_PREFIX_CHARS == ("!", "+", "@", "~")

    def test_ascii_values(self):
        """Prefix code points are exposed for callers that sort by them."""
        assert [s.ascii_value for s in SprintStatus] == [33, 43, 64, 126]

    def test_parse(self):
        """Tokens parse regardless of case and surrounding whitespace."""
        assert SprintStatus.parse("Ready") is SprintStatus.READY
        assert SprintStatus.parse(" archived\n") is SprintStatus.ARCHIVED

    def test_parse_rejects_unknown(self):
        """Unknown tokens raise InvalidInputError."""
        with pytest.raises(InvalidInputError):
            SprintStatus.parse("done")

    def test_from_prefix(self):
        """Prefix characters map back to statuses."""
        for status in SprintStatus:
            assert SprintStatus.from_prefix(status.prefix) is status

    def test_from_prefix_rejects_unknown(self):
        """Other characters raise InvalidInputError."""
        with pytest.raises(InvalidInputError):
            SprintStatus.from_prefix("#")


class TestSprint:
    """Test Sprint model."""

    def test_folder_name(self):
        """folder_name is the base name of the directory."""
        sprint = Sprint(
            name="Sprint_24",
            description="Login",
            directory_path=Path("/repo/tasks/sprints/!Sprint_24_Login"),
            status=SprintStatus.ACTIVE,
        )
        assert sprint.folder_name == "!Sprint_24_Login"

    def test_json_dump(self):
        """Statuses and paths serialize to plain strings."""
        sprint = Sprint(name="Sprint_1", directory_path=Path("x"), status=SprintStatus.READY)
        data = sprint.model_dump(mode="json")
        assert data["status"] == "ready"
        assert data["directory_path"] == "x"


class TestRepairResult:
    """Test RepairResult model."""

    def test_success(self):
        """Success means no failures, even with nothing repaired."""
        assert RepairResult().success
        assert not RepairResult(failed_count=1, errors=["boom"]).success
