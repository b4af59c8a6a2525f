"""
Tests for SprintDoctor: detection, repair, and pointer health.
"""

import shutil
from unittest.mock import patch

import pytest

from gitta.core.cancel import CancelToken
from gitta.core.errors import CancelledError
from gitta.core.sprints.doctor import SprintDoctor
from gitta.core.sprints.models import SprintStatus
from gitta.core.sprints.pointer import set_current
from gitta.core.sprints.status_file import read_status_view, status_file_path


@pytest.fixture
def doctor(project_dir, sprints_dir):
    return SprintDoctor(project_dir, sprints_dir)


class TestDetect:
    """Test SprintDoctor.detect()."""

    def test_consistent_repository(self, doctor, make_sprint):
        """Matching prefixes and records produce no findings."""
        make_sprint("!Sprint_2", record="active")
        make_sprint("~Sprint_1", record="archived")
        assert doctor.detect() == []

    def test_missing_record_is_consistent(self, doctor, make_sprint):
        """A sprint without a record has nothing to disagree with."""
        make_sprint("+Sprint_3")
        assert doctor.detect() == []

    def test_record_ahead_of_prefix(self, doctor, make_sprint, sprints_dir):
        """A prefix that disagrees with the record is reported."""
        make_sprint("+Sprint_24_Login", record="active")

        [item] = doctor.detect()

        assert item.sprint_path == sprints_dir / "+Sprint_24_Login"
        assert item.folder_name == "+Sprint_24_Login"
        assert item.folder_status is SprintStatus.READY
        assert item.file_status is SprintStatus.ACTIVE
        assert item.expected_name == "!Sprint_24_Login"

    def test_corrupt_record_skipped(self, doctor, make_sprint):
        """Unparseable records are skipped, not fatal."""
        make_sprint("+Sprint_1", record="finished")
        make_sprint("+Sprint_2", record="archived")
        assert [item.folder_name for item in doctor.detect()] == ["+Sprint_2"]

    def test_binary_record_skipped(self, doctor, make_sprint):
        """A record that is not UTF-8 is skipped and the scan goes on."""
        make_sprint("!Sprint_1", record="ready")
        broken = make_sprint("+Sprint_2")
        record = status_file_path(broken)
        record.parent.mkdir()
        record.write_bytes(b"\xff\xfe")

        assert [item.folder_name for item in doctor.detect()] == ["!Sprint_1"]

    def test_unprefixed_folder_skipped(self, doctor, make_sprint):
        """Folders without a prefix cannot be renamed and are skipped."""
        make_sprint("Sprint-01", record="archived")
        assert doctor.detect() == []

    @pytest.mark.parametrize("wanted", ["Sprint_2", "+Sprint_2_Auth", "Sprint_2_Auth"])
    def test_filter(self, doctor, make_sprint, wanted):
        """--sprint narrows detection to one folder."""
        make_sprint("+Sprint_1", record="active")
        make_sprint("+Sprint_2_Auth", record="archived")
        found = doctor.detect(sprint=wanted)
        assert [item.folder_name for item in found] == ["+Sprint_2_Auth"]

    def test_cancelled(self, doctor, make_sprint):
        """A cancelled token aborts detection."""
        make_sprint("+Sprint_1", record="active")
        token = CancelToken()
        token.cancel()
        with pytest.raises(CancelledError):
            doctor.detect(cancel=token)


    def test_cancelled_mid_scan(self, doctor, make_sprint):
        """Cancelling during the scan stops before the next entry."""
        make_sprint("+Sprint_1", record="active")
        make_sprint("+Sprint_2", record="active")
        make_sprint("+Sprint_3", record="active")
        token = CancelToken()
        visited = []

        def read_and_cancel(path):
            visited.append(path.name)
            token.cancel()
            return read_status_view(path)

        with patch(
            "gitta.core.sprints.doctor.read_status_view", side_effect=read_and_cancel
        ):
            with pytest.raises(CancelledError):
                doctor.detect(cancel=token)

        assert visited == ["+Sprint_1"]


class TestRepair:
    """Test SprintDoctor.repair()."""

    def test_repair_renames_to_match_record(self, doctor, make_sprint, sprints_dir):
        """Repair renames folders and never touches the record."""
        make_sprint("+Sprint_24_Login", record="active")
        make_sprint("!Sprint_23", record="archived")

        result = doctor.repair(doctor.detect())

        assert result.success
        assert result.repaired_count == 2
        assert result.failed_count == 0
        assert sorted(result.repaired) == [
            ("!Sprint_23", "~Sprint_23"),
            ("+Sprint_24_Login", "!Sprint_24_Login"),
        ]
        record = status_file_path(sprints_dir / "!Sprint_24_Login")
        assert record.read_text(encoding="utf-8") == "active\n"
        assert doctor.detect() == []

    def test_failures_are_collected(self, doctor, make_sprint, sprints_dir):
        """A blocked rename is reported and the rest still run."""
        make_sprint("!Sprint_1", record="active")
        make_sprint("+Sprint_1", record="active")
        make_sprint("@Sprint_2", record="ready")

        result = doctor.repair(doctor.detect())

        assert not result.success
        assert result.repaired_count == 1
        assert result.failed_count == 1
        assert "'+Sprint_1'" in result.errors[0]
        assert (sprints_dir / "+Sprint_1").is_dir()
        assert (sprints_dir / "+Sprint_2").is_dir()

    def test_cancelled(self, doctor, make_sprint, sprints_dir):
        """Cancellation stops the repair loop."""
        make_sprint("+Sprint_1", record="active")
        found = doctor.detect()
        token = CancelToken()
        token.cancel()
        with pytest.raises(CancelledError):
            doctor.repair(found, cancel=token)
        assert (sprints_dir / "+Sprint_1").is_dir()

    def test_empty(self, doctor):
        """Nothing to repair is a success."""
        result = doctor.repair([])
        assert result.success
        assert result.repaired == []


class TestCurrentPointer:
    """Test SprintDoctor.check_current_pointer()."""

    def test_missing(self, doctor):
        """No pointer is unhealthy."""
        health = doctor.check_current_pointer()
        assert not health.exists
        assert not health.healthy
        assert "missing" in health.message

    def test_points_at_active_sprint(self, doctor, make_sprint, sprints_dir):
        """A pointer at the active sprint is healthy."""
        target = make_sprint("!Sprint_2", record="active")
        set_current(sprints_dir, target)

        health = doctor.check_current_pointer()

        assert health.exists
        assert health.target == target
        assert health.target_status is SprintStatus.ACTIVE
        assert health.healthy

    def test_points_at_archived_sprint(self, doctor, make_sprint, sprints_dir):
        """A pointer left on an archived sprint is reported."""
        target = make_sprint("~Sprint_1", record="archived")
        set_current(sprints_dir, target)

        health = doctor.check_current_pointer()

        assert health.target_exists
        assert not health.healthy
        assert "archived" in health.message

    def test_dangling(self, doctor, make_sprint, sprints_dir):
        """A pointer to a removed folder is reported."""
        target = make_sprint("!Sprint_1", record="active")
        set_current(sprints_dir, target)
        shutil.rmtree(target)

        health = doctor.check_current_pointer()

        assert health.exists
        assert not health.target_exists
        assert not health.healthy
        assert "missing directory" in health.message
