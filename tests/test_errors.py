"""
Tests for core error types and their CLI mapping.
"""

from pathlib import Path

import pytest
import typer

from gitta.cli.errors import ExitCode, exit_code_for, handle_gitta_error, suggest_solution
from gitta.core.errors import (
    ActivationError,
    AlreadyExistsError,
    CancelledError,
    CorruptionError,
    ErrorKind,
    IllegalTransitionError,
    InvalidInputError,
    IOFailureError,
    LockTimeoutError,
    NotFoundError,
)
from gitta.core.sprints.activation import ActivationStep
from gitta.core.sprints.models import SprintStatus


class TestErrorKinds:
    """Each error class carries its kind."""

    @pytest.mark.parametrize(
        "error,kind",
        [
            (NotFoundError("x"), ErrorKind.NOT_FOUND),
            (AlreadyExistsError("x"), ErrorKind.ALREADY_EXISTS),
            (InvalidInputError("x"), ErrorKind.INVALID_INPUT),
            (CorruptionError("x"), ErrorKind.CORRUPTION),
            (LockTimeoutError("x"), ErrorKind.LOCK_TIMEOUT),
            (IOFailureError("x"), ErrorKind.IO_FAILURE),
            (CancelledError("x"), ErrorKind.CANCELLED),
            (
                IllegalTransitionError(SprintStatus.ARCHIVED, SprintStatus.ACTIVE, "no"),
                ErrorKind.ILLEGAL_TRANSITION,
            ),
        ],
    )
    def test_kind(self, error, kind):
        assert error.kind is kind

    def test_wrap_keeps_context(self):
        """Wrapped OS errors keep path, operation and cause."""
        cause = PermissionError(13, "Permission denied")
        error = IOFailureError.wrap("rename", Path("/tmp/x"), cause)
        assert error.path == Path("/tmp/x")
        assert error.operation == "rename"
        assert error.cause is cause
        assert "rename" in str(error)

    def test_illegal_transition_message(self):
        error = IllegalTransitionError(
            SprintStatus.ACTIVE, SprintStatus.READY, "active sprint must be archived first"
        )
        assert str(error) == (
            "cannot transition sprint from active to ready: "
            "active sprint must be archived first"
        )

    def test_activation_error_is_io_failure(self):
        error = ActivationError(
            "failed",
            step=ActivationStep.ACTIVATE_RENAME,
            completed_steps=[ActivationStep.ACTIVATE_STATUS],
        )
        assert isinstance(error, IOFailureError)
        assert error.completed_steps == [ActivationStep.ACTIVATE_STATUS]


class TestCliMapping:
    """Test exit codes and suggestions."""

    @pytest.mark.parametrize(
        "error,code",
        [
            (NotFoundError("x"), ExitCode.USER_ERROR),
            (InvalidInputError("x"), ExitCode.USER_ERROR),
            (CorruptionError("x"), ExitCode.GENERAL_ERROR),
            (LockTimeoutError("x"), ExitCode.GENERAL_ERROR),
            (CancelledError("x"), ExitCode.SIGINT),
        ],
    )
    def test_exit_codes(self, error, code):
        assert exit_code_for(error) is code

    def test_activation_suggests_doctor(self):
        """Part-way activation failures point at the doctor."""
        error = ActivationError(
            "failed",
            step=ActivationStep.ACTIVATE_RENAME,
            completed_steps=[ActivationStep.ACTIVATE_STATUS],
        )
        assert "gitta doctor --fix" in suggest_solution(error)
        assert suggest_solution(ActivationError("failed", step=ActivationStep.ARCHIVE_STATUS)) is None

    def test_lock_timeout_names_marker(self):
        error = LockTimeoutError("busy", path=Path(".gitta/id-counters.json.lock"))
        assert "id-counters.json.lock" in suggest_solution(error)

    def test_handle_exits(self):
        with pytest.raises(typer.Exit) as exc_info:
            handle_gitta_error(NotFoundError("sprint 'x' not found"))
        assert exc_info.value.exit_code == ExitCode.USER_ERROR
