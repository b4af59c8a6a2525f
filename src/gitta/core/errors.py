"""
Error types for gitta core operations.

Every failure raised by the core carries an ErrorKind so callers can branch
on the kind of problem without matching message strings, plus structured
context (path, operation, underlying cause).

Exception Hierarchy:
    GittaError (base)
    ├── NotFoundError (sprint/story/pointer absent)
    ├── AlreadyExistsError (conflicting creation or rename target)
    ├── InvalidInputError (malformed prefix, sprint name, status token)
    ├── CorruptionError (unparseable counter file or status record)
    ├── LockTimeoutError (advisory lock not acquired in time)
    ├── IllegalTransitionError (status transition rejected)
    ├── IOFailureError (wrapped filesystem error)
    │   └── ActivationError (activation workflow stopped part-way)
    └── CancelledError (aborted by an external signal)

Example:
    >>> from gitta.core.errors import ErrorKind, GittaError
    >>> try:
    ...     counter.generate_next_id("US")
    ... except GittaError as e:
    ...     if e.kind is ErrorKind.LOCK_TIMEOUT:
    ...         print("lock busy, try again later")
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gitta.core.sprints.models import SprintStatus


class ErrorKind(str, Enum):
    """Kinds of failures the core can report."""

    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    INVALID_INPUT = "invalid_input"
    CORRUPTION = "corruption"
    LOCK_TIMEOUT = "lock_timeout"
    ILLEGAL_TRANSITION = "illegal_transition"
    IO_FAILURE = "io_failure"
    CANCELLED = "cancelled"


class GittaError(Exception):
    """
    Base exception for all gitta core errors.

    Attributes:
        message: Human-readable error message
        path: Filesystem path involved, if any
        operation: Operation being performed (read, write, rename, ...)
        cause: Underlying exception, if any
        context: Additional structured context
    """

    kind: ErrorKind = ErrorKind.IO_FAILURE

    def __init__(
        self,
        message: str,
        *,
        path: Path | str | None = None,
        operation: str | None = None,
        cause: BaseException | None = None,
        **context: object,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None
        self.operation = operation
        self.cause = cause
        self.context = context

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause is not None and str(self.cause) not in self.message:
            parts.append(f"({self.cause})")
        return " ".join(parts)


class NotFoundError(GittaError):
    """A sprint, story, or pointer could not be found."""

    kind = ErrorKind.NOT_FOUND


class AlreadyExistsError(GittaError):
    """Creation or rename would clobber something that already exists."""

    kind = ErrorKind.ALREADY_EXISTS


class InvalidInputError(GittaError):
    """Input is malformed: bad prefix, sprint name, or status token."""

    kind = ErrorKind.INVALID_INPUT


class CorruptionError(GittaError):
    """
    A persisted file exists but cannot be parsed.

    Raised for an unparseable counter file or an unknown token in a sprint
    status record. Never retried: the file must be fixed by hand.
    """

    kind = ErrorKind.CORRUPTION


class LockTimeoutError(GittaError):
    """
    The advisory lock was not acquired within the allowed wait.

    Attributes:
        attempts: Number of acquisition attempts made before giving up
    """

    kind = ErrorKind.LOCK_TIMEOUT

    def __init__(self, message: str, *, attempts: int = 1, **kwargs: object) -> None:
        super().__init__(message, **kwargs)  # type: ignore[arg-type]
        self.attempts = attempts


class IllegalTransitionError(GittaError):
    """
    A sprint status transition was rejected.

    Attributes:
        from_status: Status the sprint is currently in
        to_status: Status that was requested
        reason: Why the transition is not allowed
    """

    kind = ErrorKind.ILLEGAL_TRANSITION

    def __init__(
        self,
        from_status: SprintStatus,
        to_status: SprintStatus,
        reason: str,
        **kwargs: object,
    ) -> None:
        message = (
            f"cannot transition sprint from {from_status.value} "
            f"to {to_status.value}: {reason}"
        )
        super().__init__(message, **kwargs)  # type: ignore[arg-type]
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason


class IOFailureError(GittaError):
    """A filesystem operation failed."""

    kind = ErrorKind.IO_FAILURE

    @classmethod
    def wrap(cls, operation: str, path: Path | str, cause: OSError) -> IOFailureError:
        """Build an error for a failed `operation` on `path`."""
        return cls(
            f"I/O error during {operation} of {path}: {cause}",
            path=path,
            operation=operation,
            cause=cause,
        )


class ActivationError(IOFailureError):
    """
    The activation workflow stopped after some steps were already durable.

    Nothing is rolled back. `completed_steps` tells the operator what is
    already on disk so they can run the doctor instead of retrying blindly.

    Attributes:
        step: The step that failed
        completed_steps: Steps that finished before the failure
    """

    def __init__(
        self,
        message: str,
        *,
        step: object,
        completed_steps: list[object] | None = None,
        **kwargs: object,
    ) -> None:
        super().__init__(message, **kwargs)  # type: ignore[arg-type]
        self.step = step
        self.completed_steps = list(completed_steps or [])


class CancelledError(GittaError):
    """The operation was aborted by an external cancellation signal."""

    kind = ErrorKind.CANCELLED
