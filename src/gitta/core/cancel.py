"""
Cooperative cancellation for long-running filesystem operations.

A CancelToken is passed into scans, lock waits, and retry backoffs. Those
loops poll it between entries and wait on it instead of sleeping, so a
cancel request (or SIGINT/SIGTERM once registered) stops them promptly.

Usage:
    >>> from gitta.core.cancel import CancelToken
    >>> token = CancelToken()
    >>> token.register()  # Ctrl+C cancels instead of raising KeyboardInterrupt
    >>> doctor.detect(cancel=token)
    >>> token.unregister()
"""

from __future__ import annotations

import signal
import threading
import time
from typing import Any

from gitta.core.errors import CancelledError


class CancelToken:
    """
    A cancellation signal shared between a caller and an operation.

    The first SIGINT/SIGTERM after register() marks the token cancelled;
    a second one force-exits with SystemExit(130).
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._original_sigint: Any = None
        self._original_sigterm: Any = None

    @property
    def cancelled(self) -> bool:
        """True once cancel() has been called or a signal was received."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    def raise_if_cancelled(self, operation: str = "operation") -> None:
        """
        Raise CancelledError if cancellation was requested.

        Args:
            operation: Name of the operation, used in the error message
        """
        if self._event.is_set():
            raise CancelledError(f"{operation} cancelled", operation=operation)

    def wait(self, seconds: float) -> bool:
        """
        Sleep for up to `seconds`, returning early if cancelled.

        Returns:
            True if the token was cancelled during (or before) the wait.
        """
        return self._event.wait(max(seconds, 0.0))

    def register(self) -> None:
        """Bind SIGINT and SIGTERM to this token."""
        self._original_sigint = signal.signal(signal.SIGINT, self._handle_signal)
        self._original_sigterm = signal.signal(signal.SIGTERM, self._handle_signal)

    def unregister(self) -> None:
        """Restore the signal handlers saved by register()."""
        if self._original_sigint is not None:
            signal.signal(signal.SIGINT, self._original_sigint)
            self._original_sigint = None

        if self._original_sigterm is not None:
            signal.signal(signal.SIGTERM, self._original_sigterm)
            self._original_sigterm = None

    def _handle_signal(self, signum: int, frame: object) -> None:
        if self._event.is_set():
            raise SystemExit(130)
        self._event.set()


def check_cancelled(cancel: CancelToken | None, operation: str) -> None:
    """Raise CancelledError if `cancel` is set; a None token never cancels."""
    if cancel is not None:
        cancel.raise_if_cancelled(operation)


def wait_or_cancel(cancel: CancelToken | None, seconds: float, operation: str) -> None:
    """
    Sleep for `seconds`, raising CancelledError if cancelled meanwhile.

    Without a token this is a plain sleep.
    """
    if cancel is None:
        time.sleep(seconds)
        return
    if cancel.wait(seconds):
        raise CancelledError(f"{operation} cancelled", operation=operation)
