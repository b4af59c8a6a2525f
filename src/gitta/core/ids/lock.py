"""
Advisory file lock based on exclusive creation of a marker file.

Holding the lock means the marker file exists. Acquisition creates it with
O_CREAT | O_EXCL, polling at a fixed interval until a bounded wait runs out.
Release deletes it.

There is no owner tracking: if a holder crashes without releasing, the
marker stays behind and every later acquirer times out until someone
removes it by hand. marker_age() is available so callers can report how
old a blocking marker is, but nothing here decides a marker is stale.

Usage:
    >>> lock = FileLock(Path(".gitta/id-counters.json.lock"), timeout=5.0)
    >>> with lock.acquire(cancel=token):
    ...     ...  # read-modify-write the counter file
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from types import TracebackType

from gitta.core.cancel import CancelToken, check_cancelled, wait_or_cancel
from gitta.core.errors import IOFailureError, LockTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0
DEFAULT_POLL_INTERVAL = 0.1


class LockGuard:
    """
    Proof that a FileLock is held.

    Returned by FileLock.acquire(); releasing it deletes the marker. Usable
    as a context manager.
    """

    def __init__(self, lock: FileLock) -> None:
        self._lock = lock
        self.released = False

    @property
    def path(self) -> Path:
        return self._lock.path

    def release(self) -> None:
        self._lock.release(self)

    def __enter__(self) -> LockGuard:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()


class FileLock:
    """
    Advisory lock represented by a marker file.

    Args:
        path: Path of the marker file
        timeout: Maximum seconds to wait in acquire()
        poll_interval: Seconds between creation attempts
    """

    def __init__(
        self,
        path: Path,
        timeout: float = DEFAULT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self.path = path
        self.timeout = timeout
        self.poll_interval = poll_interval

    def _try_create(self) -> bool:
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        except OSError as e:
            raise IOFailureError.wrap("create lock marker", self.path, e) from e
        os.close(fd)
        return True

    def acquire(self, cancel: CancelToken | None = None) -> LockGuard:
        """
        Acquire the lock, waiting up to `timeout` seconds.

        Args:
            cancel: Optional token; cancelling aborts the wait immediately

        Returns:
            A LockGuard to pass to release() (or use as a context manager).

        Raises:
            LockTimeoutError: If the marker still exists after `timeout`.
            CancelledError: If `cancel` fires before the lock is acquired.
            IOFailureError: If the marker cannot be created for another reason.
        """
        check_cancelled(cancel, "acquire lock")
        deadline = time.monotonic() + self.timeout

        while True:
            if self._try_create():
                logger.debug("Acquired lock %s", self.path)
                return LockGuard(self)

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                age = self.marker_age()
                age_note = f" (marker is {age:.0f}s old)" if age is not None else ""
                logger.info("Timed out waiting for lock %s%s", self.path, age_note)
                raise LockTimeoutError(
                    f"failed to acquire lock {self.path} within {self.timeout:g}s"
                    f"{age_note}; another gitta process may be running, or a "
                    "crashed process left a stale lock marker that must be removed",
                    path=self.path,
                    operation="lock",
                )

            wait_or_cancel(cancel, min(self.poll_interval, remaining), "acquire lock")

    def release(self, guard: LockGuard) -> None:
        """Delete the marker. A marker that is already gone is ignored."""
        if guard.released:
            return
        guard.released = True
        try:
            self.path.unlink()
        except FileNotFoundError:
            logger.warning("Lock marker %s was already removed", self.path)
        except OSError as e:
            raise IOFailureError.wrap("remove lock marker", self.path, e) from e
        logger.debug("Released lock %s", self.path)

    def is_locked(self) -> bool:
        return self.path.exists()

    def marker_age(self) -> float | None:
        """Seconds since the marker was last modified, or None if absent."""
        try:
            return time.time() - self.path.stat().st_mtime
        except OSError:
            return None
