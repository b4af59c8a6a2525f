"""
Tests for the advisory marker-file lock.
"""

import threading

import pytest

from gitta.core.cancel import CancelToken
from gitta.core.errors import CancelledError, LockTimeoutError
from gitta.core.ids.lock import FileLock


@pytest.fixture
def lock_path(tmp_path):
    return tmp_path / "id-counters.json.lock"


class TestFileLock:
    """Test FileLock acquire/release."""

    def test_acquire_creates_marker(self, lock_path):
        """Holding the lock means the marker exists."""
        lock = FileLock(lock_path, timeout=1.0)
        guard = lock.acquire()
        assert guard.path == lock_path
        assert lock_path.exists()
        assert lock.is_locked()
        guard.release()
        assert not lock_path.exists()

    def test_context_manager(self, lock_path):
        """The guard releases on exit, even on error."""
        lock = FileLock(lock_path, timeout=1.0)
        with pytest.raises(RuntimeError):
            with lock.acquire():
                raise RuntimeError("boom")
        assert not lock_path.exists()

    def test_release_twice(self, lock_path):
        """Releasing again is a no-op."""
        guard = FileLock(lock_path, timeout=1.0).acquire()
        guard.release()
        guard.release()
        assert guard.released

    def test_timeout(self, lock_path):
        """A held marker makes acquire time out."""
        lock_path.touch()
        lock = FileLock(lock_path, timeout=0.2, poll_interval=0.05)

        with pytest.raises(LockTimeoutError) as exc_info:
            lock.acquire()

        assert exc_info.value.path == lock_path
        assert "stale lock marker" in str(exc_info.value)
        assert lock_path.exists()

    def test_waits_for_release(self, lock_path):
        """A waiter gets the lock once the holder lets go."""
        holder = FileLock(lock_path, timeout=1.0).acquire()
        timer = threading.Timer(0.1, holder.release)
        timer.start()
        try:
            guard = FileLock(lock_path, timeout=2.0, poll_interval=0.02).acquire()
        finally:
            timer.join()
        assert lock_path.exists()
        guard.release()

    def test_cancelled_wait(self, lock_path):
        """Cancelling stops the wait before the timeout."""
        lock_path.touch()
        token = CancelToken()
        timer = threading.Timer(0.1, token.cancel)
        timer.start()
        try:
            with pytest.raises(CancelledError):
                FileLock(lock_path, timeout=30.0, poll_interval=0.05).acquire(cancel=token)
        finally:
            timer.join()

    def test_marker_age(self, lock_path):
        """Age is reported only while the marker exists."""
        lock = FileLock(lock_path)
        assert lock.marker_age() is None
        lock_path.touch()
        assert lock.marker_age() is not None
