"""
Counter management for collision-free story ID allocation.

Counters are stored in `.gitta/id-counters.json` at the repository root:

    {"counters": {"US": 12, "BG": 3}}

Each entry is the last number issued for that 2-letter prefix. Updates are
serialized across processes by an advisory lock marker next to the file
(`id-counters.json.lock`):

1. Acquire the lock
2. Read the counter file
3. Increment the entry for the prefix by exactly one
4. Write the file back (temp file + replace)
5. Release the lock

Only lock timeouts are retried, with exponential backoff. A counter file
that exists but cannot be parsed is reported as corruption and left alone.

Example:
    >>> counter = IDCounter(Path("/repo"))
    >>> counter.generate_next_id("US")
    'US-1'
    >>> counter.generate_next_id("US")
    'US-2'
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from pydantic import BaseModel, Field, NonNegativeInt, ValidationError

from gitta.core.cancel import CancelToken, check_cancelled, wait_or_cancel
from gitta.core.config.models import IdsConfig
from gitta.core.errors import (
    CorruptionError,
    InvalidInputError,
    IOFailureError,
    LockTimeoutError,
)
from gitta.core.ids.lock import FileLock

logger = logging.getLogger(__name__)

COUNTERS_FILE = Path(".gitta") / "id-counters.json"
LOCK_SUFFIX = ".lock"

PREFIX_PATTERN = re.compile(r"[A-Z]{2}")


class CounterFile(BaseModel):
    """
    Persisted counter state.

    Example:
        >>> state = CounterFile(counters={"US": 4})
        >>> state.increment("US")
        5
    """

    counters: dict[str, NonNegativeInt] = Field(
        default_factory=dict,
        description="Last issued sequence number per 2-letter prefix",
    )

    def increment(self, prefix: str) -> int:
        """Bump the counter for `prefix` and return the new value."""
        value = self.counters.get(prefix, 0) + 1
        self.counters[prefix] = value
        return value


class IDCounter:
    """
    File-backed ID generator safe for concurrent processes.

    Args:
        project_dir: Repository root holding `.gitta/`
        config: Lock and retry settings (defaults if omitted)
    """

    def __init__(self, project_dir: Path, config: IdsConfig | None = None) -> None:
        self.project_dir = project_dir
        self.config = config or IdsConfig()

    @property
    def counter_path(self) -> Path:
        return self.project_dir / COUNTERS_FILE

    @property
    def lock_path(self) -> Path:
        return self.counter_path.with_name(self.counter_path.name + LOCK_SUFFIX)

    def _lock(self) -> FileLock:
        return FileLock(
            self.lock_path,
            timeout=self.config.lock_timeout_seconds,
            poll_interval=self.config.lock_poll_interval_seconds,
        )

    def read_counters(self) -> CounterFile:
        """
        Read the counter file without taking the lock.

        A missing or zero-byte file is an empty counter set.

        Raises:
            CorruptionError: If the file exists but is not a valid counter file.
            IOFailureError: If the file cannot be read.
        """
        path = self.counter_path
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return CounterFile()
        except OSError as e:
            raise IOFailureError.wrap("read", path, e) from e

        if not raw.strip():
            return CounterFile()

        try:
            return CounterFile.model_validate_json(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValidationError) as e:
            raise CorruptionError(
                f"ID counter file {path} is corrupted, please fix it manually",
                path=path,
                operation="read",
                cause=e,
            ) from e

    def _write_counters(self, state: CounterFile) -> None:
        path = self.counter_path
        temp_path = path.with_name(path.name + ".tmp")
        try:
            with temp_path.open("w", encoding="utf-8") as f:
                f.write(state.model_dump_json(indent=2))
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise IOFailureError.wrap("write", path, e) from e

    def _generate_locked(self, prefix: str, cancel: CancelToken | None) -> str:
        try:
            self.counter_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailureError.wrap("create", self.counter_path.parent, e) from e

        with self._lock().acquire(cancel=cancel):
            state = self.read_counters()
            value = state.increment(prefix)
            self._write_counters(state)

        return f"{prefix}-{value}"

    def generate_next_id(self, prefix: str, cancel: CancelToken | None = None) -> str:
        """
        Allocate the next ID for `prefix`.

        Args:
            prefix: Exactly two uppercase ASCII letters, e.g. "US"
            cancel: Optional token, honoured before locking and during backoff

        Returns:
            The new ID, formatted "<prefix>-<number>".

        Raises:
            InvalidInputError: If the prefix is malformed (no lock is taken).
            CorruptionError: If the counter file cannot be parsed.
            LockTimeoutError: If every attempt timed out waiting for the lock.
            CancelledError: If `cancel` fires.
        """
        check_cancelled(cancel, "generate ID")

        if not PREFIX_PATTERN.fullmatch(prefix):
            raise InvalidInputError(
                f"invalid prefix format {prefix!r}: must be exactly 2 uppercase letters"
            )

        max_retries = self.config.max_retries
        last_error: LockTimeoutError | None = None

        for attempt in range(max_retries):
            if attempt > 0:
                delay = self.config.retry_base_delay_seconds * (2 ** (attempt - 1))
                logger.warning(
                    "Lock timeout generating %s ID (attempt %d/%d), retrying in %.2fs",
                    prefix,
                    attempt,
                    max_retries,
                    delay,
                )
                wait_or_cancel(cancel, delay, "generate ID")

            try:
                new_id = self._generate_locked(prefix, cancel)
            except LockTimeoutError as e:
                last_error = e
                continue

            logger.info("Allocated ID %s", new_id)
            return new_id

        raise LockTimeoutError(
            f"failed to allocate {prefix} ID after {max_retries} attempts: {last_error}",
            attempts=max_retries,
            path=self.lock_path,
            operation="lock",
            cause=last_error,
        ) from last_error
