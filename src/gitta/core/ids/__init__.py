"""
Story identifier generation.

Public API:
    - IDCounter: File-backed counter producing IDs like "US-12"
    - CounterFile: Persisted counter state model
    - FileLock / LockGuard: Advisory lock guarding the counter file

Example:
    >>> from gitta.core.ids import IDCounter
    >>> IDCounter(Path("/repo")).generate_next_id("US")
    'US-1'
"""

from gitta.core.ids.counters import COUNTERS_FILE, CounterFile, IDCounter
from gitta.core.ids.lock import FileLock, LockGuard

__all__ = [
    "COUNTERS_FILE",
    "CounterFile",
    "FileLock",
    "IDCounter",
    "LockGuard",
]
