"""
Sprint status transition rules.

validate_transition() is the single place that decides which status changes
are legal. Rules, checked in order:

1. ARCHIVED is terminal; only ARCHIVED -> ARCHIVED (a no-op) is allowed.
2. ACTIVE -> READY or PLANNING is rejected; archive the sprint first.
3. Same status is a no-op and always allowed.
4. Anything -> ARCHIVED is allowed (manual archival).
5. PLANNING -> ACTIVE and READY -> ACTIVE are allowed.
6. Everything else (READY <-> PLANNING) is rejected.
"""

from __future__ import annotations

from gitta.core.errors import IllegalTransitionError
from gitta.core.sprints.models import SprintStatus

_ACTIVATABLE = frozenset({SprintStatus.PLANNING, SprintStatus.READY})


def _rejection_reason(from_status: SprintStatus, to_status: SprintStatus) -> str | None:
    if from_status is SprintStatus.ARCHIVED:
        if to_status is SprintStatus.ARCHIVED:
            return None
        return "archived sprints are read-only"

    if from_status is SprintStatus.ACTIVE and to_status in _ACTIVATABLE:
        return "active sprint must be archived first"

    if from_status is to_status:
        return None

    if to_status is SprintStatus.ARCHIVED:
        return None

    if to_status is SprintStatus.ACTIVE and from_status in _ACTIVATABLE:
        return None

    return "transition not allowed"


def validate_transition(from_status: SprintStatus, to_status: SprintStatus) -> None:
    """
    Check that a sprint may move from `from_status` to `to_status`.

    Raises:
        IllegalTransitionError: Naming both statuses and the reason.
    """
    reason = _rejection_reason(from_status, to_status)
    if reason is not None:
        raise IllegalTransitionError(from_status, to_status, reason)


def is_valid_transition(from_status: SprintStatus, to_status: SprintStatus) -> bool:
    return _rejection_reason(from_status, to_status) is None


ALLOWED_TRANSITIONS: frozenset[tuple[SprintStatus, SprintStatus]] = frozenset(
    (a, b) for a in SprintStatus for b in SprintStatus if is_valid_transition(a, b)
)
