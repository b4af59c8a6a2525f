"""
Sprint lifecycle: status encoding, transitions, activation, and repair.

A sprint is a directory under the sprints root whose name carries a status
prefix (`!` active, `+` ready, `@` planning, `~` archived). The status
record at `<sprint>/.gitta/status` is the source of truth; the prefix is
the visible mirror the doctor keeps in sync.

Public API:
    Models:
        - SprintStatus, Sprint, SprintStatusView
        - Inconsistency, RepairResult, ActivationResult

    Services:
        - SprintRepository: list, resolve, rename, create sprint folders
        - SprintActivationService: promote a Ready/Planning sprint
        - SprintDoctor: detect and repair prefix/record disagreements
        - SprintPlanService, SprintStartService: create sprints
"""

from gitta.core.sprints.activation import ActivationStep, SprintActivationService
from gitta.core.sprints.doctor import PointerHealth, SprintDoctor
from gitta.core.sprints.folder_name import ParsedFolderName, decode, encode
from gitta.core.sprints.models import (
    ActivationResult,
    Inconsistency,
    RepairResult,
    Sprint,
    SprintStatus,
    SprintStatusView,
)
from gitta.core.sprints.planning import SprintPlanService, SprintStartService
from gitta.core.sprints.pointer import LinkType, resolve_current, set_current
from gitta.core.sprints.repository import SprintRepository
from gitta.core.sprints.status_file import read_status, read_status_view, write_status
from gitta.core.sprints.transitions import is_valid_transition, validate_transition

__all__ = [
    "ActivationResult",
    "ActivationStep",
    "Inconsistency",
    "LinkType",
    "ParsedFolderName",
    "PointerHealth",
    "RepairResult",
    "Sprint",
    "SprintActivationService",
    "SprintDoctor",
    "SprintPlanService",
    "SprintRepository",
    "SprintStartService",
    "SprintStatus",
    "SprintStatusView",
    "decode",
    "encode",
    "is_valid_transition",
    "read_status",
    "read_status_view",
    "resolve_current",
    "set_current",
    "validate_transition",
    "write_status",
]
