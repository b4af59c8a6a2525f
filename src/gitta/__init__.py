"""
Gitta - sprint lifecycle and consistency tooling

Keeps sprint folders, their status records, and the Current pointer in
agreement, and hands out collision-free story IDs.
"""

__version__ = "0.4.0"

# Re-export core models for convenience
from gitta.core.config.models import GittaConfig
from gitta.core.sprints.models import Sprint, SprintStatus

__all__ = ["GittaConfig", "Sprint", "SprintStatus", "__version__"]
