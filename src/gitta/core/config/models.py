"""
Configuration data models for gitta.

These models define the structure of .gitta/config.json and
~/.config/gitta/config.json files, with validation and type safety via
Pydantic.
"""

from pydantic import BaseModel, Field, field_validator


class IdsConfig(BaseModel):
    """
    Identifier generator settings.

    Controls how long a process waits for the counter lock and how often it
    retries after a lock timeout.
    """
    lock_timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description="Maximum time to wait for the counter lock on one attempt"
    )
    lock_poll_interval_seconds: float = Field(
        default=0.1,
        gt=0.0,
        description="Delay between attempts to create the lock marker"
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts per ID before a lock timeout is reported"
    )
    retry_base_delay_seconds: float = Field(
        default=0.1,
        ge=0.0,
        description="Base delay for exponential backoff between attempts"
    )


class SprintsConfig(BaseModel):
    """Sprint defaults."""
    default_duration: str = Field(
        default="2w",
        pattern=r"^[0-9]+[wWdD]$",
        description="Duration for new sprints, e.g. '2w' or '10d'"
    )


class GittaConfig(BaseModel):
    """
    Top-level gitta configuration.

    Loaded from defaults, user config, project config, and env vars.

    Example:
        >>> config = GittaConfig(ids=IdsConfig(lock_timeout_seconds=2.0))
        >>> config.ids.max_retries
        3
    """
    log_level: str = Field(
        default="warning",
        description="Log level: debug, info, warning, or error"
    )
    ids: IdsConfig = Field(
        default_factory=IdsConfig,
        description="Identifier generator settings"
    )
    sprints: SprintsConfig = Field(
        default_factory=SprintsConfig,
        description="Sprint defaults"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        normalized = v.strip().lower()
        if normalized == "warn":
            normalized = "warning"
        if normalized not in ("debug", "info", "warning", "error"):
            raise ValueError(
                f"log_level must be one of debug, info, warning, error (got {v!r})"
            )
        return normalized
