"""
Layered .env loading.

Variables are read, lowest precedence first, from the user env file
(~/.config/gitta/.env) and then the project's .env and .env.local. A
variable already exported in the process environment is never replaced.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from dotenv import dotenv_values

from .loader import get_xdg_config_home

logger = logging.getLogger(__name__)

PROJECT_ENV_FILES = (".env", ".env.local")


def get_user_env_path() -> Path:
    return get_xdg_config_home() / "gitta" / ".env"


def read_env_file(path: Path) -> dict[str, str]:
    """Parse one .env file. Missing files and keys without a value are skipped."""
    if not path.is_file():
        return {}
    return {
        str(key): str(value)
        for key, value in dotenv_values(path).items()
        if key is not None and value is not None
    }


def collect_env(paths: Iterable[Path]) -> dict[str, str]:
    """Merge several .env files; later files win."""
    merged: dict[str, str] = {}
    for path in paths:
        merged.update(read_env_file(Path(path)))
    return merged


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> list[str]:
    """
    Export variables from the user and project .env files.

    Args:
        project_dir: Base directory for the project env files (defaults to cwd)
        user_env_paths: Explicit user env files, replacing the XDG default
        project_env_paths: Explicit project env files, replacing .env/.env.local

    Returns:
        Names of the variables that were set, sorted.
    """
    if project_dir is None:
        project_dir = Path.cwd()
    if user_env_paths is None:
        user_env_paths = [get_user_env_path()]
    if project_env_paths is None:
        project_env_paths = [project_dir / name for name in PROJECT_ENV_FILES]

    merged = collect_env([*user_env_paths, *project_env_paths])

    applied = sorted(key for key in merged if key not in os.environ)
    for key in applied:
        os.environ[key] = merged[key]

    if applied:
        logger.debug("Loaded from .env files: %s", ", ".join(applied))
    return applied
