"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import os
from pathlib import Path
from typing import Any

from .models import GittaConfig

# Global cache to avoid reloading config multiple times per invocation
_config_cache: GittaConfig | None = None


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """Path to ~/.config/gitta/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "gitta" / "config.json"


def get_project_config_path(project_dir: Path | None = None) -> Path:
    """
    Get path to project configuration file.

    Args:
        project_dir: Project root (defaults to current directory)

    Returns:
        Path to .gitta/config.json in the project root
    """
    if project_dir is None:
        project_dir = Path.cwd()
    return project_dir / ".gitta" / "config.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`. Nested dicts
    are merged, not replaced.

    Example:
        >>> deep_merge({"ids": {"max_retries": 3}}, {"ids": {"lock_timeout_seconds": 1}})
        {'ids': {'max_retries': 3, 'lock_timeout_seconds': 1}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, OSError) as e:
        # Config system should be resilient: warn and continue with defaults
        print(f"Warning: Failed to parse config at {path}: {e}")
        return None


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Env vars have the highest precedence and override all config files.

    Supported env vars:
        GITTA_LOG_LEVEL - overrides log_level
        GITTA_LOCK_TIMEOUT - overrides ids.lock_timeout_seconds
        GITTA_MAX_RETRIES - overrides ids.max_retries

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = config_dict.copy()

    if log_level := os.environ.get("GITTA_LOG_LEVEL"):
        result["log_level"] = log_level

    if timeout_str := os.environ.get("GITTA_LOCK_TIMEOUT"):
        try:
            timeout = float(timeout_str)
            if timeout <= 0:
                print(f"Warning: GITTA_LOCK_TIMEOUT must be > 0, got {timeout}, ignoring")
            else:
                result["ids"] = {**result.get("ids", {}), "lock_timeout_seconds": timeout}
        except ValueError:
            print(f"Warning: Invalid GITTA_LOCK_TIMEOUT value '{timeout_str}', ignoring")

    if retries_str := os.environ.get("GITTA_MAX_RETRIES"):
        try:
            retries = int(retries_str)
            if retries < 1:
                print(f"Warning: GITTA_MAX_RETRIES must be >= 1, got {retries}, ignoring")
            else:
                result["ids"] = {**result.get("ids", {}), "max_retries": retries}
        except ValueError:
            print(f"Warning: Invalid GITTA_MAX_RETRIES value '{retries_str}', ignoring")

    return result


def get_default_config() -> dict[str, Any]:
    """Hardcoded default configuration."""
    return {
        "log_level": "warning",
        "ids": {
            "lock_timeout_seconds": 5.0,
            "lock_poll_interval_seconds": 0.1,
            "max_retries": 3,
            "retry_base_delay_seconds": 0.1,
        },
        "sprints": {"default_duration": "2w"},
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> GittaConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (GITTA_*)
        2. Project config (.gitta/config.json)
        3. User config (~/.config/gitta/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Project directory to load .gitta/config.json from
        use_cache: If True, return cached config from previous load

    Returns:
        Validated GittaConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = GittaConfig(**merged)
    _config_cache = config

    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None
