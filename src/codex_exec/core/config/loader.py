"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from codex_exec.core.exec.options import SandboxPolicy

from .models import AppConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG_NAME = ".codex-exec.json"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")

# Loaded once per process unless cleared
_config_cache: AppConfig | None = None


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
    """Path to the user config, ~/.config/codex-exec/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "codex-exec" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """Path to .codex-exec.json in the given directory (defaults to cwd)."""
    if cwd is None:
        cwd = Path.cwd()
    return cwd / PROJECT_CONFIG_NAME


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively merge two dictionaries; values in override win.

    Example:
        >>> deep_merge({"process": {"shell": "/bin/sh", "debug_logging": False}},
        ...            {"process": {"debug_logging": True}})
        {'process': {'shell': '/bin/sh', 'debug_logging': True}}
    """
    result = base.copy()
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON object from path.

    Returns:
        The parsed object, or None if the file is missing, unreadable,
        invalid JSON or not an object
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None

    if not isinstance(data, dict):
        logger.warning("Ignoring config at %s: top level is not an object", path)
        return None
    return data


def _parse_bool(name: str, raw: str) -> bool | None:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    logger.warning("Invalid %s value '%s', ignoring", name, raw)
    return None


def _set(config: dict[str, Any], section: str, key: str, value: Any) -> None:
    config.setdefault(section, {})[key] = value


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Supported env vars:
        CODEX_EXEC_COMMAND - overrides process.command
        CODEX_EXEC_SHELL - overrides process.shell
        CODEX_EXEC_LOGIN_SHELL - overrides process.use_login_shell
        CODEX_EXEC_DEBUG - overrides process.debug_logging
        CODEX_EXEC_EXTRA_PATHS - overrides process.additional_paths (os.pathsep list)
        CODEX_EXEC_MODEL - overrides defaults.model
        CODEX_EXEC_SANDBOX - overrides defaults.sandbox
        CODEX_EXEC_TIMEOUT - overrides defaults.timeout (seconds)

    Invalid values are logged and skipped.
    """
    result = deep_merge({}, config_dict)

    if command := os.environ.get("CODEX_EXEC_COMMAND"):
        _set(result, "process", "command", command)

    if shell := os.environ.get("CODEX_EXEC_SHELL"):
        _set(result, "process", "shell", shell)

    if (raw := os.environ.get("CODEX_EXEC_LOGIN_SHELL")) is not None:
        login = _parse_bool("CODEX_EXEC_LOGIN_SHELL", raw)
        if login is not None:
            _set(result, "process", "use_login_shell", login)

    if (raw := os.environ.get("CODEX_EXEC_DEBUG")) is not None:
        debug = _parse_bool("CODEX_EXEC_DEBUG", raw)
        if debug is not None:
            _set(result, "process", "debug_logging", debug)

    if extra := os.environ.get("CODEX_EXEC_EXTRA_PATHS"):
        paths = [p for p in extra.split(os.pathsep) if p]
        _set(result, "process", "additional_paths", paths)

    if model := os.environ.get("CODEX_EXEC_MODEL"):
        _set(result, "defaults", "model", model)

    if sandbox := os.environ.get("CODEX_EXEC_SANDBOX"):
        try:
            _set(result, "defaults", "sandbox", SandboxPolicy(sandbox).value)
        except ValueError:
            logger.warning("Invalid CODEX_EXEC_SANDBOX value '%s', ignoring", sandbox)

    if timeout_str := os.environ.get("CODEX_EXEC_TIMEOUT"):
        try:
            timeout = float(timeout_str)
        except ValueError:
            logger.warning("Invalid CODEX_EXEC_TIMEOUT value '%s', ignoring", timeout_str)
        else:
            if timeout > 0:
                _set(result, "defaults", "timeout", timeout)
            else:
                logger.warning("CODEX_EXEC_TIMEOUT must be > 0, got %s, ignoring", timeout_str)

    return result


def get_default_config() -> dict[str, Any]:
    """Hardcoded defaults; everything else comes from the model defaults."""
    return {
        "process": {"command": "codex", "use_login_shell": True},
        "defaults": {"json_events": True},
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> AppConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (CODEX_EXEC_*)
        2. Project config (.codex-exec.json)
        3. User config (~/.config/codex-exec/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Directory to load .codex-exec.json from (defaults to cwd)
        use_cache: If True, return cached config from a previous load

    Raises:
        ValidationError: If the merged config fails pydantic validation
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

    config = AppConfig.model_validate(merged)
    _config_cache = config
    return config


def clear_cache() -> None:
    """Drop the cached configuration (tests, or after config files change)."""
    global _config_cache
    _config_cache = None
