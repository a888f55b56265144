"""Dotenv loading for the CLI.

Variables are read from user and project `.env` files into os.environ
before configuration is loaded, so `CODEX_EXEC_*` settings can live next
to a project. Variables already exported in the shell always win:

  os.environ (pre-existing) > project .env.local > project .env > user .env
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from dotenv import dotenv_values

from .loader import get_xdg_config_home

logger = logging.getLogger(__name__)


def read_env_file(path: Path) -> dict[str, str]:
    """Parse one dotenv file, dropping keys without a value."""
    if not path.is_file():
        return {}
    return {
        str(key): str(value)
        for key, value in dotenv_values(path).items()
        if key is not None and value is not None
    }


def user_env_paths() -> list[Path]:
    return [get_xdg_config_home() / "codex-exec" / ".env"]


def project_env_paths(project_dir: Path) -> list[Path]:
    return [project_dir / ".env", project_dir / ".env.local"]


def load_layered_env(
    project_dir: Path | None = None,
    user_paths: Iterable[Path] | None = None,
    project_paths: Iterable[Path] | None = None,
) -> list[str]:
    """
    Load dotenv files into os.environ.

    Later files override keys set by earlier files but never keys that were
    in the environment before this call.

    Returns:
        Names of the variables that were set
    """
    if project_dir is None:
        project_dir = Path.cwd()
    if user_paths is None:
        user_paths = user_env_paths()
    if project_paths is None:
        project_paths = project_env_paths(project_dir)

    loaded: dict[str, str] = {}
    for path in [*user_paths, *project_paths]:
        values = read_env_file(Path(path))
        if values:
            logger.debug("Loaded %d variables from %s", len(values), path)
        loaded.update(values)

    applied = [key for key in loaded if key not in os.environ]
    for key in applied:
        os.environ[key] = loaded[key]
    return applied
