"""
Configuration models and loading.

Layered configuration: defaults < user < project < env vars, plus dotenv
files loaded into the environment by the CLI.
"""

from .env import load_layered_env
from .loader import (
    clear_cache,
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import AppConfig, DefaultOptions

__all__ = [
    # Models
    "AppConfig",
    "DefaultOptions",
    # Loader functions
    "clear_cache",
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
    "load_layered_env",
]
