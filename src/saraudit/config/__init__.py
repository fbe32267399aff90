"""
Configuration management for the saraudit package.

This module provides a clean interface for loading, validating, and accessing
configuration assembled from an optional TOML file and the environment.
"""

from .manager import (
    DEFAULT_CONFIG_FILE_PATH,
    clear_config_cache,
    get_config,
    is_config_loaded,
    load_config,
    reset_config_path,
    set_config_path,
)

from .loader import (
    load_env_overrides,
    load_toml_file,
    merge_layers,
)
from .validators import validate_audit_config

__all__ = [
    # Main interface
    "get_config",
    "load_config",
    "set_config_path",
    "clear_config_cache",
    "reset_config_path",
    "DEFAULT_CONFIG_FILE_PATH",
    "is_config_loaded",
    # Advanced interface
    "load_toml_file",
    "load_env_overrides",
    "merge_layers",
    "validate_audit_config",
]
