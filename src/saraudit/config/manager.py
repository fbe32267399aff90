"""
Configuration management and singleton pattern.

This module provides the main configuration loading interface. The resolved
AuditConfig is cached so every component of a run sees the same settings.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ..models.config import AuditConfig
from ..validation import ConfigurationError, handle_config_error, ErrorSeverity
from .loader import load_env_overrides, load_toml_file, merge_layers
from .validators import validate_audit_config

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[AuditConfig] = None

# Default configuration file, relative to the repository root. It is optional:
# when it does not exist the built-in defaults apply.
DEFAULT_CONFIG_FILE_PATH = Path(__file__).parent.parent.parent.parent / "conf" / "config.toml"
_CONFIG_FILE_PATH = DEFAULT_CONFIG_FILE_PATH
_CONFIG_PATH_EXPLICIT = False


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path.

    Unlike the default path, an explicitly set file must exist.

    Args:
        config_path: Path to the config.toml file
    """
    global _CONFIG_FILE_PATH, _CONFIG, _CONFIG_PATH_EXPLICIT
    _CONFIG_FILE_PATH = Path(config_path)
    _CONFIG_PATH_EXPLICIT = True
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    """
    Clear the cached configuration, forcing a reload on next access.
    """
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def reset_config_path() -> None:
    """Return to the optional default configuration file."""
    global _CONFIG_FILE_PATH, _CONFIG, _CONFIG_PATH_EXPLICIT
    _CONFIG_FILE_PATH = DEFAULT_CONFIG_FILE_PATH
    _CONFIG_PATH_EXPLICIT = False
    _CONFIG = None


def load_config(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    overrides: Optional[Dict[str, Any]] = None,
    require_file: bool = False,
) -> AuditConfig:
    """
    Build an AuditConfig from defaults, a TOML file, the environment and
    explicit overrides, in increasing order of precedence.

    Args:
        config_path: TOML file to read; skipped when missing unless require_file
        environ: Environment mapping (defaults to os.environ)
        overrides: Nested dictionary in the TOML layout, typically from CLI flags
        require_file: Treat a missing config_path as an error

    Returns:
        Validated AuditConfig

    Raises:
        ConfigurationError: If the file is missing (when required), malformed,
            or any setting is invalid
    """
    file_data: Dict[str, Any] = {}
    if config_path is not None:
        if config_path.exists():
            try:
                file_data = load_toml_file(config_path, "configuration file")
            except Exception as e:
                raise ConfigurationError(f"Cannot read configuration file {config_path}: {e}") from e
        elif require_file:
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                field_name="config",
                value=str(config_path),
            )
        else:
            logger.debug(f"No configuration file at {config_path}, using defaults")

    env_data = load_env_overrides(os.environ if environ is None else environ)
    merged = merge_layers(file_data, env_data, overrides or {})

    try:
        config = validate_audit_config(merged)
    except ConfigurationError as e:
        handle_config_error(
            error=e,
            context="validating settings",
            severity=ErrorSeverity.ERROR,
            reraise=True,
            logger=logger,
        )
        raise

    logger.debug(
        f"Configuration loaded: window={config.window.label} max_files={config.source.max_files} "
        f"top_n={config.report.top_n}"
    )
    return config


def get_config() -> AuditConfig:
    """
    Get the global configuration, loading it if necessary.

    Returns:
        The singleton AuditConfig instance

    Raises:
        ConfigurationError: If loading or validation fails
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = load_config(_CONFIG_FILE_PATH, require_file=_CONFIG_PATH_EXPLICIT)
    return _CONFIG


def is_config_loaded() -> bool:
    """Check if configuration has been loaded and cached."""
    return _CONFIG is not None
