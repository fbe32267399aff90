"""
Configuration source loading.

This module reads the raw configuration layers: the optional TOML file and the
process environment. Both are returned as nested dictionaries shaped like the
TOML file so they can be merged before validation.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

from ..models.config import Thresholds
from ..validation import handle_config_error, ErrorSeverity

logger = logging.getLogger(__name__)

# Environment variable -> (section, key) in the TOML layout.
ENV_SETTINGS: Dict[str, Tuple[str, str]] = {
    "START": ("window", "start"),
    "END": ("window", "end"),
    "SA_DIRS": ("source", "sa_dirs"),
    "MAX_FILES": ("source", "max_files"),
    "DECODER_TIMEOUT": ("source", "decoder_timeout"),
    "TOPN": ("report", "top_n"),
    "DEBUG": ("report", "debug"),
    "INCLUDE_LO": ("report", "include_loopback"),
    "INCLUDE_INVENTORY": ("report", "include_inventory"),
    "AUDIT_DIR": ("output", "audit_dir"),
    "VCPU_COUNT": ("system", "vcpu_count"),
    "ATOP_LOGPATH": ("atop", "log_path"),
    "ATOP_TOPN": ("atop", "top_n"),
}
ENV_SETTINGS.update(
    {name.upper(): ("thresholds", name) for name in Thresholds.__dataclass_fields__}
)

LINK_SPEED_ENV = "IF_SPEED_Mbps"
LINK_SPEED_ENV_PREFIX = "IF_SPEED_Mbps_"


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Load and parse a TOML file with error handling.

    Args:
        file_path: Path to the TOML file to load
        description: Human-readable description for error messages

    Returns:
        Parsed TOML data as a dictionary

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the file is malformed
    """
    logger.info(f"Loading {description} from: {file_path}")

    if not file_path.exists():
        logger.error(f"{description} not found: {file_path}")
        raise FileNotFoundError(f"{description} not found: {file_path}")

    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {description}",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def load_env_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    """
    Collect configuration overrides from environment variables.

    Values stay strings here; the validators convert and check them. Link
    speeds are kept apart from the TOML table so the per-interface
    IF_SPEED_Mbps_<iface> variables can win over the combined IF_SPEED_Mbps
    list.

    Args:
        environ: Environment mapping, usually os.environ

    Returns:
        Nested dictionary in the TOML layout
    """
    overrides: Dict[str, Any] = {}
    for env_name, (section, key) in ENV_SETTINGS.items():
        value = environ.get(env_name)
        if value is None:
            continue
        if env_name == "SA_DIRS":
            value = [part for part in value.split(":") if part]
        overrides.setdefault(section, {})[key] = value

    network: Dict[str, Any] = {}
    combined = environ.get(LINK_SPEED_ENV)
    if combined:
        network["link_speeds_list"] = combined
    per_iface = {
        name[len(LINK_SPEED_ENV_PREFIX):]: value.strip()
        for name, value in environ.items()
        if name.startswith(LINK_SPEED_ENV_PREFIX) and len(name) > len(LINK_SPEED_ENV_PREFIX)
    }
    if per_iface:
        network["link_speed_overrides"] = per_iface
    if network:
        overrides["network"] = network

    if overrides:
        logger.debug(f"Environment overrides: {sorted(overrides)}")
    return overrides


def merge_layers(*layers: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Deep-merge configuration layers; later layers win key by key.
    """
    merged: Dict[str, Any] = {}
    for layer in layers:
        for key, value in layer.items():
            if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
                merged[key] = merge_layers(merged[key], value)
            elif isinstance(value, Mapping):
                merged[key] = merge_layers(value)
            else:
                merged[key] = value
    return merged
