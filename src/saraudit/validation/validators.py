"""
Generic value validators.

Each validator either returns the normalized value or raises ValidationError
carrying the offending field name, so callers can report exactly which
setting is wrong. Values frequently arrive as strings from the environment
or the command line, so every validator accepts the string spelling too.
"""

import math
import re
from typing import Any, Callable, Dict, Optional, TypeVar, Union

from .exceptions import ValidationError

Number = TypeVar("Number", int, float)

_TIME_OF_DAY_RE = re.compile(r'^(\d{1,2}):(\d{2})(?::(\d{2}))?$')
_INTERFACE_RE = re.compile(r'^[A-Za-z0-9_.:@-]+$')
_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}

# Faster than any real NIC; catches kbit/bps typos in link speed maps
MAX_LINK_SPEED_MBPS = 10_000_000


def _reject(field_name: str, value: Any, message: str) -> ValidationError:
    return ValidationError(f"{field_name} {message}", field_name=field_name, value=value)


def _bounded(
    value: Any,
    convert: Callable[[Any], Number],
    kind: str,
    min_value: Number,
    max_value: Optional[Number],
    field_name: str,
) -> Number:
    # bool is an int subclass; "true" in a numeric field is a typo, not 1
    if isinstance(value, bool):
        raise _reject(field_name, value, f"must be a valid {kind}, got {value}")
    try:
        number = convert(value)
    except (ValueError, TypeError):
        raise _reject(field_name, value, f"must be a valid {kind}, got {value}") from None
    if isinstance(number, float) and math.isnan(number):
        raise _reject(field_name, value, f"must be a valid {kind}, got {value}")
    if number < min_value:
        raise _reject(field_name, value, f"must be >= {min_value}, got {number}")
    if max_value is not None and number > max_value:
        raise _reject(field_name, value, f"must be <= {max_value}, got {number}")
    return number


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer within [min_value, max_value].

    Args:
        value: Integer or its decimal string form
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    return _bounded(value, int, "integer", min_value, max_value, field_name)


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """Validate a threshold-style number; NaN is rejected."""
    return _bounded(value, float, "number", min_value, max_value, field_name)


def validate_boolean(value: Any, field_name: str = "value") -> bool:
    """
    Validate a boolean flag.

    Accepts real booleans, 0/1 integers and the usual environment spellings
    ("1", "true", "yes", "on" and their negatives).
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise _reject(field_name, value, f"must be a boolean, got {value!r}")


def validate_time_of_day(value: Any, field_name: str = "time") -> str:
    """
    Validate a wall-clock time and normalize it to zero-padded HH:MM:SS.

    "8:00", "08:00" and "08:00:00" all normalize to "08:00:00", which keeps
    the later string comparisons against decoder timestamps exact.

    Raises:
        ValidationError: If the value is not a valid time of day
    """
    match = _TIME_OF_DAY_RE.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise _reject(field_name, value, f"must be a time string HH:MM[:SS], got {value!r}")

    hours, minutes, seconds = (int(group or 0) for group in match.groups())
    if hours > 23 or minutes > 59 or seconds > 59:
        raise _reject(field_name, value, f"is out of range: {value!r}")
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def validate_interface_name(name: Any, field_name: str = "interface") -> str:
    """Validate a network interface name (no whitespace, no separators)."""
    if not isinstance(name, str) or not name.strip():
        raise _reject(field_name, name, "must be a non-empty string")
    name = name.strip()
    if not _INTERFACE_RE.match(name):
        raise _reject(field_name, name, f"contains invalid characters: {name!r}")
    return name


def _parse_speed_pairs(text: str, field_name: str) -> Dict[str, str]:
    pairs = {}
    for position, entry in enumerate(text.split(",")):
        entry = entry.strip()
        if not entry:
            continue
        iface, sep, speed = entry.partition("=")
        if not sep:
            raise _reject(field_name, text, f"entry {position} must look like iface=Mbps, got {entry!r}")
        pairs[iface.strip()] = speed.strip()
    return pairs


def validate_link_speed_map(
    value: Union[str, Dict[str, Any]],
    field_name: str = "link_speeds"
) -> Dict[str, int]:
    """
    Validate a per-interface link speed map.

    Args:
        value: Either a mapping {iface: Mbps} or the environment form
               "eth0=1000, ens18 = 10000"
        field_name: Name of the field being validated

    Returns:
        Dictionary of interface name to speed in Mbps

    Raises:
        ValidationError: If an entry is malformed or a speed is not a positive integer
    """
    if isinstance(value, str):
        value = _parse_speed_pairs(value, field_name)
    if not isinstance(value, dict):
        raise _reject(field_name, value, "must be a table of iface = Mbps")

    speeds = {}
    for iface, speed in value.items():
        iface = validate_interface_name(iface, field_name=f"{field_name} interface")
        speeds[iface] = validate_positive_integer(
            speed,
            min_value=1,
            max_value=MAX_LINK_SPEED_MBPS,
            field_name=f"{field_name}.{iface}"
        )
    return speeds
