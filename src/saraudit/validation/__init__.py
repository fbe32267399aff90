"""
Validation and error handling for the saraudit package.

This module provides input validation and the error taxonomy shared by the
configuration layer, the telemetry readers and the CLI.
"""

from .exceptions import (
    ConfigurationError,
    ErrorSeverity,
    SourceUnavailableError,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
)

from .validators import (
    validate_boolean,
    validate_interface_name,
    validate_link_speed_map,
    validate_positive_float,
    validate_positive_integer,
    validate_time_of_day,
)

__all__ = [
    # Errors
    "ConfigurationError",
    "ErrorSeverity",
    "SourceUnavailableError",
    "ValidationError",
    "handle_cli_error",
    "handle_config_error",
    "handle_error",
    # Validators
    "validate_boolean",
    "validate_interface_name",
    "validate_link_speed_map",
    "validate_positive_float",
    "validate_positive_integer",
    "validate_time_of_day",
]
