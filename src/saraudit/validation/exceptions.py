"""
Exception types and error handling helpers.

The audit distinguishes between errors that must stop a run before any file is
read (configuration problems) and errors that only degrade a report section
(missing decoder, missing report type, malformed cells). Only the first kind
ever reaches the process boundary.
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, Union

_module_logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationError(Exception):
    """
    Exception raised when validation fails.

    This is the main exception type used by the generic validators.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class ConfigurationError(ValidationError):
    """
    Invalid window, limit or threshold supplied by the caller.

    Always raised at startup, before the first telemetry file is opened.
    """


class SourceUnavailableError(Exception):
    """No telemetry decoder is usable on this host."""

    def __init__(self, message: str, decoder: Optional[str] = None):
        super().__init__(message)
        self.decoder = decoder


# Severities whose log record carries the traceback
_WITH_TRACEBACK = {ErrorSeverity.DEBUG, ErrorSeverity.CRITICAL}


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Log an error under a context label and optionally re-raise it.

    Args:
        error: The exception that occurred
        context: Short description of what was being done, e.g. "reading sa15"
        severity: ErrorSeverity or its lowercase name
        reraise: Whether to re-raise the exception after logging
        logger: Logger to use instead of this module's logger
    """
    level = ErrorSeverity(severity.lower()) if isinstance(severity, str) else severity
    log_method = getattr(logger or _module_logger, level.value)

    message = f"Error in {context}: {error}"
    if level in _WITH_TRACEBACK:
        log_method(message, exc_info=True)
    else:
        log_method(message)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    handle_error(error, f"config {context}", **kwargs)


def handle_cli_error(error: Exception, context: str, exit_code: int = 1, **kwargs) -> None:
    """Log a fatal CLI error and exit the process with exit_code."""
    kwargs.setdefault("severity", ErrorSeverity.ERROR)
    handle_error(error, f"CLI {context}", reraise=False, **kwargs)
    sys.exit(exit_code)
