"""
Exception taxonomy and error handling helpers.

This module defines every exception raised by countermon together with the
small set of helpers used to log errors consistently. Three families exist:

- ValidationError / InvalidArgumentError: bad arguments and bad configuration
- SampleParseError and its subclasses: raw text that breaks the line grammar
- SampleSetError and its subclasses: strict SampleSet policy violations

None of them are retried; they propagate to the immediate caller.
"""

import logging
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


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

    This is the main exception type used for configuration and argument
    validation.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class InvalidArgumentError(ValidationError, ValueError):
    """Structural violation of a constructor or function argument."""


# --- Parse errors ---


class SampleParseError(Exception):
    """
    Base class for raw sample text that could not be parsed.

    Attributes:
        line_number: 1-based line number in the original input, when known
        line: The offending line text, when known
    """

    def __init__(self, message: str, line_number: Optional[int] = None,
                 line: Optional[str] = None):
        if line_number is not None:
            message = f"{message} (line {line_number}: \"{line}\")"
        super().__init__(message)
        self.line_number = line_number
        self.line = line


class MalformedValueError(SampleParseError):
    """A value line that is not a bare number."""


class MalformedCounterLineError(SampleParseError):
    """A reading-identity or entry line that does not have the expected shape."""


class MalformedTimestampError(SampleParseError):
    """A record that does not start with a parseable timestamp."""


class DuplicateReadingError(SampleParseError):
    """Two readings with case-insensitively equal names in one sample."""


class DuplicateTimestampError(SampleParseError):
    """A timestamp line found before the previous record was closed."""


class IncompleteSampleError(SampleParseError):
    """A record with fewer lines than the grammar requires."""


class SampleCountMismatchError(SampleParseError):
    """Timestamps seen and records produced disagree; always fatal."""


# --- SampleSet policy errors ---


class SampleSetError(Exception):
    """Base class for SampleSet policy violations."""


class IncompleteSetError(SampleSetError):
    """Samples in a set do not share the same reading names."""


class IngenuineSetError(SampleSetError):
    """
    A set that does not look like one continuous observation.

    Attributes:
        reason: The human-readable reason reported by the set's Meta
    """

    def __init__(self, reason: str, counter_name: Optional[str] = None):
        if counter_name:
            message = f"SampleSet '{counter_name}' is not genuine ({reason})"
        else:
            message = f"SampleSet is not genuine ({reason})"
        super().__init__(message)
        self.reason = reason
        self.counter_name = counter_name


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_file_error(error: Exception, context: str, **kwargs) -> None:
    """Handle file-related errors."""
    handle_error(error, f"file {context}", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Log a CLI error and exit with the given code."""
    exit_code = kwargs.pop('exit_code', 1)
    include_traceback = kwargs.pop('include_traceback', False)
    severity = kwargs.pop('severity', ErrorSeverity.CRITICAL if include_traceback else ErrorSeverity.ERROR)

    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)

    import sys
    sys.exit(exit_code)
