"""
Validation and error handling for the countermon package.

This module provides the exception taxonomy, input validation and error
handling with consistent error reporting across the application.
"""

from .exceptions import (
    ErrorSeverity,
    ValidationError,
    InvalidArgumentError,
    SampleParseError,
    MalformedValueError,
    MalformedCounterLineError,
    MalformedTimestampError,
    DuplicateReadingError,
    DuplicateTimestampError,
    IncompleteSampleError,
    SampleCountMismatchError,
    SampleSetError,
    IncompleteSetError,
    IngenuineSetError,
    handle_error,
    handle_config_error,
    handle_file_error,
    handle_cli_error,
)

from .validators import (
    validate_bool,
    validate_directory,
    validate_non_empty_string,
    validate_non_zero_integer,
    validate_path_exists,
    validate_positive_float,
    validate_positive_integer,
)

__all__ = [
    # Exceptions
    "ErrorSeverity",
    "ValidationError",
    "InvalidArgumentError",
    "SampleParseError",
    "MalformedValueError",
    "MalformedCounterLineError",
    "MalformedTimestampError",
    "DuplicateReadingError",
    "DuplicateTimestampError",
    "IncompleteSampleError",
    "SampleCountMismatchError",
    "SampleSetError",
    "IncompleteSetError",
    "IngenuineSetError",
    # Handlers
    "handle_error",
    "handle_config_error",
    "handle_file_error",
    "handle_cli_error",
    # Validators
    "validate_bool",
    "validate_directory",
    "validate_non_empty_string",
    "validate_non_zero_integer",
    "validate_path_exists",
    "validate_positive_float",
    "validate_positive_integer",
]
