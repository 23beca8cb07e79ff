"""
Unit tests for the argument validators and error handling helpers.
"""

import logging

import pytest

from countermon.validation import (
    ErrorSeverity,
    IngenuineSetError,
    InvalidArgumentError,
    MalformedValueError,
    ValidationError,
    handle_cli_error,
    handle_error,
    validate_directory,
    validate_non_zero_integer,
    validate_positive_float,
    validate_positive_integer,
)


@pytest.mark.unit
class TestValidators:
    """Test cases for the argument validators."""

    def test_positive_integer_converts(self):
        assert validate_positive_integer("5") == 5

    @pytest.mark.parametrize("value", [0, -3, True, "x", None])
    def test_positive_integer_rejects(self, value):
        with pytest.raises(ValidationError):
            validate_positive_integer(value, field_name="interval")

    def test_positive_integer_upper_bound(self):
        with pytest.raises(ValidationError):
            validate_positive_integer(11, max_value=10)

    def test_non_zero_integer(self):
        assert validate_non_zero_integer(-1) == -1
        with pytest.raises(ValidationError):
            validate_non_zero_integer(0)

    def test_positive_float_rejects_nan(self):
        with pytest.raises(ValidationError):
            validate_positive_float(float("nan"))

    def test_directory(self, temp_dir):
        assert validate_directory(str(temp_dir)) == temp_dir
        with pytest.raises(InvalidArgumentError):
            validate_directory(None)
        with pytest.raises(InvalidArgumentError):
            validate_directory(temp_dir / "missing")


@pytest.mark.unit
class TestExceptions:
    """Test cases for the exception taxonomy."""

    def test_invalid_argument_is_value_error(self):
        assert issubclass(InvalidArgumentError, ValueError)
        assert issubclass(InvalidArgumentError, ValidationError)

    def test_parse_error_message_includes_line(self):
        error = MalformedValueError("Unexpected value input", 7, "abc")
        assert error.line_number == 7
        assert str(error) == 'Unexpected value input (line 7: "abc")'

    def test_parse_error_without_line(self):
        assert str(MalformedValueError("bad")) == "bad"

    def test_ingenuine_error_keeps_reason(self):
        error = IngenuineSetError("missing PID reading", "app#1")
        assert error.reason == "missing PID reading"
        assert "app#1" in str(error)


@pytest.mark.unit
class TestErrorHandling:
    """Test cases for the logging helpers."""

    def test_handle_error_reraises(self):
        with pytest.raises(ValueError):
            handle_error(ValueError("boom"), "testing")

    def test_handle_error_logs_without_reraise(self, caplog):
        test_logger = logging.getLogger("countermon.test")
        handle_error(
            ValueError("boom"),
            "testing",
            severity=ErrorSeverity.WARNING,
            reraise=False,
            logger=test_logger,
        )
        assert "Error in testing: boom" in caplog.text

    def test_handle_cli_error_exits(self):
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_error(ValueError("boom"), "testing", exit_code=3)
        assert exc_info.value.code == 3
