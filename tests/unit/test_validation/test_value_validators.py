"""
Unit tests for the generic value validators and error helpers.
"""

import logging
from unittest.mock import Mock

import pytest

from saraudit.validation import (
    ConfigurationError,
    ErrorSeverity,
    ValidationError,
    handle_cli_error,
    handle_error,
    validate_boolean,
    validate_interface_name,
    validate_link_speed_map,
    validate_positive_float,
    validate_positive_integer,
    validate_time_of_day,
)


@pytest.mark.unit
class TestNumericValidators:
    """Test cases for integer and float validation."""

    def test_integer_from_string(self):
        assert validate_positive_integer("12") == 12

    def test_integer_bounds(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_positive_integer(0, min_value=1, field_name="top_n")
        assert "top_n must be >= 1" in str(exc_info.value)

        with pytest.raises(ValidationError):
            validate_positive_integer(11, max_value=10)

    def test_boolean_is_not_an_integer(self):
        with pytest.raises(ValidationError):
            validate_positive_integer(True)

    def test_float_rejects_nan(self):
        with pytest.raises(ValidationError):
            validate_positive_float("nan")

    def test_float_bounds(self):
        assert validate_positive_float("0.5", min_value=0.0, max_value=1.0) == 0.5
        with pytest.raises(ValidationError):
            validate_positive_float(-0.1)


@pytest.mark.unit
class TestBooleanValidator:
    """Test cases for boolean flags."""

    @pytest.mark.parametrize("value", [True, 1, "1", "yes", "TRUE", " on "])
    def test_true_values(self, value):
        assert validate_boolean(value) is True

    @pytest.mark.parametrize("value", [False, 0, "0", "no", "off", ""])
    def test_false_values(self, value):
        assert validate_boolean(value) is False

    def test_invalid_value(self):
        with pytest.raises(ValidationError):
            validate_boolean("maybe", field_name="DEBUG")


@pytest.mark.unit
class TestTimeOfDayValidator:
    """Test cases for HH:MM[:SS] parsing."""

    @pytest.mark.parametrize("value,expected", [
        ("8:00", "08:00:00"),
        ("08:00", "08:00:00"),
        ("23:59:59", "23:59:59"),
        (" 07:15:30 ", "07:15:30"),
    ])
    def test_normalization(self, value, expected):
        assert validate_time_of_day(value) == expected

    @pytest.mark.parametrize("value", ["24:00", "12:60", "12", "noon", 800, "12:00:61"])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            validate_time_of_day(value)


@pytest.mark.unit
class TestInterfaceValidators:
    """Test cases for interface names and link speed maps."""

    def test_interface_names(self):
        assert validate_interface_name(" eth0 ") == "eth0"
        assert validate_interface_name("bond0.100") == "bond0.100"
        with pytest.raises(ValidationError):
            validate_interface_name("eth 0")
        with pytest.raises(ValidationError):
            validate_interface_name("")

    def test_speed_map_from_string(self):
        assert validate_link_speed_map("eth0=1000, ens18 = 10000,") == {"eth0": 1000, "ens18": 10000}

    def test_speed_map_from_table(self):
        assert validate_link_speed_map({"eth0": "100"}) == {"eth0": 100}

    def test_speed_must_be_positive(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_link_speed_map({"eth0": 0}, field_name="network.link_speeds")

        assert exc_info.value.field_name == "network.link_speeds.eth0"

    def test_speed_map_rejects_list(self):
        with pytest.raises(ValidationError):
            validate_link_speed_map(["eth0=1000"])


@pytest.mark.unit
class TestErrorHandling:
    """Test cases for the error handling helpers."""

    def test_configuration_error_is_validation_error(self):
        error = ConfigurationError("bad", field_name="window", value="x")

        assert isinstance(error, ValidationError)
        assert error.field_name == "window"
        assert error.severity == ErrorSeverity.ERROR

    def test_handle_error_logs_and_reraises(self):
        logger = Mock(spec=logging.Logger)

        with pytest.raises(OSError):
            handle_error(OSError("disk full"), "writing", logger=logger)

        logger.error.assert_called_once_with("Error in writing: disk full")

    def test_handle_error_without_reraise(self):
        logger = Mock(spec=logging.Logger)

        handle_error(ValueError("x"), "parsing", severity="warning", reraise=False, logger=logger)

        logger.warning.assert_called_once()

    def test_handle_cli_error_exits(self):
        logger = Mock(spec=logging.Logger)

        with pytest.raises(SystemExit) as exc_info:
            handle_cli_error(ConfigurationError("bad window"), "configuration loading", exit_code=1, logger=logger)

        assert exc_info.value.code == 1
        logger.error.assert_called_once()
