"""
Unit tests for utils/normalize.py

Tests all input normalization functions to ensure:
- Correct type conversion
- Proper None/empty string handling
- Appropriate defaults
- Malformed input rejected, never silently defaulted
"""

import math
from datetime import date

import pytest

from utils.normalize import (
    ValidationError,
    to_float,
    to_int,
    to_month,
    to_str,
    to_year,
    validation_error_response,
)


class TestToInt:
    """Tests for to_int()"""

    def test_valid_int_string(self):
        assert to_int("123") == 123
        assert to_int("-456") == -456
        assert to_int("0") == 0

    def test_none_and_empty_use_default(self):
        assert to_int(None) is None
        assert to_int("") is None
        assert to_int(None, default=12) == 12
        assert to_int("", default=12) == 12

    def test_invalid_string_raises(self):
        with pytest.raises(ValidationError) as exc:
            to_int("abc", field="months")
        assert exc.value.field == "months"
        assert exc.value.received_value == "abc"

    def test_float_string_raises(self):
        with pytest.raises(ValidationError):
            to_int("1.5")

    def test_bool_rejected(self):
        with pytest.raises(ValidationError):
            to_int(True)

    def test_bounds(self):
        assert to_int("1", min_value=1) == 1
        with pytest.raises(ValidationError):
            to_int("0", min_value=1, field="months")
        with pytest.raises(ValidationError):
            to_int("-3", min_value=1)
        with pytest.raises(ValidationError):
            to_int("101", max_value=100)


class TestToFloat:
    """Tests for to_float()"""

    def test_valid(self):
        assert to_float("50000") == 50000.0
        assert to_float("12.5") == 12.5

    def test_default(self):
        assert to_float(None, default=50000) == 50000

    def test_positive(self):
        with pytest.raises(ValidationError):
            to_float("0", positive=True)
        with pytest.raises(ValidationError):
            to_float("-50000", positive=True, field="bucketSize")

    @pytest.mark.parametrize("value", ["nan", "inf", "-inf"])
    def test_non_finite_rejected(self, value):
        with pytest.raises(ValidationError):
            to_float(value)

    def test_garbage_rejected(self):
        with pytest.raises(ValidationError):
            to_float("fifty")

    def test_finite_result(self):
        assert math.isfinite(to_float("1e6"))


class TestToStr:
    """Tests for to_str()"""

    def test_strip_and_upper(self):
        assert to_str("  bedok ", upper=True) == "BEDOK"

    def test_whitespace_only_is_absent(self):
        assert to_str("   ") is None
        assert to_str("   ", default="X") == "X"

    def test_no_strip(self):
        assert to_str(" a ", strip=False) == " a "


class TestToMonth:
    """Tests for to_month()"""

    def test_canonical(self):
        assert to_month("2024-06") == "2024-06"

    def test_full_date_drops_day(self):
        assert to_month("2024-06-15") == "2024-06"

    def test_date_object(self):
        assert to_month(date(2024, 3, 1)) == "2024-03"

    def test_default(self):
        assert to_month(None) is None
        assert to_month("", default="2024-01") == "2024-01"

    @pytest.mark.parametrize("value", ["2024-13", "2024-00", "2024/06", "June 2024", "24-06", "0000-06"])
    def test_invalid(self, value):
        with pytest.raises(ValidationError) as exc:
            to_month(value, field="asOf")
        assert exc.value.field == "asOf"

    def test_min_value_inclusive(self):
        assert to_month("0001-12", min_value="0001-12") == "0001-12"
        with pytest.raises(ValidationError) as exc:
            to_month("0001-11", min_value="0001-12", field="asOf")
        assert exc.value.received_value == "0001-11"


class TestToYear:
    """Tests for to_year()"""

    def test_string_and_int(self):
        assert to_year("2024") == "2024"
        assert to_year(2024) == "2024"

    def test_default(self):
        assert to_year(None, default="2025") == "2025"

    @pytest.mark.parametrize("value", ["24", "20245", "year"])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            to_year(value)


class TestValidationErrorResponse:

    def test_shape(self):
        body, status = validation_error_response(
            ValidationError("bad", field="months", received_value="abc")
        )
        assert status == 400
        assert body == {
            "success": False,
            "error": "bad",
            "type": "validation_error",
            "field": "months",
            "received_value": "abc",
        }

    def test_without_field(self):
        body, status = validation_error_response(ValidationError("bad"))
        assert status == 400
        assert "field" not in body
        assert "received_value" not in body
