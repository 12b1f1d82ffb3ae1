"""Tests for tolerant numeric coercion."""

import pytest

from tradelog.services.shared.coercion import parse_float, to_float


class TestToFloat:
    """Test to_float never raises and degrades to 0.0."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("", 0.0),
            ("abc", 0.0),
            (None, 0.0),
            ("12.5", 12.5),
        ],
    )
    def test_basic_values(self, value, expected):
        """Test empty, non-numeric, missing and plain numeric text."""
        assert to_float(value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("-7.00", -7.0),
            ("1,234.56", 1234.56),
            ("1,234,567", 1234567.0),
            ("12,5", 12.5),
            ("1,000", 1000.0),
            ("1,234", 1234.0),
            ("-1,500", -1500.0),
            ("1.234,56", 1234.56),
            ("1.234.567,89", 1234567.89),
            ("1,234,567.89", 1234567.89),
            ("1.234.567", 1234567.0),
            ("0,125", 0.125),
            ("1,2345", 1.2345),
            ("1,000 USD", 1000.0),
            ("2 050.10", 2050.10),
            ("2\u00a0050.10", 2050.10),
            ("50 USD", 50.0),
            ("+.5", 0.5),
            (3, 3.0),
            (2.25, 2.25),
        ],
    )
    def test_broker_number_formats(self, value, expected):
        """Test separators, spaces and trailing units found in broker exports."""
        assert to_float(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", ["nan", "inf", "1e400", float("nan"), float("inf"), "-", "."])
    def test_non_finite_and_signs_only(self, value):
        """Test non-finite values and lone signs degrade to 0.0."""
        assert to_float(value) == 0.0


class TestParseFloat:
    """Test parse_float reports unparseable input as None."""

    def test_returns_none_for_text(self):
        assert parse_float("n/a") is None

    def test_returns_none_for_missing(self):
        assert parse_float(None) is None

    def test_returns_value_for_number_text(self):
        assert parse_float(" 0.30 ") == pytest.approx(0.3)
