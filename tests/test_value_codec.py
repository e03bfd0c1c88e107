# ==============================================
# Tests for ValueCodec
# ==============================================

from datetime import date, time

import pytest

from dynaform.errors import DecodeError
from dynaform.normalization import PLACEHOLDER, ValueCodec
from dynaform.schema import DataType, Field


@pytest.fixture
def number_field():
    return Field(1, "Amount", DataType.NUMBER)


@pytest.fixture
def selector_field():
    return Field(2, "Status", DataType.SELECTOR, ["A", "B"])


@pytest.fixture
def boolean_field():
    return Field(3, "Paid", DataType.BOOLEAN)


# ==============================================
# Decoding
# ==============================================

class TestDecode:
    """Raw string → TypedValue."""

    def test_unset_values_decode_to_none(self, number_field):
        """None, "" and whitespace are unset."""
        assert ValueCodec.decode(number_field, None) is None
        assert ValueCodec.decode(number_field, "") is None
        assert ValueCodec.decode(number_field, "   ") is None

    @pytest.mark.parametrize("raw,expected", [
        ("10", 10.0), ("-2.5", -2.5), (" 3 ", 3.0), (".5", 0.5), ("1e3", 1000.0),
    ])
    def test_number(self, number_field, raw, expected):
        assert ValueCodec.decode(number_field, raw).value == expected

    @pytest.mark.parametrize("raw", ["bad", "1,000", "nan", "inf", "12abc"])
    def test_number_rejects_malformed(self, number_field, raw):
        with pytest.raises(DecodeError):
            ValueCodec.decode(number_field, raw)

    def test_date_and_time(self):
        due = Field(4, "Due", DataType.DATE)
        at = Field(5, "At", DataType.TIME)
        assert ValueCodec.decode(due, "2024-02-29").value == date(2024, 2, 29)
        assert ValueCodec.decode(at, "09:30").value == time(9, 30)

    def test_date_rejects_impossible_day(self):
        with pytest.raises(DecodeError):
            ValueCodec.decode(Field(4, "Due", DataType.DATE), "2023-02-30")

    def test_selector_requires_literal_option(self, selector_field):
        """Membership is exact: no trimming, no case folding."""
        assert ValueCodec.decode(selector_field, "A").value == "A"
        with pytest.raises(DecodeError):
            ValueCodec.decode(selector_field, "a")
        with pytest.raises(DecodeError):
            ValueCodec.decode(selector_field, "A ")

    def test_boolean_only_true_false(self, boolean_field):
        assert ValueCodec.decode(boolean_field, "true").value is True
        assert ValueCodec.decode(boolean_field, "false").value is False
        with pytest.raises(DecodeError):
            ValueCodec.decode(boolean_field, "yes")

    def test_try_decode_swallows_malformed(self, number_field):
        assert ValueCodec.try_decode(number_field, "bad") is None
        assert ValueCodec.try_decode(number_field, "4").value == 4.0

    def test_decode_number_without_field(self):
        assert ValueCodec.decode_number("7.25") == 7.25
        assert ValueCodec.decode_number("x") is None
        assert ValueCodec.decode_number(None) is None


# ==============================================
# Encoding and display
# ==============================================

class TestEncodeAndFormat:
    """Python value → stored string, stored string → display text."""

    def test_encode(self, boolean_field, number_field):
        assert ValueCodec.encode(boolean_field, True) == "true"
        assert ValueCodec.encode(number_field, 12) == "12"
        assert ValueCodec.encode(Field(4, "Due", DataType.DATE), date(2024, 1, 5)) == "2024-01-05"
        assert ValueCodec.encode(Field(5, "At", DataType.TIME), time(7, 5)) == "07:05"
        assert ValueCodec.encode(number_field, None) == ""

    def test_format_placeholder_for_unset(self, number_field):
        assert ValueCodec.format(number_field, "") == PLACEHOLDER
        assert ValueCodec.format(number_field, None) == "-"

    def test_format_boolean_as_yes_no(self, boolean_field):
        assert ValueCodec.format(boolean_field, "true") == "Yes"
        assert ValueCodec.format(boolean_field, "false") == "No"

    def test_format_number_with_thousands_separator(self, number_field):
        assert ValueCodec.format(number_field, "1234567") == "1,234,567"
        assert ValueCodec.format(number_field, "1234.5") == "1,234.5"
        assert ValueCodec.format(number_field, "oops") == "oops"

    def test_format_text_passthrough(self):
        assert ValueCodec.format(Field(6, "Note", DataType.TEXT), "hello") == "hello"
        assert ValueCodec.format(None, "orphan") == "orphan"
