"""Tests for fixed-width field decoding."""

import pytest

from molblock.exceptions import FormatError, RangeError
from molblock.fields import field, optional_int, to_float, to_int


class TestField:
    """Test substring extraction."""

    def test_field(self):
        assert field("  1  2  3", 3, 3) == "  2"

    def test_short_line(self):
        """Fields past the end of the line are short, not errors."""
        assert field("  1", 3, 3) == ""
        assert field("  1 2", 3, 3) == " 2"


class TestToInt:
    """Test integer decoding."""

    @pytest.mark.parametrize("text,expected", [
        ("  1", 1),
        (" -2", -2),
        ("12 ", 12),
        ("999", 999),
        ("  0", 0),
    ])
    def test_values(self, text, expected):
        assert to_int(text) == expected

    def test_blank_accepted(self):
        """All-blank field decodes to 0 when allowed."""
        assert to_int("   ", accept_spaces=True) == 0
        assert to_int("", accept_spaces=True) == 0

    def test_blank_rejected(self):
        with pytest.raises(FormatError):
            to_int("   ")

    def test_not_a_number(self):
        with pytest.raises(FormatError) as exc_info:
            to_int(" x1", name="atom count")
        assert exc_info.value.field == "atom count"
        assert exc_info.value.text == " x1"
        assert "atom count" in str(exc_info.value)

    @pytest.mark.parametrize("text", ["1_0", "+-5", "1.0", " 0x1", "\u00b2"])
    def test_rejects_non_decimal_literals(self, text):
        with pytest.raises(FormatError):
            to_int(text)

    def test_explicit_plus_sign(self):
        assert to_int(" +5") == 5

    def test_no_line_number(self):
        """Decoders don't know the line; readers attach it."""
        with pytest.raises(FormatError) as exc_info:
            to_int("abc")
        assert exc_info.value.line is None


class TestToFloat:
    """Test floating point decoding."""

    def test_values(self):
        assert to_float("    1.5000") == 1.5
        assert to_float("   -0.2500") == -0.25

    def test_blank_defaults_to_zero(self):
        assert to_float("          ") == 0.0

    def test_blank_rejected(self):
        with pytest.raises(FormatError):
            to_float("   ", accept_spaces=False)

    def test_bad_value(self):
        with pytest.raises(FormatError):
            to_float("1.2.3", name="x")


class TestOptionalInt:
    """Test optional trailing fields."""

    def test_present(self):
        assert optional_int("xxx  5", 3, 3, "value") == 5

    def test_placeholder(self):
        """The right-aligned zero placeholder means absent."""
        assert optional_int("xxx  0", 3, 3, "value") is None

    def test_line_too_short(self):
        assert optional_int("xxx  ", 3, 3, "value") is None

    def test_blank_is_zero(self):
        assert optional_int("xxx   ", 3, 3, "value") == 0

    def test_custom_placeholder(self):
        assert optional_int("xx 0", 2, 2, "mass difference") is None
        assert optional_int("xx-1", 2, 2, "mass difference") == -1

    def test_malformed(self):
        with pytest.raises(FormatError):
            optional_int("xxx  a", 3, 3, "value")


class TestFormatError:
    """Test error rendering and line attachment."""

    def test_render(self):
        err = FormatError("Cannot convert to int", " x", field="charge", line=7)
        assert str(err) == "Cannot convert to int (field 'charge': ' x') at line 7"

    def test_at_line_keeps_existing(self):
        err = FormatError("bad", line=3)
        assert err.at_line(9) is err
        assert err.line == 3

    def test_at_line_sets_missing(self):
        err = FormatError("bad", "text")
        err.at_line(4)
        assert err.line == 4
        assert str(err) == "bad: 'text' at line 4"

    def test_with_text_sets_missing(self):
        err = RangeError("Atom number 9 out of range 1..2", index=9, limit=2)
        assert err.text is None
        assert err.with_text("M  CHG  1   9  -1") is err
        assert err.text == "M  CHG  1   9  -1"
        assert str(err) == "Atom number 9 out of range 1..2: 'M  CHG  1   9  -1'"

    def test_with_text_keeps_existing(self):
        err = FormatError("Cannot convert to int", " x", field="charge")
        err.with_text("M  CHG  1   1   x")
        assert err.text == " x"

    def test_range_error_text(self):
        err = RangeError("bad atom", index=5, limit=2, text="  1  5  1", line=7)
        assert err.index == 5
        assert str(err) == "bad atom: '  1  5  1' at line 7"
