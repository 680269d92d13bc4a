"""Tests for timecode arithmetic: parsing, formatting, add/sub and ordering."""

import pytest

from mltxml.errors import InvalidRangeError, TimecodeError
from mltxml.timecode import Timecode, add_duration, normalize, parse_timecode, sub_duration


class TestTimecodeParsing:
    def test_comma_format(self):
        assert Timecode.from_string("01:02:03,450").milliseconds == 3723450

    def test_dot_separator(self):
        assert Timecode.from_string("00:00:01.250").milliseconds == 1250

    def test_whole_seconds(self):
        assert Timecode.from_string("00:01:00").milliseconds == 60000

    def test_short_millis_are_fractions(self):
        assert Timecode.from_string("00:00:01,5").milliseconds == 1500

    def test_surrounding_whitespace(self):
        assert Timecode.from_string(" 00:00:02,000 ").milliseconds == 2000

    @pytest.mark.parametrize("bad", ["", "10s", "00:61:00,000", "00:00:00,0000", "abc"])
    def test_invalid_format_raises(self, bad):
        with pytest.raises(TimecodeError, match="Invalid timecode format"):
            Timecode.from_string(bad)

    def test_non_string_raises(self):
        with pytest.raises(TimecodeError):
            Timecode.from_string(None)

    def test_from_seconds(self):
        assert Timecode.from_seconds(2.5).to_string() == "00:00:02,500"

    def test_negative_seconds_rejected(self):
        with pytest.raises(InvalidRangeError):
            Timecode.from_seconds(-1)

    def test_parse_timecode_accepts_numbers(self):
        assert parse_timecode(3).milliseconds == 3000
        assert parse_timecode(Timecode(42)) == Timecode(42)


class TestTimecodeFormatting:
    def test_zero(self):
        assert Timecode.zero().to_string() == "00:00:00,000"

    def test_zero_padded_fields(self):
        assert Timecode(3723045).to_string() == "01:02:03,045"

    def test_hours_above_99(self):
        assert Timecode(100 * 3600 * 1000).to_string() == "100:00:00,000"

    def test_normalize_dot_to_comma(self):
        assert normalize("00:00:08.5") == "00:00:08,500"


class TestTimecodeArithmetic:
    def test_add(self):
        assert add_duration("00:00:08,000", "00:00:02,000") == "00:00:10,000"

    def test_add_carries_minutes(self):
        assert add_duration("00:00:59,900", "00:00:00,200") == "00:01:00,100"

    def test_sub(self):
        assert sub_duration("00:00:10,000", "00:00:02,000") == "00:00:08,000"

    def test_sub_to_zero(self):
        assert sub_duration("00:00:05,000", "00:00:05,000") == "00:00:00,000"

    def test_sub_negative_raises(self):
        with pytest.raises(InvalidRangeError, match="negative"):
            sub_duration("00:00:01,000", "00:00:02,000")

    def test_ordering(self):
        assert Timecode.from_string("00:00:09,999") < Timecode.from_string("00:00:10,000")
        assert Timecode.from_string("01:00:00,000") > Timecode.from_string("00:59:59,999")
