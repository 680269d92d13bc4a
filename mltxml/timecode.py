"""
Timecode arithmetic for MLT documents.

Durations and positions are written as "HH:MM:SS,mmm" (hours, minutes,
seconds, milliseconds). Internally they are held as an integer number of
milliseconds so addition and subtraction are exact.

Examples:
    add_duration("00:00:08,000", "00:00:02,000")  # "00:00:10,000"
    sub_duration("00:00:10,000", "00:00:02,000")  # "00:00:08,000"
"""

import re
from dataclasses import dataclass

from .errors import InvalidRangeError, TimecodeError

_TIMECODE_RE = re.compile(r'^(\d+):([0-5]\d):([0-5]\d)(?:[,.](\d{1,3}))?$')


@dataclass(frozen=True, order=True)
class Timecode:
    """A non-negative duration or position with millisecond resolution."""
    milliseconds: int = 0

    @classmethod
    def from_string(cls, tc: str) -> 'Timecode':
        """
        Parse a timecode string.

        Supported formats:
        - "HH:MM:SS,mmm" - MLT duration format
        - "HH:MM:SS.mmm" - dot separator, as some tools write it
        - "HH:MM:SS"     - whole seconds
        """
        if not isinstance(tc, str):
            raise TimecodeError(f"Expected timecode string, got {type(tc).__name__}")
        match = _TIMECODE_RE.match(tc.strip())
        if not match:
            raise TimecodeError(f"Invalid timecode format: {tc!r}")
        h, m, s, ms = match.groups()
        millis = int((ms or '0').ljust(3, '0'))
        return cls((int(h) * 3600 + int(m) * 60 + int(s)) * 1000 + millis)

    @classmethod
    def from_seconds(cls, seconds: float) -> 'Timecode':
        """Create a Timecode from decimal seconds."""
        if seconds < 0:
            raise InvalidRangeError(f"Negative duration: {seconds}s")
        return cls(int(round(seconds * 1000)))

    @classmethod
    def zero(cls) -> 'Timecode':
        return cls(0)

    def to_seconds(self) -> float:
        return self.milliseconds / 1000

    def to_string(self) -> str:
        """Format as zero-padded HH:MM:SS,mmm."""
        total_secs, millis = divmod(self.milliseconds, 1000)
        total_mins, secs = divmod(total_secs, 60)
        hours, mins = divmod(total_mins, 60)
        return f"{hours:02d}:{mins:02d}:{secs:02d},{millis:03d}"

    def __add__(self, other: 'Timecode') -> 'Timecode':
        return Timecode(self.milliseconds + other.milliseconds)

    def __sub__(self, other: 'Timecode') -> 'Timecode':
        if other.milliseconds > self.milliseconds:
            raise InvalidRangeError(
                f"Cannot subtract {other.to_string()} from {self.to_string()}: "
                f"result would be negative"
            )
        return Timecode(self.milliseconds - other.milliseconds)

    def __str__(self) -> str:
        return self.to_string()


def parse_timecode(value) -> Timecode:
    """Accept a Timecode, a timecode string, or a number of seconds."""
    if isinstance(value, Timecode):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return Timecode.from_seconds(value)
    return Timecode.from_string(value)


def add_duration(first, second) -> str:
    """Return first + second as a timecode string."""
    return (parse_timecode(first) + parse_timecode(second)).to_string()


def sub_duration(first, second) -> str:
    """Return first - second as a timecode string.

    Raises:
        InvalidRangeError: If second is greater than first.
    """
    return (parse_timecode(first) - parse_timecode(second)).to_string()


def normalize(value) -> str:
    """Canonical HH:MM:SS,mmm form of any accepted timecode input."""
    return parse_timecode(value).to_string()
