"""
Error types raised by the MLT editor.

Validation errors also derive from ValueError and lookup failures from
LookupError so callers that only know the builtin families still catch them.
"""


class MltError(Exception):
    """Base class for every error raised by this package."""


class TimecodeError(MltError, ValueError):
    """A timecode string is not in HH:MM:SS,mmm form."""


class InvalidRangeError(MltError, ValueError):
    """A range ends before it starts (entry in > out, negative difference)."""


class DuplicateIdError(MltError, ValueError):
    """An inserted node carries an id that the document already uses."""


class TrackInUseError(MltError, ValueError):
    """A track is still addressed by a filter or transition."""


class UnresolvedReferenceError(MltError, LookupError):
    """A producer reference points at nothing (dangling id)."""


class MissingSentinelError(MltError, LookupError):
    """The document has no videotrack0 node to anchor new tractors."""


class PersistenceError(MltError, OSError):
    """Writing or reading the project file failed."""
