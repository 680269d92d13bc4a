"""
Duration engine - in, out and elapsed time of timeline items.

compute_duration() dispatches on the node kind:

- multitrack: duration of the whole timeline, read from its last track
- track:      duration of the first entry of the playlist it references
- entry:      out - in, with in defaulting to zero and out to the
              referenced producer's length property
- blank:      its length
"""

from dataclasses import dataclass
from typing import Dict, Optional

from .config import ZERO_TIMECODE
from .errors import InvalidRangeError, UnresolvedReferenceError
from .models import MltDocument, Node, NodeKind
from .timecode import Timecode, add_duration, sub_duration


@dataclass
class Duration:
    """Result of compute_duration. in/out are None for a whole multitrack."""
    in_point: Optional[str]
    out_point: Optional[str]
    elapsed: str

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {'in': self.in_point, 'out': self.out_point, 'time': self.elapsed}


def compute_duration(document: MltDocument, node: Node) -> Duration:
    """Get in, out and elapsed time of a multitrack, track, entry or blank.

    Raises:
        InvalidRangeError: If an entry's in point is after its out point.
        UnresolvedReferenceError: If a producer reference or the producer's
            length cannot be found.
    """
    kind = node.kind
    if kind == NodeKind.MULTITRACK:
        return _multitrack_duration(document, node)
    if kind == NodeKind.BLANK:
        return _blank_duration(node)
    if kind == NodeKind.TRACK:
        node = _first_entry(document, node)
    return _entry_duration(document, node)


def _multitrack_duration(document: MltDocument, multitrack: Node) -> Duration:
    tracks = multitrack.children
    if not tracks:
        return Duration(None, None, ZERO_TIMECODE)

    playlist = document.resolve(tracks[-1])
    if not playlist.children:
        raise UnresolvedReferenceError(f"Playlist '{playlist.id}' is empty")

    # A head with a declared length (blank padding) is a fixed offset in
    # front of the last item; otherwise the last item alone is the duration.
    head_length = playlist.children[0].get('length')
    tail = compute_duration(document, playlist.children[-1]).elapsed
    if head_length is None:
        return Duration(None, None, tail)
    return Duration(None, None, add_duration(head_length, tail))


def _first_entry(document: MltDocument, track: Node) -> Node:
    target = document.resolve(track)
    entry = target.find('entry')
    if entry is None:
        raise UnresolvedReferenceError(
            f"Track referencing '{target.id}' contains no entry"
        )
    return entry


def _blank_duration(blank: Node) -> Duration:
    length = blank.get('length')
    if length is None:
        raise UnresolvedReferenceError(f"{blank.describe()} has no length")
    length = Timecode.from_string(length).to_string()
    return Duration(ZERO_TIMECODE, length, length)


def _entry_duration(document: MltDocument, entry: Node) -> Duration:
    in_point = entry.get('in') or ZERO_TIMECODE
    out_point = entry.get('out')

    if out_point is None:
        producer = document.resolve(entry)
        out_point = producer.get_property('length')
        if out_point is None:
            raise UnresolvedReferenceError(
                f"Producer '{producer.id}' has no length property"
            )

    start = Timecode.from_string(in_point)
    end = Timecode.from_string(out_point)
    if start > end:
        raise InvalidRangeError(
            f"Attribute in is greater than out: {entry.describe()}"
        )

    return Duration(start.to_string(), end.to_string(), (end - start).to_string())
