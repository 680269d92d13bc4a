"""
Traversal and indexing helpers.

A track's index inside its multitrack is never stored: it is its position
among sibling tracks, and filters/transitions address tracks by that number.
"""

import re
from typing import Optional

from .errors import UnresolvedReferenceError
from .models import MltDocument, Node

_SIMPLE_PRODUCER_RE = re.compile(r'^producer')


def is_simple_node(node: Node) -> bool:
    """True for a plain entry, i.e. a clip without filters or transitions."""
    return node.tag == 'entry'


def logical_item_at(document: MltDocument, track: Node, index: int) -> Optional[Node]:
    """Get the Nth item of a playlist: an entry (simple) or a track (nested).

    Entries referencing a ``producer*`` id take one slot each. Any other
    reference is a nested tractor whose multitrack tracks are expanded in
    place, one slot per track. Blank padding takes no slot.

    Returns None when index is out of range.

    Raises:
        UnresolvedReferenceError: If a non-producer reference is missing or
            has no multitrack to expand.
    """
    if index < 0:
        return None
    i = 0
    for child in track.children:
        ref = child.get('producer')
        if ref is None:
            continue
        if _SIMPLE_PRODUCER_RE.match(ref):
            if i == index:
                return child
            i += 1
            continue

        tractor = document.resolve(child)
        multitrack = tractor.find('multitrack')
        if multitrack is None:
            raise UnresolvedReferenceError(
                f"{child.describe()} references '{ref}', which has no multitrack"
            )
        for nested in multitrack.children:
            if i == index:
                return nested
            i += 1
    return None


def positional_index(track: Node) -> int:
    """Index of a track in its multitrack (number of preceding siblings)."""
    return track.index_in_parent()


def is_referenced(track: Node) -> bool:
    """Check if a track is used by any filter or transition of its tractor."""
    multitrack = track.parent
    tractor = multitrack.parent if multitrack is not None else None
    if tractor is None:
        return False

    wanted = str(positional_index(track))
    for tag in ('filter', 'transition'):
        for node in tractor.iter(tag):
            for attr in ('track', 'a_track', 'b_track'):
                if node.get(attr) == wanted:
                    return True
    return False
