"""
MLT Editor - Structural edits on a loaded MLT document.

Every public operation validates its inputs and computes all derived values
before the first change to the tree, so a failing call leaves the document
exactly as it was.
"""

import logging
from typing import Optional

from .config import SENTINEL_TRACK_ID
from .duration import compute_duration
from .errors import (
    DuplicateIdError,
    MissingSentinelError,
    TrackInUseError,
    UnresolvedReferenceError,
)
from .models import MltDocument, Node, NodeKind
from .parser import MLTParser
from .timecode import add_duration, normalize, sub_duration
from .traversal import is_referenced, positional_index
from .writer import save_mlt, serialize

logger = logging.getLogger(__name__)

_TRACK_ATTRS = ('track', 'a_track', 'b_track')


class MLTEditor:
    """
    Handles in-place modification of an MLT document.

    Usage:
        editor = MLTEditor.from_file("project.mlt")
        playlist = editor.wrap_as_playlist(entry)
        editor.attach_playlist_to_multitrack(multitrack, playlist, "00:00:01,000", "luma")
        editor.save("my-project")
    """

    def __init__(self, document: MltDocument):
        self.document = document

    @classmethod
    def from_file(cls, filepath: str) -> 'MLTEditor':
        return cls(MLTParser().parse_file(filepath))

    def save(self, project_id: str, project_root: Optional[str] = None) -> str:
        """Serialize the document and write it as the project's MLT file."""
        return save_mlt(project_id, serialize(self.document), project_root)

    # ========================================================================
    # PLAYLIST / TRACTOR CREATION
    # ========================================================================

    def wrap_as_playlist(self, entry: Node) -> Node:
        """
        Create a playlist holding a copy of the item as its only entry.

        The playlist is named playlist<N>, N being the number of existing
        top-level playlist<...> nodes, and is placed right after the last
        producer of the document.

        Returns:
            The new playlist node
        """
        doc = self.document
        producers = doc.producers()
        if not producers:
            raise UnresolvedReferenceError("Document has no producer to place the playlist after")
        last_producer = producers[-1]

        playlist_id = f"playlist{len(doc.top_level('playlist', 'playlist'))}"
        if playlist_id in doc:
            raise DuplicateIdError(f"Duplicate id '{playlist_id}'")

        playlist = doc.create('playlist', {'id': playlist_id})
        content = entry.clone()
        content.parent = playlist
        playlist.children.append(content)

        doc.insert_after(last_producer, playlist)
        logger.debug("Wrapped %s into %s", entry.describe(), playlist_id)
        return playlist

    def create_tractor(self) -> Node:
        """
        Create an empty tractor and put it before videotrack0.

        Raises:
            MissingSentinelError: If the document has no videotrack0 node.
        """
        doc = self.document
        sentinel = doc.find(SENTINEL_TRACK_ID)
        if sentinel is None or sentinel.parent is None:
            raise MissingSentinelError(
                f"Document has no '{SENTINEL_TRACK_ID}' node; unsupported project layout"
            )

        tractor_id = f"tractor{len(doc.top_level('tractor', 'tractor'))}"
        if tractor_id in doc:
            raise DuplicateIdError(f"Duplicate id '{tractor_id}'")

        tractor = doc.create('tractor', {'id': tractor_id})
        multitrack = doc.create('multitrack')
        multitrack.parent = tractor
        tractor.children.append(multitrack)

        doc.insert_before(sentinel, tractor)
        logger.debug("Created %s before %s", tractor_id, SENTINEL_TRACK_ID)
        return tractor

    # ========================================================================
    # TRACK OPERATIONS
    # ========================================================================

    def attach_playlist_to_multitrack(
        self,
        multitrack: Node,
        playlist: Node,
        overlap,
        transition_service: str,
    ) -> Node:
        """
        Append a playlist as a new track that crossfades into the previous one.

        The playlist is padded with a blank so its content starts ``overlap``
        before the current end of the multitrack, and a transition spanning
        exactly that overlap is added between the last two tracks.

        Args:
            multitrack: Target multitrack (must already hold a track)
            playlist: Playlist to attach, already part of the document
            overlap: Overlap length (timecode string or seconds)
            transition_service: mlt_service of the transition, e.g. "luma"

        Returns:
            The created transition node
        """
        doc = self.document
        tractor = self._owning_tractor(multitrack)
        if playlist.id is None or doc.find(playlist.id) is not playlist:
            raise UnresolvedReferenceError("Playlist must be part of the document and have an id")
        if not multitrack.children:
            raise ValueError("Multitrack has no track to overlap with")

        overlap = normalize(overlap)
        elapsed = compute_duration(doc, multitrack).elapsed
        gap = sub_duration(elapsed, overlap)
        transition_out = add_duration(gap, overlap)
        a_track = len(multitrack.children) - 1
        b_track = a_track + 1

        # Replace stale padding from a previous attach
        if playlist.children and playlist.children[0].kind == NodeKind.BLANK:
            doc.remove(playlist.children[0])
        doc.insert(playlist, 0, doc.create('blank', {'length': gap}))
        doc.append(multitrack, doc.create('track', {'producer': playlist.id}))

        transition = doc.create('transition', {
            'mlt_service': transition_service,
            'in': gap,
            'out': transition_out,
            'a_track': a_track,
            'b_track': b_track,
        })
        doc.append(tractor, transition)
        logger.debug(
            "Attached %s to %s as track %d (%s %s-%s)",
            playlist.id, tractor.id, b_track, transition_service, gap, transition_out,
        )
        return transition

    def add_track(self, multitrack: Node, producer_id: str, position: Optional[int] = None) -> Node:
        """
        Insert a track referencing a playlist or tractor.

        Tracks at or after ``position`` move up by one and every filter or
        transition addressing them is renumbered. Appends when position is None.
        """
        doc = self.document
        tractor = self._owning_tractor(multitrack)
        doc.get(producer_id)
        count = len(multitrack.children)
        if position is None:
            position = count
        if not 0 <= position <= count:
            raise ValueError(f"Track position {position} out of range 0..{count}")

        self.renumber_track_references(tractor, position, 1)
        track = doc.insert(multitrack, position, doc.create('track', {'producer': producer_id}))
        logger.debug("Inserted track %d -> %s in %s", position, producer_id, tractor.id)
        return track

    def remove_track(self, track: Node) -> Node:
        """
        Remove a track that no filter or transition uses.

        Filters and transitions addressing later tracks are renumbered.

        Raises:
            TrackInUseError: If the track is referenced by index.
        """
        tractor = self._owning_tractor(track.parent)
        if is_referenced(track):
            raise TrackInUseError(
                f"Track {positional_index(track)} of '{tractor.id}' is used by a filter or transition"
            )
        index = positional_index(track)
        self.document.remove(track)
        self.renumber_track_references(tractor, index + 1, -1)
        logger.debug("Removed track %d from %s", index, tractor.id)
        return track

    @staticmethod
    def renumber_track_references(tractor: Node, start: int, delta: int) -> int:
        """
        Shift every track index >= start by delta in a tractor's filters and
        transitions. Returns the number of attributes changed.
        """
        changed = 0
        for node in tractor.iter():
            if node.kind not in (NodeKind.FILTER, NodeKind.TRANSITION):
                continue
            for attr in _TRACK_ATTRS:
                value = node.get(attr)
                if value is None or not value.isdigit():
                    continue
                if int(value) >= start:
                    node.set(attr, int(value) + delta)
                    changed += 1
        return changed

    @staticmethod
    def _owning_tractor(multitrack: Optional[Node]) -> Node:
        if multitrack is None or multitrack.kind != NodeKind.MULTITRACK:
            raise ValueError("Expected a <multitrack> node")
        tractor = multitrack.parent
        if tractor is None or tractor.kind != NodeKind.TRACTOR:
            raise ValueError("Multitrack is not inside a <tractor>")
        return tractor
