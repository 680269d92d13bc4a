"""
MLTXML - Python library for structural editing of MLT XML timelines.

This package provides tools to:
- Parse MLT project files into an id-indexed node tree
- Compute in/out/duration of entries, tracks and whole multitracks
- Flatten nested tractors into one logical item index
- Wrap clips into playlists, attach playlists as crossfading tracks,
  and create tractors while keeping track indices consistent
- Save projects back to disk
"""

from .duration import Duration, compute_duration
from .editor import MLTEditor
from .errors import (
    DuplicateIdError,
    InvalidRangeError,
    MissingSentinelError,
    MltError,
    PersistenceError,
    TimecodeError,
    TrackInUseError,
    UnresolvedReferenceError,
)
from .models import MltDocument, Node, NodeKind
from .parser import MLTParser, parse_mlt
from .timecode import Timecode, add_duration, sub_duration
from .traversal import is_referenced, is_simple_node, logical_item_at, positional_index
from .writer import load_mlt, mlt_path, project_dir, save_mlt, serialize

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",

    # Models
    "NodeKind",
    "Node",
    "MltDocument",

    # Time
    "Timecode",
    "add_duration",
    "sub_duration",

    # Parser
    "MLTParser",
    "parse_mlt",

    # Queries
    "Duration",
    "compute_duration",
    "logical_item_at",
    "positional_index",
    "is_referenced",
    "is_simple_node",

    # Editing
    "MLTEditor",

    # Persistence
    "serialize",
    "save_mlt",
    "load_mlt",
    "mlt_path",
    "project_dir",

    # Errors
    "MltError",
    "TimecodeError",
    "InvalidRangeError",
    "DuplicateIdError",
    "TrackInUseError",
    "UnresolvedReferenceError",
    "MissingSentinelError",
    "PersistenceError",
]
