"""Runtime configuration, read from the environment at import time."""

import os

PROJECTS_DIR = os.environ.get(
    "MLT_PROJECTS_DIR", os.path.expanduser("~/mlt-projects")
)

# Written in front of every serialized document body
DECLARE_XML = '<?xml version="1.0" encoding="utf-8"?>\n'

MLT_FILENAME = "project.mlt"

# New tractors are always placed right before this node
SENTINEL_TRACK_ID = "videotrack0"

ZERO_TIMECODE = "00:00:00,000"

# Maximum MLT file size (50 MB) accepted by the parser
MAX_FILE_SIZE_BYTES = 50 * 1024 * 1024
