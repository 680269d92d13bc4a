#!/usr/bin/env python3
"""
MLT MCP Server: Structural editing tools for MLT timeline projects.

Every tool addresses a project by id under MLT_PROJECTS_DIR, loads its
project.mlt, runs one query or edit, and saves the result for edits.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Resource, TextContent, Tool

from mltxml import config
from mltxml.duration import compute_duration
from mltxml.editor import MLTEditor
from mltxml.errors import PersistenceError
from mltxml.models import MltDocument, Node
from mltxml.traversal import is_referenced, logical_item_at, positional_index
from mltxml.writer import load_mlt, mlt_path, serialize

server = Server("mlt-mcp-server")
logger = logging.getLogger("mlt-mcp-server")
PROJECTS_DIR = config.PROJECTS_DIR


# ============================================================================
# SECURITY UTILITIES
# ============================================================================

def _validate_project_id(project_id: str) -> str:
    """Reject project ids that could escape the projects directory."""
    if not isinstance(project_id, str) or not project_id.strip():
        raise ValueError("Project id must be a non-empty string")
    if '\x00' in project_id:
        raise ValueError("Invalid project id: null byte detected")
    if '/' in project_id or '\\' in project_id or project_id in ('.', '..'):
        raise ValueError(f"Invalid project id: {project_id!r}")
    return project_id


def _validate_directory(directory: str) -> str:
    """Resolve a directory argument and make sure it is a real directory."""
    if '\x00' in directory:
        raise ValueError("Invalid directory path: null byte detected")
    resolved = Path(directory).resolve()
    if not resolved.is_dir():
        raise ValueError(f"Not a valid directory: {directory}")
    return str(resolved)


# ============================================================================
# UTILITIES
# ============================================================================

def find_projects(directory: str) -> list[str]:
    """Ids of all projects (subdirectories holding project.mlt)."""
    root = Path(directory)
    return sorted(
        p.parent.name for p in root.glob(f"*/{config.MLT_FILENAME}") if p.is_file()
    )


class MissingArgumentError(ValueError):
    """A required tool argument was not supplied."""


def _arg(arguments: dict, name: str) -> Any:
    """Read a required tool argument."""
    if name not in arguments:
        raise MissingArgumentError(f"'{name}'")
    return arguments[name]


def _text(text: str) -> list[TextContent]:
    return [TextContent(type="text", text=text)]


def _load(arguments: dict) -> tuple[str, MLTEditor]:
    project_id = _validate_project_id(_arg(arguments, "project_id"))
    return project_id, MLTEditor(load_mlt(project_id, PROJECTS_DIR))


def _save(editor: MLTEditor, project_id: str) -> str:
    return editor.save(project_id, PROJECTS_DIR)


def _multitrack(document: MltDocument, tractor_id: str) -> Node:
    multitrack = document.get(tractor_id).find('multitrack')
    if multitrack is None:
        raise ValueError(f"Tractor '{tractor_id}' has no multitrack")
    return multitrack


def _track(document: MltDocument, tractor_id: str, track_index: int) -> Node:
    tracks = _multitrack(document, tractor_id).elements('track')
    if not 0 <= track_index < len(tracks):
        raise ValueError(
            f"Track index {track_index} out of range for '{tractor_id}' ({len(tracks)} tracks)"
        )
    return tracks[track_index]


def _item(document: MltDocument, playlist_id: str, index: int) -> Node:
    item = logical_item_at(document, document.get(playlist_id), index)
    if item is None:
        raise ValueError(f"No item {index} in '{playlist_id}'")
    return item


def format_duration(duration) -> str:
    """Render a Duration as a markdown list."""
    values = duration.to_dict()
    lines = [f"- **Duration:** {values['time']}"]
    if values['in'] is not None:
        lines.append(f"- **In:** {values['in']}")
        lines.append(f"- **Out:** {values['out']}")
    return "\n".join(lines)


# ============================================================================
# RESOURCES
# ============================================================================

@server.list_resources()
async def list_resources() -> list[Resource]:
    return [
        Resource(
            uri=f"mlt://{project_id}",
            name=project_id,
            description=f"MLT project {project_id}",
            mimeType="application/xml",
        )
        for project_id in find_projects(PROJECTS_DIR)
    ]


@server.read_resource()
async def read_resource(uri: str) -> str:
    project_id = _validate_project_id(str(uri).removeprefix("mlt://").rstrip("/"))
    return mlt_path(project_id, PROJECTS_DIR).read_text(encoding="utf-8")


# ============================================================================
# TOOLS
# ============================================================================

_PROJECT = {"type": "string", "description": "Project id (directory under MLT_PROJECTS_DIR)"}


@server.list_tools()
async def list_tools() -> list[Tool]:
    return [
        # ===== READ TOOLS =====
        Tool(
            name="list_projects",
            description="List MLT projects in the projects directory",
            inputSchema={
                "type": "object",
                "properties": {
                    "directory": {"type": "string", "description": "Directory to search (default: MLT_PROJECTS_DIR)"}
                }
            }
        ),
        Tool(
            name="timeline_duration",
            description="Total duration of a tractor's multitrack",
            inputSchema={
                "type": "object",
                "properties": {"project_id": _PROJECT, "tractor_id": {"type": "string"}},
                "required": ["project_id", "tractor_id"]
            }
        ),
        Tool(
            name="track_duration",
            description="In, out and duration of the first clip of a track",
            inputSchema={
                "type": "object",
                "properties": {
                    "project_id": _PROJECT,
                    "tractor_id": {"type": "string"},
                    "track_index": {"type": "integer", "minimum": 0}
                },
                "required": ["project_id", "tractor_id", "track_index"]
            }
        ),
        Tool(
            name="entry_duration",
            description="In, out and duration of the Nth timeline item of a playlist",
            inputSchema={
                "type": "object",
                "properties": {
                    "project_id": _PROJECT,
                    "playlist_id": {"type": "string"},
                    "index": {"type": "integer", "minimum": 0}
                },
                "required": ["project_id", "playlist_id", "index"]
            }
        ),
        Tool(
            name="get_item",
            description="XML of the Nth timeline item of a playlist (nested tractors are flattened)",
            inputSchema={
                "type": "object",
                "properties": {
                    "project_id": _PROJECT,
                    "playlist_id": {"type": "string"},
                    "index": {"type": "integer", "minimum": 0}
                },
                "required": ["project_id", "playlist_id", "index"]
            }
        ),
        Tool(
            name="track_usage",
            description="Check whether a track is used by any filter or transition",
            inputSchema={
                "type": "object",
                "properties": {
                    "project_id": _PROJECT,
                    "tractor_id": {"type": "string"},
                    "track_index": {"type": "integer", "minimum": 0}
                },
                "required": ["project_id", "tractor_id", "track_index"]
            }
        ),

        # ===== WRITE TOOLS =====
        Tool(
            name="create_tractor",
            description="Create an empty tractor before videotrack0",
            inputSchema={
                "type": "object",
                "properties": {"project_id": _PROJECT},
                "required": ["project_id"]
            }
        ),
        Tool(
            name="wrap_entry",
            description="Copy the Nth timeline item of a playlist into a new playlist",
            inputSchema={
                "type": "object",
                "properties": {
                    "project_id": _PROJECT,
                    "playlist_id": {"type": "string"},
                    "index": {"type": "integer", "minimum": 0}
                },
                "required": ["project_id", "playlist_id", "index"]
            }
        ),
        Tool(
            name="attach_playlist",
            description="Append a playlist as a new track overlapping the previous one with a transition",
            inputSchema={
                "type": "object",
                "properties": {
                    "project_id": _PROJECT,
                    "tractor_id": {"type": "string"},
                    "playlist_id": {"type": "string"},
                    "overlap": {"type": "string", "description": "Overlap as HH:MM:SS,mmm"},
                    "transition": {"type": "string", "default": "luma"}
                },
                "required": ["project_id", "tractor_id", "playlist_id", "overlap"]
            }
        ),
        Tool(
            name="add_track",
            description="Insert a track referencing a playlist or tractor, renumbering transitions",
            inputSchema={
                "type": "object",
                "properties": {
                    "project_id": _PROJECT,
                    "tractor_id": {"type": "string"},
                    "producer_id": {"type": "string"},
                    "position": {"type": "integer", "minimum": 0, "description": "Default: append"}
                },
                "required": ["project_id", "tractor_id", "producer_id"]
            }
        ),
        Tool(
            name="remove_track",
            description="Remove a track not used by any filter or transition",
            inputSchema={
                "type": "object",
                "properties": {
                    "project_id": _PROJECT,
                    "tractor_id": {"type": "string"},
                    "track_index": {"type": "integer", "minimum": 0}
                },
                "required": ["project_id", "tractor_id", "track_index"]
            }
        ),
    ]


# ----- READ HANDLERS -----

async def handle_list_projects(arguments: dict) -> Sequence[TextContent]:
    directory = _validate_directory(arguments.get("directory") or PROJECTS_DIR)
    projects = find_projects(directory)
    if not projects:
        return _text(f"No MLT projects found in {directory}")
    result = f"# MLT Projects ({len(projects)})\n\n"
    result += "\n".join(f"- {p}" for p in projects)
    return _text(result)


async def handle_timeline_duration(arguments: dict) -> Sequence[TextContent]:
    _, editor = _load(arguments)
    duration = compute_duration(editor.document, _multitrack(editor.document, _arg(arguments, "tractor_id")))
    return _text(f"# Timeline '{arguments['tractor_id']}'\n\n{format_duration(duration)}")


async def handle_track_duration(arguments: dict) -> Sequence[TextContent]:
    _, editor = _load(arguments)
    track = _track(editor.document, _arg(arguments, "tractor_id"), int(_arg(arguments, "track_index")))
    duration = compute_duration(editor.document, track)
    return _text(f"# Track {arguments['track_index']} of '{arguments['tractor_id']}'\n\n{format_duration(duration)}")


async def handle_entry_duration(arguments: dict) -> Sequence[TextContent]:
    _, editor = _load(arguments)
    item = _item(editor.document, _arg(arguments, "playlist_id"), int(_arg(arguments, "index")))
    duration = compute_duration(editor.document, item)
    return _text(f"# Item {arguments['index']} of '{arguments['playlist_id']}'\n\n{format_duration(duration)}")


async def handle_get_item(arguments: dict) -> Sequence[TextContent]:
    _, editor = _load(arguments)
    item = _item(editor.document, _arg(arguments, "playlist_id"), int(_arg(arguments, "index")))
    return _text(serialize(item))


async def handle_track_usage(arguments: dict) -> Sequence[TextContent]:
    _, editor = _load(arguments)
    track = _track(editor.document, _arg(arguments, "tractor_id"), int(_arg(arguments, "track_index")))
    used = is_referenced(track)
    status = "used by a filter or transition" if used else "not used by any filter or transition"
    return _text(f"Track {positional_index(track)} ({track.get('producer')}) is {status}")


# ----- WRITE HANDLERS -----

async def handle_create_tractor(arguments: dict) -> Sequence[TextContent]:
    project_id, editor = _load(arguments)
    tractor = editor.create_tractor()
    path = _save(editor, project_id)
    return _text(f"Created tractor '{tractor.id}'\n\nSaved to: {path}")


async def handle_wrap_entry(arguments: dict) -> Sequence[TextContent]:
    project_id, editor = _load(arguments)
    item = _item(editor.document, _arg(arguments, "playlist_id"), int(_arg(arguments, "index")))
    playlist = editor.wrap_as_playlist(item)
    path = _save(editor, project_id)
    return _text(f"Created playlist '{playlist.id}' from {item.describe()}\n\nSaved to: {path}")


async def handle_attach_playlist(arguments: dict) -> Sequence[TextContent]:
    project_id, editor = _load(arguments)
    doc = editor.document
    transition = editor.attach_playlist_to_multitrack(
        multitrack=_multitrack(doc, _arg(arguments, "tractor_id")),
        playlist=doc.get(_arg(arguments, "playlist_id")),
        overlap=_arg(arguments, "overlap"),
        transition_service=arguments.get("transition", "luma"),
    )
    path = _save(editor, project_id)
    return _text(
        f"Attached '{arguments['playlist_id']}' as track {transition.get('b_track')} "
        f"with {transition.get('mlt_service')} {transition.get('in')} - {transition.get('out')}"
        f"\n\nSaved to: {path}"
    )


async def handle_add_track(arguments: dict) -> Sequence[TextContent]:
    project_id, editor = _load(arguments)
    position = arguments.get("position")
    track = editor.add_track(
        _multitrack(editor.document, _arg(arguments, "tractor_id")),
        _arg(arguments, "producer_id"),
        int(position) if position is not None else None,
    )
    path = _save(editor, project_id)
    return _text(f"Added track {positional_index(track)} -> '{arguments['producer_id']}'\n\nSaved to: {path}")


async def handle_remove_track(arguments: dict) -> Sequence[TextContent]:
    project_id, editor = _load(arguments)
    track = _track(editor.document, _arg(arguments, "tractor_id"), int(_arg(arguments, "track_index")))
    editor.remove_track(track)
    path = _save(editor, project_id)
    return _text(f"Removed track {arguments['track_index']} ({track.get('producer')})\n\nSaved to: {path}")


TOOL_HANDLERS = {
    "list_projects": handle_list_projects,
    "timeline_duration": handle_timeline_duration,
    "track_duration": handle_track_duration,
    "entry_duration": handle_entry_duration,
    "get_item": handle_get_item,
    "track_usage": handle_track_usage,
    "create_tractor": handle_create_tractor,
    "wrap_entry": handle_wrap_entry,
    "attach_playlist": handle_attach_playlist,
    "add_track": handle_add_track,
    "remove_track": handle_remove_track,
}


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> Sequence[TextContent]:
    handler = TOOL_HANDLERS.get(name)
    if not handler:
        return _text(f"Unknown tool: {name}")
    try:
        return await handler(arguments)
    except FileNotFoundError as e:
        return _text(f"File not found: {e}")
    except PersistenceError as e:
        logger.warning("Tool %s could not save: %s", name, e)
        return _text(f"Save failed: {e}")
    except MissingArgumentError as e:
        return _text(f"Missing argument: {e}")
    except LookupError as e:
        return _text(f"Not found: {e}")
    except ValueError as e:
        return _text(f"Validation error: {e}")
    except Exception as e:
        logger.exception("Error in tool %s", name)
        return _text(f"Error: {type(e).__name__}")


# ============================================================================
# MAIN
# ============================================================================

async def main():
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main_sync():
    """Synchronous entry point for use as a console script."""
    import asyncio
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)
    asyncio.run(main())


if __name__ == "__main__":
    main_sync()
