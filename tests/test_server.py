"""Tests for server.py: tool handlers, utility functions, and dispatch logic."""

import shutil
from pathlib import Path

import pytest

import server
from mltxml.writer import load_mlt
from server import (
    _validate_directory,
    _validate_project_id,
    call_tool,
    find_projects,
    handle_add_track,
    handle_attach_playlist,
    handle_create_tractor,
    handle_entry_duration,
    handle_get_item,
    handle_list_projects,
    handle_remove_track,
    handle_timeline_duration,
    handle_track_duration,
    handle_track_usage,
    handle_wrap_entry,
    read_resource,
)

SAMPLE = Path(__file__).parent.parent / "examples" / "sample.mlt"


@pytest.fixture
def projects(tmp_path, monkeypatch):
    """A projects root holding one copy of the sample as project 'demo'."""
    (tmp_path / "demo").mkdir()
    shutil.copy(SAMPLE, tmp_path / "demo" / "project.mlt")
    monkeypatch.setattr(server, "PROJECTS_DIR", str(tmp_path))
    return tmp_path


# ============================================================
# Utility Functions
# ============================================================


class TestValidateProjectId:
    def test_plain_id(self):
        assert _validate_project_id("demo-1") == "demo-1"

    @pytest.mark.parametrize("bad", ["", "  ", "..", "a/b", "a\\b", "x\x00"])
    def test_rejected(self, bad):
        with pytest.raises(ValueError):
            _validate_project_id(bad)


class TestValidateDirectory:
    def test_valid(self, tmp_path):
        assert _validate_directory(str(tmp_path)) == str(tmp_path.resolve())

    def test_not_a_directory(self, tmp_path):
        with pytest.raises(ValueError, match="Not a valid directory"):
            _validate_directory(str(tmp_path / "missing"))

    def test_null_byte(self):
        with pytest.raises(ValueError, match="null byte"):
            _validate_directory("/tmp\x00")


class TestFindProjects:
    def test_finds_projects(self, projects):
        (projects / "empty").mkdir()
        assert find_projects(str(projects)) == ["demo"]


# ============================================================
# Read Handlers
# ============================================================


class TestReadHandlers:
    async def test_list_projects(self, projects):
        result = await handle_list_projects({})
        assert "demo" in result[0].text

    async def test_list_projects_empty(self, tmp_path, projects):
        empty = tmp_path / "sub"
        empty.mkdir()
        result = await handle_list_projects({"directory": str(empty)})
        assert "No MLT projects" in result[0].text

    async def test_timeline_duration(self, projects):
        result = await handle_timeline_duration({"project_id": "demo", "tractor_id": "tractor0"})
        assert "00:00:10,000" in result[0].text
        assert "**In:**" not in result[0].text

    async def test_track_duration(self, projects):
        result = await handle_track_duration({"project_id": "demo", "tractor_id": "tractor0", "track_index": 0})
        assert "00:00:10,000" in result[0].text
        assert "**In:** 00:00:00,000" in result[0].text

    async def test_entry_duration(self, projects):
        result = await handle_entry_duration({"project_id": "demo", "playlist_id": "videotrack0", "index": 2})
        assert "**Duration:** 00:00:08,000" in result[0].text

    async def test_get_item_nested(self, projects):
        result = await handle_get_item({"project_id": "demo", "playlist_id": "videotrack0", "index": 1})
        assert 'producer="playlist0"' in result[0].text

    async def test_track_usage(self, projects):
        result = await handle_track_usage({"project_id": "demo", "tractor_id": "tractor0", "track_index": 0})
        assert "not used" in result[0].text


# ============================================================
# Write Handlers
# ============================================================


class TestWriteHandlers:
    async def test_create_tractor(self, projects):
        result = await handle_create_tractor({"project_id": "demo"})
        assert "tractor1" in result[0].text
        assert "tractor1" in load_mlt("demo", str(projects))

    async def test_wrap_entry(self, projects):
        result = await handle_wrap_entry({"project_id": "demo", "playlist_id": "playlist1", "index": 0})
        assert "playlist2" in result[0].text
        doc = load_mlt("demo", str(projects))
        assert doc.get("playlist2").children[0].get("producer") == "producer1"

    async def test_attach_playlist(self, projects):
        result = await handle_attach_playlist({
            "project_id": "demo", "tractor_id": "tractor0",
            "playlist_id": "playlist1", "overlap": "00:00:02,000",
        })
        assert "track 1" in result[0].text
        doc = load_mlt("demo", str(projects))
        transition = doc.get("tractor0").find("transition")
        assert transition.attrs == {
            "mlt_service": "luma", "in": "00:00:08,000", "out": "00:00:10,000",
            "a_track": "0", "b_track": "1",
        }
        assert doc.get("playlist1").children[0].get("length") == "00:00:08,000"

    async def test_add_and_remove_track(self, projects):
        await handle_add_track({"project_id": "demo", "tractor_id": "tractor0", "producer_id": "playlist1"})
        assert len(load_mlt("demo", str(projects)).get("tractor0").find("multitrack").children) == 2
        await handle_remove_track({"project_id": "demo", "tractor_id": "tractor0", "track_index": 1})
        assert len(load_mlt("demo", str(projects)).get("tractor0").find("multitrack").children) == 1


# ============================================================
# Dispatch
# ============================================================


class TestCallTool:
    async def test_unknown_tool(self):
        result = await call_tool("nope", {})
        assert "Unknown tool" in result[0].text

    async def test_missing_project_file(self, projects):
        result = await call_tool("timeline_duration", {"project_id": "ghost", "tractor_id": "tractor0"})
        assert result[0].text.startswith("File not found")

    async def test_missing_argument(self, projects):
        result = await call_tool("timeline_duration", {"project_id": "demo"})
        assert result[0].text.startswith("Missing argument")
        assert "tractor_id" in result[0].text

    async def test_library_key_error_is_not_a_missing_argument(self, projects, monkeypatch):
        def _fail(*args, **kwargs):
            raise KeyError("length")
        monkeypatch.setattr(server, "compute_duration", _fail)
        result = await call_tool("timeline_duration", {"project_id": "demo", "tractor_id": "tractor0"})
        assert result[0].text.startswith("Not found")

    async def test_unresolved_id(self, projects):
        result = await call_tool("timeline_duration", {"project_id": "demo", "tractor_id": "tractor9"})
        assert result[0].text.startswith("Not found")

    async def test_invalid_range(self, projects):
        result = await call_tool("attach_playlist", {
            "project_id": "demo", "tractor_id": "tractor0",
            "playlist_id": "playlist1", "overlap": "00:01:00,000",
        })
        assert result[0].text.startswith("Validation error")
        # Nothing was saved
        assert load_mlt("demo", str(projects)).get("tractor0").find("transition") is None

    async def test_missing_sentinel(self, projects):
        target = projects / "bare"
        target.mkdir()
        (target / "project.mlt").write_text('<mlt><producer id="producer0"/></mlt>')
        result = await call_tool("create_tractor", {"project_id": "bare"})
        assert result[0].text.startswith("Not found")

    async def test_track_in_use(self, projects):
        await call_tool("attach_playlist", {
            "project_id": "demo", "tractor_id": "tractor0",
            "playlist_id": "playlist1", "overlap": "00:00:02,000",
        })
        result = await call_tool("remove_track", {"project_id": "demo", "tractor_id": "tractor0", "track_index": 0})
        assert result[0].text.startswith("Validation error")

    async def test_save_failure(self, projects, monkeypatch):
        def _fail(*args, **kwargs):
            raise OSError("disk full")
        monkeypatch.setattr("mltxml.writer.open", _fail, raising=False)
        result = await call_tool("create_tractor", {"project_id": "demo"})
        assert result[0].text.startswith("Save failed")


class TestResources:
    async def test_read_resource(self, projects):
        text = await read_resource("mlt://demo")
        assert "videotrack0" in text
