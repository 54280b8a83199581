"""memlex MCP Server tests -- schemas and handler coverage."""
import json

import pytest

from memlex.server.handlers import HANDLERS, _clamp_int
from memlex.server.tool_schemas import TOOL_SCHEMAS


# ============================================================================
# Schema / Registry Tests
# ============================================================================

def test_all_tools_have_handlers():
    """Every tool in TOOL_SCHEMAS should have a handler."""
    for schema in TOOL_SCHEMAS:
        assert schema["name"] in HANDLERS, f"Missing handler for {schema['name']}"

def test_tool_schemas_valid():
    for schema in TOOL_SCHEMAS:
        assert "name" in schema
        assert "description" in schema
        assert schema["inputSchema"]["type"] == "object"
        assert schema["name"].startswith("memory_")

def test_tool_names():
    assert {s["name"] for s in TOOL_SCHEMAS} == {"memory_store", "memory_search", "memory_delete", "memory_list"}

def test_clamp_int():
    assert _clamp_int("7", default=5) == 7
    assert _clamp_int(0, default=5) == 1
    assert _clamp_int(10**9, default=5, max_val=100) == 100
    assert _clamp_int("nope", default=5) == 5


# ============================================================================
# Fixture: reset bridge singleton between tests
# ============================================================================

@pytest.fixture(autouse=True)
def _fresh_bridge(_reset_bridge, monkeypatch, tmp_path):
    # Run from a directory with a predictable project label
    project_dir = tmp_path / "billing-service"
    project_dir.mkdir()
    monkeypatch.chdir(project_dir)
    yield


def _text(result):
    return result["content"][0]["text"]


# ============================================================================
# Handlers
# ============================================================================

@pytest.mark.asyncio
async def test_store_then_search():
    stored = await HANDLERS["memory_store"]({"content": "The db migration needs a maintenance window", "tags": ["ops"]})
    assert not stored.get("isError"), stored
    payload = json.loads(_text(stored))
    assert payload["status"] == "stored"
    assert payload["chunks"] == 1

    found = await HANDLERS["memory_search"]({"query": "database migration"})
    assert not found.get("isError")
    results = json.loads(_text(found))
    assert results[0]["id"] == payload["details"][0]["id"]
    assert results[0]["source"] == "billing-service"
    assert results[0]["tags"] == ["ops"]


@pytest.mark.asyncio
async def test_store_explicit_source_wins():
    await HANDLERS["memory_store"]({"content": "Cron runs at midnight", "source": "scheduler"})
    results = json.loads(_text(await HANDLERS["memory_search"]({"query": "cron midnight"})))
    assert results[0]["source"] == "scheduler"


@pytest.mark.asyncio
async def test_store_long_content_is_chunked():
    content = "Deployment checklist item. " * 200
    payload = json.loads(_text(await HANDLERS["memory_store"]({"content": content})))
    assert payload["chunks"] > 1
    assert all(d["length"] <= 2048 for d in payload["details"])


@pytest.mark.asyncio
async def test_store_requires_content():
    result = await HANDLERS["memory_store"]({"content": "   "})
    assert result["isError"]


@pytest.mark.asyncio
async def test_search_no_results():
    result = await HANDLERS["memory_search"]({"query": "nothing stored yet"})
    assert _text(result) == "No relevant memories found."


@pytest.mark.asyncio
async def test_search_requires_query():
    assert (await HANDLERS["memory_search"]({}))["isError"]


@pytest.mark.asyncio
async def test_delete():
    payload = json.loads(_text(await HANDLERS["memory_store"]({"content": "forget me"})))
    nid = payload["details"][0]["id"]
    assert _text(await HANDLERS["memory_delete"]({"id": nid})) == f"Memory #{nid} deleted."
    assert _text(await HANDLERS["memory_delete"]({"id": nid})) == f"Memory #{nid} not found."


@pytest.mark.asyncio
async def test_delete_bad_id():
    assert (await HANDLERS["memory_delete"]({"id": "abc"}))["isError"]


@pytest.mark.asyncio
async def test_list():
    assert _text(await HANDLERS["memory_list"]({})) == "No memories stored yet."

    await HANDLERS["memory_store"]({"content": "x" * 300, "tags": ["long"]})
    await HANDLERS["memory_store"]({"content": "short one", "tags": ["short"]})

    listed = json.loads(_text(await HANDLERS["memory_list"]({})))
    assert len(listed) == 2
    long_entry = next(m for m in listed if m["tags"] == ["long"])
    assert long_entry["content"] == "x" * 200 + "..."
    assert long_entry["access_count"] == 0
    assert "T" in long_entry["created_at"]

    filtered = json.loads(_text(await HANDLERS["memory_list"]({"tags": ["short"]})))
    assert [m["content"] for m in filtered] == ["short one"]
