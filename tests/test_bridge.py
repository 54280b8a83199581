"""Tests for memlex.bridge -- the high-level API over the store singleton."""
import pytest

from memlex import bridge


@pytest.fixture(autouse=True)
def _fresh(_reset_bridge):
    yield


def test_store_memory_single_chunk():
    result = bridge.store_memory("short note", tags=["t"], source="proj")
    assert result["status"] == "stored"
    assert result["chunks"] == 1
    assert result["details"][0]["length"] == len("short note")


def test_store_memory_chunks_are_independent():
    text = "\n\n".join(f"Paragraph {i} about the release process. " * 20 for i in range(6))
    result = bridge.store_memory(text, tags=["release"])
    assert result["chunks"] > 1
    assert bridge.status()["memories"] == result["chunks"]
    ids = [d["id"] for d in result["details"]]
    assert len(set(ids)) == len(ids)


def test_store_memory_rejects_blank():
    with pytest.raises(ValueError):
        bridge.store_memory("  \n ")


def test_search_and_feedback():
    nid = bridge.store_memory("Config lives in settings.toml")["details"][0]["id"]
    results = bridge.search("configuration file")
    assert [r["id"] for r in results] == [nid]
    bridge.search("configuration file")
    assert bridge._get_store().get(nid).access_count == 2


def test_delete_and_list():
    nid = bridge.store_memory("temporary")["details"][0]["id"]
    assert [m["id"] for m in bridge.list_memories()] == [nid]
    assert bridge.delete_memory(nid) is True
    assert bridge.list_memories() == []


def test_export_payload_without_path():
    bridge.store_memory("exportable")
    data = bridge.export_memories()
    assert data["count"] == 1


def test_status_reports_db(tmp_memlex_dir):
    info = bridge.status()
    assert info["db_path"] == str(tmp_memlex_dir / "memory.db")
    assert info["memories"] == 0


def test_reset_memory_creates_new_store():
    first = bridge._get_store()
    bridge.reset_memory()
    assert bridge._get_store() is not first


def test_store_memory_size_limit_applies_to_whole_input(monkeypatch):
    monkeypatch.setenv("MEMLEX_MAX_CONTENT_SIZE", "3000")
    with pytest.raises(ValueError, match="exceeds limit"):
        bridge.store_memory("word " * 2000)
    assert bridge.status()["memories"] == 0


def test_store_memory_oversized_leaves_no_partial_chunks(monkeypatch):
    monkeypatch.setenv("MEMLEX_MAX_CONTENT_SIZE", "1500")
    with pytest.raises(ValueError):
        bridge.store_memory("a" * 1000 + "\n\n" + "b" * 3000)
    assert bridge.status()["memories"] == 0
