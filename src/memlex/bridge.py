"""
memlex Bridge -- High-level API for the memlex memory store.

Used by the MCP handlers, the prompt hook and the CLI. All functions share a
lazily created SQLiteStore singleton.

Public API:
    Core:    store_memory, search, delete_memory, list_memories
    Export:  export_memories, import_memories
    Health:  status
    Testing: reset_memory
"""

import atexit
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from memlex import config
from memlex.chunker import chunk_text
from memlex.searcher import DEFAULT_LIMIT, DEFAULT_MIN_SCORE, Searcher

logger = logging.getLogger("memlex.bridge")

LIST_PREVIEW_CHARS = 200


# ---------------------------------------------------------------------------
# Lazy singleton
# ---------------------------------------------------------------------------

_store_instance = None
_store_lock = threading.Lock()


def _get_store():
    """Get or create the SQLiteStore singleton (thread-safe)."""
    global _store_instance
    if _store_instance is not None:
        return _store_instance
    with _store_lock:
        if _store_instance is not None:
            return _store_instance
        from memlex.sqlite_store import SQLiteStore

        _store_instance = SQLiteStore()
        atexit.register(_close_store)
    return _store_instance


def _close_store():
    """Close the store on process exit."""
    global _store_instance
    if _store_instance is not None:
        try:
            _store_instance.close()
        except Exception as e:
            logger.debug("Store close failed: %s", e)


def reset_memory():
    """Reset the singleton (useful for testing)."""
    global _store_instance
    if _store_instance is not None:
        try:
            _store_instance.close()
        except Exception as e:
            logger.debug("Store close failed during reset: %s", e)
    _store_instance = None


# ---------------------------------------------------------------------------
# Core
# ---------------------------------------------------------------------------


def store_memory(
    content: str,
    tags: Optional[List[str]] = None,
    source: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Chunk content and store each chunk as an independent memory."""
    if not content or not content.strip():
        raise ValueError("content must be a non-empty string")
    limit = config.max_content_size()
    if len(content) > limit:
        raise ValueError(
            f"Content size ({len(content):,} chars) exceeds limit ({limit:,} chars). "
            "Override with MEMLEX_MAX_CONTENT_SIZE env var."
        )

    db = _get_store()
    details = []
    for chunk in chunk_text(content):
        memory_id = db.store(chunk, tags=tags or [], source=source, metadata=metadata)
        details.append({"id": memory_id, "length": len(chunk)})
    if len(details) > 1:
        logger.info("Stored %d chunks from %d chars", len(details), len(content))
    return {"status": "stored", "chunks": len(details), "details": details}


def search(
    query: str,
    tags: Optional[List[str]] = None,
    limit: int = DEFAULT_LIMIT,
    min_score: float = DEFAULT_MIN_SCORE,
    project: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Ranked search. Returns [] rather than raising when retrieval fails."""
    return Searcher(_get_store()).search(query, tags=tags, limit=limit, min_score=min_score, project=project)


def delete_memory(memory_id: int) -> bool:
    return _get_store().delete(memory_id)


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def list_memories(
    tags: Optional[List[str]] = None, limit: int = 20, offset: int = 0
) -> List[Dict[str, Any]]:
    """Newest-first previews of stored memories."""
    results = []
    for memory in _get_store().list(limit=limit, offset=offset, tags=tags):
        content = memory.content
        if len(content) > LIST_PREVIEW_CHARS:
            content = content[:LIST_PREVIEW_CHARS] + "..."
        results.append(
            {
                "id": memory.id,
                "content": content,
                "tags": memory.tags,
                "created_at": _iso(memory.created_at),
                "access_count": memory.access_count,
                "source": memory.source,
            }
        )
    return results


# ---------------------------------------------------------------------------
# Export / health
# ---------------------------------------------------------------------------


def export_memories(filepath: Optional[str] = None) -> Dict[str, Any]:
    """Export to a file, or return the payload itself when no path is given."""
    db = _get_store()
    if filepath:
        return db.export_to_file(Path(filepath))
    return db.export_data()


def import_memories(filepath: str) -> Dict[str, int]:
    return _get_store().import_from_file(Path(filepath))


def status() -> Dict[str, Any]:
    db = _get_store()
    return {"db_path": str(db.db_path), "memories": db.count(), "project": config.get_project_name()}
