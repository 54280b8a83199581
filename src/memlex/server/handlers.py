"""
memlex MCP Handlers -- Maps tool names to async handler functions.

Each handler delegates to memlex.bridge and returns an MCP-compatible
response dict.
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional

from memlex.config import get_project_name

logger = logging.getLogger("memlex.server.handlers")


def _clamp_int(value, default: int, min_val: int = 1, max_val: int = 10000) -> int:
    """Clamp a numeric argument to safe bounds."""
    try:
        v = int(value)
        return max(min_val, min(v, max_val))
    except (TypeError, ValueError):
        return default


def _string_list(value) -> Optional[List[str]]:
    if not value:
        return None
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


def current_project() -> Optional[str]:
    """Project label for the directory the server was started in."""
    return get_project_name(os.getcwd())


# ============================================================================
# Response Helpers
# ============================================================================


def mcp_response(text: str) -> dict:
    """Build a successful MCP response."""
    return {"content": [{"type": "text", "text": str(text)}]}


def mcp_error(text: str) -> dict:
    """Build an error MCP response."""
    return {"content": [{"type": "text", "text": f"Error: {text}"}], "isError": True}


# ============================================================================
# Handlers
# ============================================================================


async def handle_memory_store(arguments: dict) -> dict:
    content = (arguments.get("content") or "").strip()
    if not content:
        return mcp_error("content is required")

    tags = _string_list(arguments.get("tags")) or []
    source = arguments.get("source") or current_project()

    try:
        from memlex.bridge import store_memory

        result = store_memory(content=content, tags=tags, source=source)
        return mcp_response(json.dumps(result))
    except ValueError as e:
        return mcp_error(str(e))
    except Exception as e:
        logger.error("memory_store failed: %s", e, exc_info=True)
        return mcp_error(f"Failed to store memory: {e}")


async def handle_memory_search(arguments: dict) -> dict:
    query_text = (arguments.get("query") or "").strip()
    if not query_text:
        return mcp_error("query is required")

    limit = _clamp_int(arguments.get("limit", 5), default=5, max_val=100)
    tags = _string_list(arguments.get("tags"))

    try:
        from memlex.bridge import search

        results = search(query_text, tags=tags, limit=limit, project=current_project())
    except Exception as e:
        logger.error("memory_search failed: %s", e)
        return mcp_error("Search failed")

    if not results:
        return mcp_response("No relevant memories found.")
    return mcp_response(json.dumps(results, indent=2))


async def handle_memory_delete(arguments: dict) -> dict:
    raw_id = arguments.get("id")
    try:
        memory_id = int(raw_id)
    except (TypeError, ValueError):
        return mcp_error("id must be an integer")

    try:
        from memlex.bridge import delete_memory

        deleted = delete_memory(memory_id)
    except Exception as e:
        logger.error("memory_delete failed: %s", e)
        return mcp_error("Delete failed")

    if deleted:
        return mcp_response(f"Memory #{memory_id} deleted.")
    return mcp_response(f"Memory #{memory_id} not found.")


async def handle_memory_list(arguments: dict) -> dict:
    limit = _clamp_int(arguments.get("limit", 20), default=20, max_val=1000)
    offset = _clamp_int(arguments.get("offset", 0), default=0, min_val=0, max_val=10_000_000)
    tags = _string_list(arguments.get("tags"))

    try:
        from memlex.bridge import list_memories

        results = list_memories(tags=tags, limit=limit, offset=offset)
    except Exception as e:
        logger.error("memory_list failed: %s", e)
        return mcp_error("List failed")

    if not results:
        return mcp_response("No memories stored yet.")
    return mcp_response(json.dumps(results, indent=2))


HANDLERS: Dict[str, Any] = {
    "memory_store": handle_memory_store,
    "memory_search": handle_memory_search,
    "memory_delete": handle_memory_delete,
    "memory_list": handle_memory_list,
}
