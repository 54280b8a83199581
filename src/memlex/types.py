"""
memlex types -- records passed between the store and the retrieval pipeline.

Memory is owned by the store. Candidate wraps a Memory with the lexical score
the full-text index assigned to it for one query; it lives only for the
duration of a single search call.
"""

import json
from typing import Any, Dict, List, Optional, Protocol


def parse_tags(raw) -> List[str]:
    """Decode a stored tag list. Anything malformed reads as no tags."""
    if not raw:
        return []
    if isinstance(raw, (list, tuple)):
        return [str(t) for t in raw]
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return []
    if not isinstance(value, list):
        return []
    return [str(t) for t in value]


def parse_metadata(raw) -> Dict[str, Any]:
    if not raw:
        return {}
    if isinstance(raw, dict):
        return dict(raw)
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return {}
    return value if isinstance(value, dict) else {}


class Memory:
    """A stored memory record."""

    __slots__ = (
        "id",
        "content",
        "tags",
        "source",
        "created_at",
        "updated_at",
        "access_count",
        "metadata",
    )

    def __init__(
        self,
        id: int,
        content: str,
        tags: Optional[List[str]] = None,
        source: Optional[str] = None,
        created_at: float = 0.0,
        updated_at: Optional[float] = None,
        access_count: int = 0,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        self.id = id
        self.content = content
        self.tags = list(tags or [])
        self.source = source
        self.created_at = created_at
        self.updated_at = updated_at if updated_at is not None else created_at
        self.access_count = access_count
        self.metadata = dict(metadata or {})

    @classmethod
    def from_row(cls, row) -> "Memory":
        """Build from a (id, content, tags, source, created_at, updated_at, access_count, metadata) row."""
        return cls(
            id=row[0],
            content=row[1],
            tags=parse_tags(row[2]),
            source=row[3],
            created_at=row[4],
            updated_at=row[5],
            access_count=row[6] or 0,
            metadata=parse_metadata(row[7]),
        )

    def __repr__(self) -> str:
        preview = self.content[:40].replace("\n", " ")
        return f"Memory(id={self.id}, content={preview!r})"


class Candidate:
    """A Memory matched by the full-text index, with its raw lexical score.

    ``lexical_score`` is on the engine's scale where lower is better
    (SQLite FTS5 bm25() values are negative).
    """

    __slots__ = ("memory", "lexical_score")

    def __init__(self, memory: Memory, lexical_score: Optional[float] = None):
        self.memory = memory
        self.lexical_score = lexical_score

    def __repr__(self) -> str:
        return f"Candidate(id={self.memory.id}, lexical_score={self.lexical_score})"


class MemoryIndex(Protocol):
    """What the search pipeline needs from a store."""

    def search_by_expression(self, expression: str, limit: int) -> List[Candidate]: ...

    def max_access_count(self) -> int: ...

    def increment_access_count(self, memory_id: int) -> None: ...
