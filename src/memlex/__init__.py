"""memlex -- Lexical long-term memory for LLM coding agents.

Direct Python API -- no MCP server required::

    from memlex import store_memory, search
    store_memory("Auth tokens are refreshed by the gateway, not the client", tags=["auth"])
    results = search("login token refresh")

For Claude Code integration (MCP tools plus the prompt hook), run
``memlex init``.
"""

__version__ = "0.1.0"

from memlex.bridge import (
    delete_memory,
    export_memories,
    import_memories,
    list_memories,
    search,
    status,
    store_memory,
)
from memlex.chunker import chunk_text
from memlex.ranker import DEFAULT_WEIGHTS, RankerWeights, rank_results
from memlex.searcher import SearchOutcome, SearchStatus, Searcher
from memlex.sqlite_store import SQLiteStore
from memlex.synonyms import DEFAULT_SYNONYMS, SynonymTable
from memlex.tokenizer import tokenize

__all__ = [
    "SQLiteStore",
    # Core
    "store_memory",
    "search",
    "delete_memory",
    "list_memories",
    "status",
    # Import/export
    "export_memories",
    "import_memories",
    # Pipeline
    "chunk_text",
    "tokenize",
    "SynonymTable",
    "DEFAULT_SYNONYMS",
    "RankerWeights",
    "DEFAULT_WEIGHTS",
    "rank_results",
    "Searcher",
    "SearchOutcome",
    "SearchStatus",
    # Meta
    "__version__",
]
