"""memlex test configuration."""
import os
import sys
import pytest
from pathlib import Path

# Ensure memlex package is importable without an install
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def tmp_memlex_dir(tmp_path):
    """Create a temporary memlex home and point the environment at it."""
    memlex_dir = tmp_path / ".memlex"
    memlex_dir.mkdir()
    old_home = os.environ.get("MEMLEX_HOME")
    old_db = os.environ.pop("MEMLEX_DB", None)
    os.environ["MEMLEX_HOME"] = str(memlex_dir)
    yield memlex_dir
    if old_home is not None:
        os.environ["MEMLEX_HOME"] = old_home
    else:
        os.environ.pop("MEMLEX_HOME", None)
    if old_db is not None:
        os.environ["MEMLEX_DB"] = old_db


@pytest.fixture
def _reset_bridge(tmp_memlex_dir):
    """Reset the bridge singleton so each test gets a fresh store."""
    from memlex.bridge import reset_memory

    reset_memory()
    yield
    reset_memory()


@pytest.fixture
def store(tmp_memlex_dir):
    """Create a fresh SQLiteStore for testing."""
    from memlex.sqlite_store import SQLiteStore
    db_path = tmp_memlex_dir / "test.db"
    s = SQLiteStore(db_path=db_path)
    yield s
    s.close()


class StubIndex:
    """In-memory MemoryIndex: returns canned candidates and records feedback."""

    def __init__(self, candidates=None, max_access=0, fail=False, responses=None):
        self.candidates = list(candidates or [])
        self.max_access = max_access
        self.fail = fail
        # Optional per-call candidate lists, consumed in order
        self.responses = list(responses) if responses is not None else None
        self.expressions = []
        self.limits = []
        self.increments = []

    def search_by_expression(self, expression, limit):
        from memlex.errors import RetrievalError
        self.expressions.append(expression)
        self.limits.append(limit)
        if self.fail:
            raise RetrievalError(expression, RuntimeError("index unavailable"))
        if self.responses is not None:
            return self.responses.pop(0) if self.responses else []
        return self.candidates[:limit]

    def max_access_count(self):
        return self.max_access

    def increment_access_count(self, memory_id):
        self.increments.append(memory_id)


@pytest.fixture
def stub_index_cls():
    return StubIndex
