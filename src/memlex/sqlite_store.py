"""
memlex SQLite Store -- memories in one SQLite file with an FTS5 index.

The FTS5 table is an external-content index over ``content`` and ``tags``,
kept in sync by triggers and tokenized with ``porter unicode61`` so that
morphological variants match without any help from the query side.

Usage:
    store = SQLiteStore()
    memory_id = store.store("Use WAL mode for the cache db", tags=["sqlite"])
    candidates = store.search_by_expression('"wal" OR "cache"', limit=15)
"""

import json
import logging
import os
import sqlite3
import threading
import time as _time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from memlex import config
from memlex.errors import RetrievalError
from memlex.types import Candidate, Memory, parse_metadata, parse_tags

logger = logging.getLogger("memlex.sqlite_store")

SCHEMA_VERSION = 1
EXPORT_VERSION = 1

_MEMORY_COLUMNS = "m.id, m.content, m.tags, m.source, m.created_at, m.updated_at, m.access_count, m.metadata"

# ---------------------------------------------------------------------------
# SQLite retry -- the hook and the MCP server may write to the same file.
# busy_timeout covers most contention; this retries with exponential backoff
# when it still expires.
# ---------------------------------------------------------------------------
_DB_RETRY_ATTEMPTS = 3
_DB_RETRY_BASE_DELAY = 1.0  # seconds


def _retry_on_locked(fn, *args, **kwargs):
    """Call fn with retry on 'database is locked' OperationalError."""
    for attempt in range(_DB_RETRY_ATTEMPTS):
        try:
            return fn(*args, **kwargs)
        except sqlite3.OperationalError as e:
            if "database is locked" in str(e) and attempt < _DB_RETRY_ATTEMPTS - 1:
                delay = _DB_RETRY_BASE_DELAY * (2 ** attempt)
                logger.warning("database is locked (attempt %d/%d), retrying in %.1fs",
                               attempt + 1, _DB_RETRY_ATTEMPTS, delay)
                _time.sleep(delay)
            else:
                raise


_SCHEMA = """
    CREATE TABLE IF NOT EXISTS memories (
        id           INTEGER PRIMARY KEY AUTOINCREMENT,
        content      TEXT NOT NULL,
        tags         TEXT DEFAULT '[]',
        source       TEXT,
        created_at   REAL NOT NULL,
        updated_at   REAL NOT NULL,
        access_count INTEGER DEFAULT 0,
        metadata     TEXT DEFAULT '{}'
    );

    CREATE VIRTUAL TABLE IF NOT EXISTS memories_fts USING fts5(
        content,
        tags,
        content='memories',
        content_rowid='id',
        tokenize='porter unicode61'
    );

    CREATE TRIGGER IF NOT EXISTS memories_ai AFTER INSERT ON memories BEGIN
        INSERT INTO memories_fts(rowid, content, tags)
        VALUES (new.id, new.content, new.tags);
    END;

    CREATE TRIGGER IF NOT EXISTS memories_ad AFTER DELETE ON memories BEGIN
        INSERT INTO memories_fts(memories_fts, rowid, content, tags)
        VALUES ('delete', old.id, old.content, old.tags);
    END;

    CREATE TRIGGER IF NOT EXISTS memories_au AFTER UPDATE OF content, tags ON memories BEGIN
        INSERT INTO memories_fts(memories_fts, rowid, content, tags)
        VALUES ('delete', old.id, old.content, old.tags);
        INSERT INTO memories_fts(rowid, content, tags)
        VALUES (new.id, new.content, new.tags);
    END;

    CREATE INDEX IF NOT EXISTS idx_memories_created ON memories(created_at);
"""


class SQLiteStore:
    """SQLite-backed memory store with FTS5 BM25 lookup."""

    def __init__(self, db_path=None):
        self.db_path = Path(db_path) if db_path else config.get_db_path()
        self.db_path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)

        self._lock = threading.Lock()
        self._conn = self._connect()
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        """Create a new SQLite connection with WAL and a generous busy timeout."""
        conn = sqlite3.connect(str(self.db_path), timeout=30, check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.execute("PRAGMA busy_timeout=30000")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    def _init_schema(self) -> None:
        """Create tables, FTS index and triggers if they don't exist."""
        c = self._conn
        c.execute("CREATE TABLE IF NOT EXISTS schema_version (version INTEGER NOT NULL)")
        row = c.execute("SELECT version FROM schema_version LIMIT 1").fetchone()
        if row is None:
            c.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
        c.executescript(_SCHEMA)
        self._commit()

    # ------------------------------------------------------------------
    # Resilient writes
    # ------------------------------------------------------------------

    def _commit(self) -> None:
        _retry_on_locked(self._conn.commit)

    def _run_sql(self, sql, params=None):
        """Run a statement with retry on 'database is locked'."""
        if params is not None:
            return _retry_on_locked(self._conn.execute, sql, params)
        return _retry_on_locked(self._conn.execute, sql)

    # ------------------------------------------------------------------
    # Core CRUD
    # ------------------------------------------------------------------

    def store(
        self,
        content: str,
        tags: Optional[List[str]] = None,
        source: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        created_at: Optional[float] = None,
    ) -> int:
        """Store one memory. Returns its id."""
        if not content or not content.strip():
            raise ValueError("content must be a non-empty string")
        limit = config.max_content_size()
        if len(content) > limit:
            raise ValueError(
                f"Content size ({len(content):,} chars) exceeds limit ({limit:,} chars). "
                "Override with MEMLEX_MAX_CONTENT_SIZE env var."
            )

        now = _time.time()
        created = created_at if created_at is not None else now
        with self._lock:
            cur = self._run_sql(
                """INSERT INTO memories (content, tags, source, created_at, updated_at, metadata)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    content,
                    json.dumps(list(tags or [])),
                    source,
                    created,
                    now,
                    json.dumps(metadata or {}),
                ),
            )
            self._commit()
        logger.debug("Stored memory %d (%d chars)", cur.lastrowid, len(content))
        return cur.lastrowid

    def get(self, memory_id: int) -> Optional[Memory]:
        row = self._conn.execute(
            f"SELECT {_MEMORY_COLUMNS} FROM memories m WHERE m.id = ?", (memory_id,)
        ).fetchone()
        return Memory.from_row(row) if row else None

    def delete(self, memory_id: int) -> bool:
        """Delete a memory. Returns False if it did not exist."""
        with self._lock:
            cur = self._run_sql("DELETE FROM memories WHERE id = ?", (memory_id,))
            self._commit()
        return cur.rowcount > 0

    def list(self, limit: int = 20, offset: int = 0, tags: Optional[List[str]] = None) -> List[Memory]:
        """Newest first. With tags, a memory matches if it carries any of them."""
        if tags:
            conditions = " OR ".join("m.tags LIKE ?" for _ in tags)
            params: list = [f'%"{t}"%' for t in tags]
            sql = f"""SELECT {_MEMORY_COLUMNS} FROM memories m
                      WHERE {conditions}
                      ORDER BY m.created_at DESC LIMIT ? OFFSET ?"""
        else:
            params = []
            sql = f"""SELECT {_MEMORY_COLUMNS} FROM memories m
                      ORDER BY m.created_at DESC LIMIT ? OFFSET ?"""
        rows = self._conn.execute(sql, (*params, limit, offset)).fetchall()
        return [Memory.from_row(r) for r in rows]

    def count(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM memories").fetchone()[0]

    def contains_content(self, content: str) -> bool:
        row = self._conn.execute("SELECT 1 FROM memories WHERE content = ? LIMIT 1", (content,)).fetchone()
        return row is not None

    # ------------------------------------------------------------------
    # Retrieval and feedback
    # ------------------------------------------------------------------

    def search_by_expression(self, expression: str, limit: int = 15) -> List[Candidate]:
        """Run an FTS5 MATCH expression, best BM25 first.

        bm25() is negative and lower means a better match. Raises
        RetrievalError if SQLite rejects the expression.
        """
        try:
            rows = self._conn.execute(
                f"""SELECT {_MEMORY_COLUMNS}, bm25(memories_fts) AS bm25_score
                    FROM memories_fts
                    JOIN memories m ON m.id = memories_fts.rowid
                    WHERE memories_fts MATCH ?
                    ORDER BY bm25_score
                    LIMIT ?""",
                (expression, limit),
            ).fetchall()
        except sqlite3.Error as e:
            raise RetrievalError(expression, e) from e
        return [Candidate(Memory.from_row(r[:8]), r[8]) for r in rows]

    def max_access_count(self) -> int:
        """Highest access count in the store, 0 when empty."""
        try:
            row = self._conn.execute("SELECT MAX(access_count) FROM memories").fetchone()
        except sqlite3.Error as e:
            raise RetrievalError("MAX(access_count)", e) from e
        return (row[0] if row else None) or 0

    def increment_access_count(self, memory_id: int) -> None:
        with self._lock:
            self._run_sql(
                "UPDATE memories SET access_count = access_count + 1, updated_at = ? WHERE id = ?",
                (_time.time(), memory_id),
            )
            self._commit()

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def export_data(self) -> Dict[str, Any]:
        rows = self._conn.execute(
            f"SELECT {_MEMORY_COLUMNS} FROM memories m ORDER BY m.created_at"
        ).fetchall()
        memories = []
        for row in rows:
            memory = Memory.from_row(row)
            memories.append(
                {
                    "content": memory.content,
                    "tags": memory.tags,
                    "source": memory.source,
                    "created_at": memory.created_at,
                    "metadata": memory.metadata,
                }
            )
        return {
            "version": EXPORT_VERSION,
            "exported_at": datetime.now(timezone.utc).isoformat(),
            "count": len(memories),
            "memories": memories,
        }

    def export_to_file(self, filepath: Path) -> Dict[str, Any]:
        """Export all memories to a JSON file readable only by the owner."""
        data = self.export_data()
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        payload = (json.dumps(data, indent=2) + "\n").encode("utf-8")
        fd = os.open(str(filepath), os.O_CREAT | os.O_WRONLY | os.O_TRUNC, 0o600)
        try:
            os.write(fd, payload)
        finally:
            os.close(fd)
        return {"filepath": str(filepath), "count": data["count"], "exported_at": data["exported_at"]}

    def import_data(self, data: Dict[str, Any]) -> Dict[str, int]:
        """Import an export payload. Exact-content duplicates are skipped.

        The whole payload is validated before anything is written. A
        ``created_at`` that is not a number is replaced by the import time.
        """
        memories = data.get("memories") if isinstance(data, dict) else None
        if not isinstance(memories, list):
            raise ValueError('Invalid export file (missing "memories" array)')
        for i, item in enumerate(memories):
            if not isinstance(item, dict):
                raise ValueError(f"Invalid export file (memories[{i}] is not an object)")

        imported = 0
        skipped = 0
        for item in memories:
            content = item.get("content")
            if not isinstance(content, str) or not content.strip() or self.contains_content(content):
                skipped += 1
                continue
            created_at = item.get("created_at")
            if isinstance(created_at, bool) or not isinstance(created_at, (int, float)):
                if created_at is not None:
                    logger.warning("Ignoring non-numeric created_at %r on import", created_at)
                created_at = None
            self.store(
                content,
                tags=parse_tags(item.get("tags")),
                source=item.get("source"),
                metadata=parse_metadata(item.get("metadata")),
                created_at=created_at,
            )
            imported += 1
        logger.info("Import complete: %d added, %d skipped", imported, skipped)
        return {"imported": imported, "skipped": skipped}

    def import_from_file(self, filepath: Path) -> Dict[str, int]:
        path = Path(filepath)
        if path.is_symlink():
            raise ValueError("Import file must not be a symlink")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid export file: {e}") from e
        return self.import_data(data)

    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the database connection."""
        try:
            self._conn.execute("PRAGMA wal_checkpoint(PASSIVE)")
        except Exception:
            pass
        try:
            self._conn.close()
        except Exception as e:
            logger.debug("Database close failed: %s", e)

    def __enter__(self) -> "SQLiteStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
