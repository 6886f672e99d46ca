"""
Database module for Snipgraph.

SQLite storage for snippets and for the statistics behind tag suggestions:
known tags, tag co-occurrence counters and per-domain tag frequencies.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from snipgraph.config import get_db_path
from snipgraph.errors import StorageUnavailable
from snipgraph.models import CoOccurrencePair, DomainProfile, LinkMeta, Snippet, Tag

logger = logging.getLogger(__name__)

# Schema version for migrations
SCHEMA_VERSION = 1

SCHEMA = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

-- Saved snippets
CREATE TABLE IF NOT EXISTS snippets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    text TEXT NOT NULL,
    timestamp INTEGER NOT NULL,             -- Unix timestamp ms
    tags TEXT NOT NULL DEFAULT '[]',        -- JSON list, order as typed
    meta TEXT                               -- JSON LinkMeta or NULL
);

-- Tag ontology
CREATE TABLE IF NOT EXISTS tags (
    name TEXT PRIMARY KEY,                  -- case-sensitive
    created_at TEXT NOT NULL,               -- ISO 8601
    parent TEXT,
    color TEXT
);

-- Co-occurrence counters, one row per unordered pair
CREATE TABLE IF NOT EXISTS tag_stats (
    pair TEXT PRIMARY KEY,                  -- "a|b" with a < b
    tag_a TEXT NOT NULL,
    tag_b TEXT NOT NULL,
    count INTEGER NOT NULL CHECK(count >= 1),
    last_seen TEXT NOT NULL
);

-- Per-domain tag frequencies
CREATE TABLE IF NOT EXISTS domain_stats (
    domain TEXT PRIMARY KEY,
    tag_counts TEXT NOT NULL DEFAULT '{}'   -- JSON object, insertion ordered
);

CREATE INDEX IF NOT EXISTS idx_snippets_timestamp ON snippets(timestamp);
"""


class StatsSession:
    """
    Statistics store operations bound to one open connection.

    Inside Database.transaction() every put belongs to the same atomic
    write group.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def get_tag(self, name: str) -> Tag | None:
        row = self.conn.execute(
            "SELECT * FROM tags WHERE name = ?", (name,)
        ).fetchone()
        return Tag.model_validate(dict(row)) if row else None

    def put_tag(self, tag: Tag) -> None:
        self.conn.execute("""
            INSERT OR REPLACE INTO tags (name, created_at, parent, color)
            VALUES (?, ?, ?, ?)
        """, (tag.name, tag.created_at.isoformat(), tag.parent, tag.color))

    def list_tags(self) -> list[Tag]:
        rows = self.conn.execute("SELECT * FROM tags ORDER BY name").fetchall()
        return [Tag.model_validate(dict(row)) for row in rows]

    def get_pair(self, pair: str) -> CoOccurrencePair | None:
        row = self.conn.execute(
            "SELECT * FROM tag_stats WHERE pair = ?", (pair,)
        ).fetchone()
        return CoOccurrencePair.model_validate(dict(row)) if row else None

    def put_pair(self, record: CoOccurrencePair) -> None:
        # Upsert keeps the original rowid, which fixes enumeration order
        self.conn.execute("""
            INSERT INTO tag_stats (pair, tag_a, tag_b, count, last_seen)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(pair) DO UPDATE SET
                count = excluded.count,
                last_seen = excluded.last_seen
        """, (
            record.pair,
            record.tag_a,
            record.tag_b,
            record.count,
            record.last_seen.isoformat(),
        ))

    def get_all_pairs(self) -> list[CoOccurrencePair]:
        """All pairs in first-seen order."""
        rows = self.conn.execute(
            "SELECT * FROM tag_stats ORDER BY rowid"
        ).fetchall()
        return [CoOccurrencePair.model_validate(dict(row)) for row in rows]

    def get_domain(self, domain: str) -> DomainProfile | None:
        row = self.conn.execute(
            "SELECT * FROM domain_stats WHERE domain = ?", (domain,)
        ).fetchone()
        if not row:
            return None
        return DomainProfile(domain=row["domain"], tag_counts=json.loads(row["tag_counts"]))

    def put_domain(self, record: DomainProfile) -> None:
        self.conn.execute("""
            INSERT INTO domain_stats (domain, tag_counts) VALUES (?, ?)
            ON CONFLICT(domain) DO UPDATE SET tag_counts = excluded.tag_counts
        """, (record.domain, json.dumps(record.tag_counts)))


def _row_to_snippet(row: sqlite3.Row) -> Snippet:
    meta = json.loads(row["meta"]) if row["meta"] else None
    return Snippet(
        id=row["id"],
        text=row["text"],
        timestamp=row["timestamp"],
        tags=json.loads(row["tags"]),
        meta=LinkMeta.model_validate(meta) if meta else None,
    )


class Database:
    """
    SQLite database wrapper for Snipgraph.

    Open once per process and pass it to the services that need it.
    Each operation uses its own connection; the file runs in WAL mode so
    readers never wait on an in-flight learning transaction.
    """

    def __init__(self, db_path: Path | None = None):
        self.db_path = Path(db_path) if db_path else get_db_path()
        self._closed = False
        self._ensure_db()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        """End the lifecycle. Later calls raise StorageUnavailable."""
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_db(self) -> None:
        """Ensure database exists and schema is current."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with self._connect() as conn:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.executescript(SCHEMA)
                # Set schema version
                conn.execute(
                    "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
                    (SCHEMA_VERSION,)
                )
        except (OSError, sqlite3.Error) as e:
            raise StorageUnavailable(f"Cannot open database at {self.db_path}: {e}") from e

    def _open(self) -> sqlite3.Connection:
        if self._closed:
            raise StorageUnavailable(f"Database at {self.db_path} is closed")
        try:
            conn = sqlite3.connect(self.db_path, timeout=10.0)
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Cannot open database at {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        conn = self._open()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[StatsSession]:
        """
        Atomic write group across tags, tag_stats and domain_stats.

        The write lock is taken up front so two concurrent learners cannot
        both read a counter and then overwrite each other's increment.
        """
        conn = self._open()
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield StatsSession(conn)
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # Statistics store, read side (each call is its own snapshot)

    def get_tag(self, name: str) -> Tag | None:
        with self._connect() as conn:
            return StatsSession(conn).get_tag(name)

    def put_tag(self, tag: Tag) -> None:
        with self._connect() as conn:
            StatsSession(conn).put_tag(tag)

    def list_tags(self) -> list[Tag]:
        with self._connect() as conn:
            return StatsSession(conn).list_tags()

    def get_pair(self, pair: str) -> CoOccurrencePair | None:
        with self._connect() as conn:
            return StatsSession(conn).get_pair(pair)

    def put_pair(self, record: CoOccurrencePair) -> None:
        with self._connect() as conn:
            StatsSession(conn).put_pair(record)

    def get_all_pairs(self) -> list[CoOccurrencePair]:
        with self._connect() as conn:
            return StatsSession(conn).get_all_pairs()

    def get_domain(self, domain: str) -> DomainProfile | None:
        with self._connect() as conn:
            return StatsSession(conn).get_domain(domain)

    def put_domain(self, record: DomainProfile) -> None:
        with self._connect() as conn:
            StatsSession(conn).put_domain(record)

    def top_pairs(self, limit: int = 10) -> list[CoOccurrencePair]:
        """Strongest associations first."""
        with self._connect() as conn:
            rows = conn.execute("""
                SELECT * FROM tag_stats ORDER BY count DESC, rowid LIMIT ?
            """, (limit,)).fetchall()
            return [CoOccurrencePair.model_validate(dict(row)) for row in rows]

    # Snippets

    def put_snippet(self, snippet: Snippet) -> int:
        """Insert or overwrite a snippet. Returns its ID."""
        meta = snippet.meta.model_dump_json() if snippet.meta else None

        with self._connect() as conn:
            if snippet.id is None:
                cursor = conn.execute("""
                    INSERT INTO snippets (text, timestamp, tags, meta)
                    VALUES (?, ?, ?, ?)
                """, (snippet.text, snippet.timestamp, json.dumps(snippet.tags), meta))
                return int(cursor.lastrowid)

            conn.execute("""
                INSERT OR REPLACE INTO snippets (id, text, timestamp, tags, meta)
                VALUES (?, ?, ?, ?, ?)
            """, (snippet.id, snippet.text, snippet.timestamp, json.dumps(snippet.tags), meta))
            return snippet.id

    def get_snippet(self, snippet_id: int) -> Snippet | None:
        """Get a single snippet by ID."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM snippets WHERE id = ?", (snippet_id,)
            ).fetchone()
            if row:
                return _row_to_snippet(row)
        return None

    def get_snippets(self, limit: int | None = None) -> list[Snippet]:
        """All snippets, newest first."""
        query = "SELECT * FROM snippets ORDER BY timestamp DESC, id DESC"
        params: list[Any] = []
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
            return [_row_to_snippet(row) for row in rows]

    def update_snippet_meta(self, snippet_id: int, meta: LinkMeta | None) -> bool:
        """Attach link metadata to a snippet. Returns True if it exists."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE snippets SET meta = ? WHERE id = ?",
                (meta.model_dump_json() if meta else None, snippet_id),
            )
            return cursor.rowcount > 0

    def delete_snippet(self, snippet_id: int) -> bool:
        """Delete a snippet. Learned statistics are kept."""
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM snippets WHERE id = ?", (snippet_id,))
            return cursor.rowcount > 0

    def get_stats(self) -> dict[str, Any]:
        """Get database statistics."""
        with self._connect() as conn:
            return {
                "snippets": conn.execute("SELECT COUNT(*) FROM snippets").fetchone()[0],
                "tags": conn.execute("SELECT COUNT(*) FROM tags").fetchone()[0],
                "pairs": conn.execute("SELECT COUNT(*) FROM tag_stats").fetchone()[0],
                "domains": conn.execute("SELECT COUNT(*) FROM domain_stats").fetchone()[0],
            }
