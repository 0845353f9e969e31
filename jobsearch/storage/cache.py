"""SQLite storage for cached result pages and the search log."""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from pathlib import Path

from jobsearch.models.search import SearchResultPage

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECS = 30 * 60

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS pages (
    search_key    TEXT PRIMARY KEY,
    payload       TEXT NOT NULL,  -- SearchResultPage JSON
    expires_at    REAL NOT NULL,
    created_at    TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_pages_expires_at ON pages(expires_at);

CREATE TABLE IF NOT EXISTS searches (
    search_id     INTEGER PRIMARY KEY AUTOINCREMENT,
    search_key    TEXT NOT NULL,
    pages_loaded  INTEGER DEFAULT 0,
    total_items   INTEGER DEFAULT 0,
    total_results INTEGER DEFAULT 0,
    error         TEXT,
    duration_secs REAL,
    created_at    TEXT NOT NULL DEFAULT (datetime('now'))
);
"""


class ResponseCache:
    """SQLite-backed TTL cache of ready result pages, keyed by canonical query.

    Only pages that actually carry results are worth caching here; processing
    signals and errors never reach it.
    """

    def __init__(self, db_path: str = "jobsearch.db", ttl_secs: float = DEFAULT_TTL_SECS, clock=time.time) -> None:
        self.db_path = db_path
        self.ttl_secs = ttl_secs
        self._clock = clock
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.executescript(SCHEMA_SQL)
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    # -- Pages ------------------------------------------------------------------

    def get(self, search_key: str) -> SearchResultPage | None:
        """Return the cached page for ``search_key``, or None if missing or expired."""
        row = self._conn.execute(
            "SELECT payload, expires_at FROM pages WHERE search_key = ?", (search_key,)
        ).fetchone()
        if row is None:
            return None
        if row["expires_at"] < self._clock():
            self.delete(search_key)
            return None
        try:
            return SearchResultPage.model_validate_json(row["payload"])
        except ValueError as e:
            logger.warning("Discarding unreadable cache entry %s: %s", search_key, e)
            self.delete(search_key)
            return None

    def set(self, search_key: str, page: SearchResultPage) -> None:
        self._conn.execute(
            """
            INSERT OR REPLACE INTO pages (search_key, payload, expires_at)
            VALUES (?, ?, ?)
            """,
            (search_key, page.model_dump_json(), self._clock() + self.ttl_secs),
        )
        self._conn.commit()

    def delete(self, search_key: str) -> None:
        self._conn.execute("DELETE FROM pages WHERE search_key = ?", (search_key,))
        self._conn.commit()

    def purge_expired(self) -> int:
        """Drop every expired page. Returns the number removed."""
        cur = self._conn.execute("DELETE FROM pages WHERE expires_at < ?", (self._clock(),))
        self._conn.commit()
        if cur.rowcount:
            logger.debug("Purged %d expired cache entries", cur.rowcount)
        return cur.rowcount

    # -- Search logging ---------------------------------------------------------

    def log_search(
        self,
        search_key: str,
        pages_loaded: int = 0,
        total_items: int = 0,
        total_results: int = 0,
        error: str | None = None,
        duration_secs: float | None = None,
    ) -> None:
        """Log a completed search session."""
        self._conn.execute(
            """
            INSERT INTO searches (search_key, pages_loaded, total_items,
                                  total_results, error, duration_secs)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (search_key, pages_loaded, total_items, total_results, error, duration_secs),
        )
        self._conn.commit()

    def recent_searches(self, limit: int = 10) -> list[dict]:
        rows = self._conn.execute(
            "SELECT * FROM searches ORDER BY search_id DESC LIMIT ?", (limit,)
        ).fetchall()
        result = [dict(row) for row in rows]
        for row in result:
            row["search_key"] = json.loads(row["search_key"])
        return result
