"""
Engine Store — read-only queries over publications this gateway received directly.

The SQLite accessor runs against a caller-owned connection. Connection handling,
migrations and writes belong to the host service; SCHEMA_SQL documents the table
shape the queries expect (all timestamps in seconds).

Query failures are logged and surfaced as "no data" so factor calculators never
see storage exceptions.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Protocol

from spamblocker.models.history_models import (
    LinkStats,
    StoredComment,
    TimestampedKarma,
    VelocityStats,
)
from spamblocker.models.publication_models import PublicationType

logger = logging.getLogger("spamblocker.data.engine")

HOUR_SECONDS = 60 * 60
DAY_SECONDS = 24 * HOUR_SECONDS

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS publications (
  session_id TEXT PRIMARY KEY,
  author_public_key TEXT NOT NULL,
  publication_type TEXT NOT NULL,
  subplebbit_address TEXT NOT NULL,
  content TEXT,
  title TEXT,
  link TEXT,
  normalized_link TEXT,
  post_score INTEGER,
  reply_score INTEGER,
  received_at INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_publications_author ON publications(author_public_key, received_at);
CREATE INDEX IF NOT EXISTS idx_publications_link ON publications(normalized_link);

CREATE TABLE IF NOT EXISTS publication_wallets (
  session_id TEXT NOT NULL,
  wallet_address TEXT NOT NULL,
  chain_ticker TEXT,
  FOREIGN KEY (session_id) REFERENCES publications(session_id)
);

CREATE INDEX IF NOT EXISTS idx_publication_wallets_address ON publication_wallets(wallet_address);

CREATE TABLE IF NOT EXISTS oauth_links (
  author_public_key TEXT NOT NULL,
  oauth_identity TEXT NOT NULL,
  linked_at INTEGER,
  PRIMARY KEY (author_public_key, oauth_identity)
);
"""


class EngineStore(Protocol):
    """Queries the engine-local transactional store must answer."""

    def get_author_first_seen_timestamp(self, author_public_key: str) -> int | None: ...

    def get_author_karma_by_subplebbit(self, author_public_key: str) -> dict[str, TimestampedKarma]: ...

    def get_author_velocity_stats(
        self, author_public_key: str, publication_type: PublicationType, now: int
    ) -> VelocityStats: ...

    def get_wallet_velocity_stats(
        self, wallet_address: str, publication_type: PublicationType, now: int
    ) -> VelocityStats: ...

    def get_author_oauth_identities(self, author_public_key: str) -> list[str]: ...

    def count_authors_with_oauth_identity(self, oauth_identity: str) -> int: ...

    def find_recent_comments(
        self,
        since: int,
        author_public_key: str | None = None,
        exclude_author_public_key: str | None = None,
        limit: int = 100,
    ) -> list[StoredComment]: ...

    def count_links(
        self,
        normalized_link: str,
        since: int,
        author_public_key: str | None = None,
        exclude_author_public_key: str | None = None,
    ) -> LinkStats: ...


def _author_filter(
    author_public_key: str | None, exclude_author_public_key: str | None
) -> tuple[str, list[Any]]:
    if author_public_key is not None:
        return " AND author_public_key = ?", [author_public_key]
    if exclude_author_public_key is not None:
        return " AND author_public_key != ?", [exclude_author_public_key]
    return "", []


class SQLiteEngineStore:
    """EngineStore backed by a sqlite3 connection laid out as SCHEMA_SQL."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    @classmethod
    def from_path(cls, path: str) -> SQLiteEngineStore:
        """Open a read-only connection to an existing database file."""
        conn = sqlite3.connect(f"file:{path}?mode=ro", uri=True, check_same_thread=False)
        return cls(conn)

    def _fetchone(self, sql: str, params: list[Any] | tuple) -> tuple | None:
        try:
            return self.conn.execute(sql, params).fetchone()
        except sqlite3.Error as e:
            logger.warning(f"Engine store query failed, treating as no data: {e}", exc_info=True)
            return None

    def _fetchall(self, sql: str, params: list[Any] | tuple) -> list[tuple]:
        try:
            return self.conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            logger.warning(f"Engine store query failed, treating as no data: {e}", exc_info=True)
            return []

    def get_author_first_seen_timestamp(self, author_public_key: str) -> int | None:
        row = self._fetchone(
            "SELECT MIN(received_at) FROM publications WHERE author_public_key = ?",
            (author_public_key,),
        )
        return int(row[0]) if row and row[0] is not None else None

    def get_author_karma_by_subplebbit(self, author_public_key: str) -> dict[str, TimestampedKarma]:
        rows = self._fetchall(
            """SELECT subplebbit_address, COALESCE(post_score, 0), COALESCE(reply_score, 0), received_at
               FROM publications
               WHERE author_public_key = ?
                 AND (post_score IS NOT NULL OR reply_score IS NOT NULL)
               ORDER BY received_at DESC""",
            (author_public_key,),
        )
        karma: dict[str, TimestampedKarma] = {}
        for address, post_score, reply_score, received_at in rows:
            # Rows are newest first; keep the latest snapshot per community
            if address not in karma:
                karma[address] = TimestampedKarma(
                    post_score=post_score, reply_score=reply_score, observed_at=received_at
                )
        return karma

    def get_author_velocity_stats(
        self, author_public_key: str, publication_type: PublicationType, now: int
    ) -> VelocityStats:
        row = self._fetchone(
            """SELECT COALESCE(SUM(CASE WHEN received_at >= ? THEN 1 ELSE 0 END), 0), COUNT(*)
               FROM publications
               WHERE author_public_key = ? AND publication_type = ? AND received_at >= ?""",
            (now - HOUR_SECONDS, author_public_key, PublicationType(publication_type).value, now - DAY_SECONDS),
        )
        if row is None:
            return VelocityStats()
        return VelocityStats(last_hour=row[0], last_24_hours=row[1])

    def get_wallet_velocity_stats(
        self, wallet_address: str, publication_type: PublicationType, now: int
    ) -> VelocityStats:
        row = self._fetchone(
            """SELECT COALESCE(SUM(CASE WHEN p.received_at >= ? THEN 1 ELSE 0 END), 0), COUNT(*)
               FROM publication_wallets w
               JOIN publications p ON p.session_id = w.session_id
               WHERE LOWER(w.wallet_address) = LOWER(?)
                 AND p.publication_type = ? AND p.received_at >= ?""",
            (now - HOUR_SECONDS, wallet_address, PublicationType(publication_type).value, now - DAY_SECONDS),
        )
        if row is None:
            return VelocityStats()
        return VelocityStats(last_hour=row[0], last_24_hours=row[1])

    def get_author_oauth_identities(self, author_public_key: str) -> list[str]:
        rows = self._fetchall(
            "SELECT DISTINCT oauth_identity FROM oauth_links WHERE author_public_key = ? ORDER BY oauth_identity",
            (author_public_key,),
        )
        return [r[0] for r in rows]

    def count_authors_with_oauth_identity(self, oauth_identity: str) -> int:
        row = self._fetchone(
            "SELECT COUNT(DISTINCT author_public_key) FROM oauth_links WHERE oauth_identity = ?",
            (oauth_identity,),
        )
        return int(row[0]) if row else 0

    def find_recent_comments(
        self,
        since: int,
        author_public_key: str | None = None,
        exclude_author_public_key: str | None = None,
        limit: int = 100,
    ) -> list[StoredComment]:
        clause, params = _author_filter(author_public_key, exclude_author_public_key)
        rows = self._fetchall(
            f"""SELECT session_id, author_public_key, content, title, subplebbit_address, received_at
                FROM publications
                WHERE publication_type IN ('post', 'reply')
                  AND received_at >= ?
                  AND (content IS NOT NULL OR title IS NOT NULL){clause}
                ORDER BY received_at DESC
                LIMIT ?""",
            [since, *params, limit],
        )
        return [
            StoredComment(
                id=session_id,
                source="engine",
                author_public_key=author,
                content=content,
                title=title,
                subplebbit_address=address,
                timestamp=received_at,
            )
            for session_id, author, content, title, address, received_at in rows
        ]

    def count_links(
        self,
        normalized_link: str,
        since: int,
        author_public_key: str | None = None,
        exclude_author_public_key: str | None = None,
    ) -> LinkStats:
        clause, params = _author_filter(author_public_key, exclude_author_public_key)
        row = self._fetchone(
            f"""SELECT COUNT(*), COUNT(DISTINCT author_public_key)
                FROM publications
                WHERE normalized_link = ? AND received_at >= ?{clause}""",
            [normalized_link, since, *params],
        )
        if row is None:
            return LinkStats()
        return LinkStats(count=row[0], unique_authors=row[1])
