"""
Indexer Store — read-only queries over comments crawled from the wider network.

The indexer records when it first fetched each comment (fetched_at). That server
time, never the author-claimed comment timestamp, anchors account age. Comment
updates (scores, removal, approval, bans) are flattened onto the same row.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Protocol

from spamblocker.data.engine_store import DAY_SECONDS, HOUR_SECONDS, _author_filter
from spamblocker.models.history_models import (
    LinkStats,
    NetworkStats,
    StoredComment,
    TimestampedKarma,
    VelocityStats,
)
from spamblocker.models.publication_models import PublicationType

logger = logging.getLogger("spamblocker.data.indexer")

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS indexed_comments (
  cid TEXT PRIMARY KEY,
  author_public_key TEXT NOT NULL,
  subplebbit_address TEXT NOT NULL,
  parent_cid TEXT,
  content TEXT,
  title TEXT,
  link TEXT,
  normalized_link TEXT,
  timestamp INTEGER NOT NULL,
  fetched_at INTEGER NOT NULL,
  -- CommentUpdate fields
  post_score INTEGER,
  reply_score INTEGER,
  updated_at INTEGER,
  removed INTEGER NOT NULL DEFAULT 0,
  approved INTEGER,
  ban_expires_at INTEGER,
  update_fetched_at INTEGER,
  fetch_failure_count INTEGER NOT NULL DEFAULT 0,
  last_fetch_failed_at INTEGER
);

CREATE INDEX IF NOT EXISTS idx_indexed_comments_author ON indexed_comments(author_public_key, timestamp);
CREATE INDEX IF NOT EXISTS idx_indexed_comments_link ON indexed_comments(normalized_link);

CREATE TABLE IF NOT EXISTS modqueue_comments (
  cid TEXT PRIMARY KEY,
  author_public_key TEXT NOT NULL,
  subplebbit_address TEXT NOT NULL,
  resolved INTEGER NOT NULL DEFAULT 0,
  accepted INTEGER
);
"""


class IndexerStore(Protocol):
    """Queries the network indexer must answer."""

    def get_author_first_indexed_timestamp(self, author_public_key: str) -> int | None: ...

    def get_author_karma_by_subplebbit(self, author_public_key: str) -> dict[str, TimestampedKarma]: ...

    def get_author_network_stats(self, author_public_key: str) -> NetworkStats: ...

    def get_author_velocity_stats(
        self, author_public_key: str, publication_type: PublicationType, now: int
    ) -> VelocityStats: ...

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


class SQLiteIndexerStore:
    """IndexerStore backed by a sqlite3 connection laid out as SCHEMA_SQL."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    @classmethod
    def from_path(cls, path: str) -> SQLiteIndexerStore:
        """Open a read-only connection to an existing database file."""
        conn = sqlite3.connect(f"file:{path}?mode=ro", uri=True, check_same_thread=False)
        return cls(conn)

    def _fetchone(self, sql: str, params: list[Any] | tuple) -> tuple | None:
        try:
            return self.conn.execute(sql, params).fetchone()
        except sqlite3.Error as e:
            logger.warning(f"Indexer query failed, treating as no data: {e}", exc_info=True)
            return None

    def _fetchall(self, sql: str, params: list[Any] | tuple) -> list[tuple]:
        try:
            return self.conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            logger.warning(f"Indexer query failed, treating as no data: {e}", exc_info=True)
            return []

    def _count(self, sql: str, params: tuple) -> int:
        row = self._fetchone(sql, params)
        return int(row[0]) if row and row[0] is not None else 0

    def get_author_first_indexed_timestamp(self, author_public_key: str) -> int | None:
        row = self._fetchone(
            "SELECT MIN(fetched_at) FROM indexed_comments WHERE author_public_key = ?",
            (author_public_key,),
        )
        return int(row[0]) if row and row[0] is not None else None

    def get_author_karma_by_subplebbit(self, author_public_key: str) -> dict[str, TimestampedKarma]:
        rows = self._fetchall(
            """SELECT subplebbit_address, COALESCE(post_score, 0), COALESCE(reply_score, 0),
                      COALESCE(updated_at, update_fetched_at, fetched_at) AS observed_at
               FROM indexed_comments
               WHERE author_public_key = ?
                 AND (post_score IS NOT NULL OR reply_score IS NOT NULL)
               ORDER BY observed_at DESC""",
            (author_public_key,),
        )
        karma: dict[str, TimestampedKarma] = {}
        for address, post_score, reply_score, observed_at in rows:
            if address not in karma:
                karma[address] = TimestampedKarma(
                    post_score=post_score, reply_score=reply_score, observed_at=observed_at
                )
        return karma

    def get_author_network_stats(self, author_public_key: str) -> NetworkStats:
        key = (author_public_key,)
        modqueue = self._fetchone(
            """SELECT COUNT(CASE WHEN accepted = 1 THEN 1 END),
                      COUNT(CASE WHEN accepted = 0 THEN 1 END)
               FROM modqueue_comments
               WHERE author_public_key = ? AND resolved = 1""",
            key,
        ) or (0, 0)
        return NetworkStats(
            # One ban per community, however many comments carry it
            ban_count=self._count(
                """SELECT COUNT(DISTINCT subplebbit_address) FROM indexed_comments
                   WHERE author_public_key = ? AND ban_expires_at IS NOT NULL""",
                key,
            ),
            removal_count=self._count(
                "SELECT COUNT(*) FROM indexed_comments WHERE author_public_key = ? AND removed = 1",
                key,
            ),
            disapproval_count=self._count(
                "SELECT COUNT(*) FROM indexed_comments WHERE author_public_key = ? AND approved = 0",
                key,
            ),
            # Update fetch keeps failing after the last success: likely purged
            unfetchable_count=self._count(
                """SELECT COUNT(*) FROM indexed_comments
                   WHERE author_public_key = ?
                     AND fetch_failure_count > 0
                     AND (update_fetched_at IS NULL OR last_fetch_failed_at > update_fetched_at)""",
                key,
            ),
            modqueue_accepted=modqueue[0],
            modqueue_rejected=modqueue[1],
            total_indexed_comments=self._count(
                "SELECT COUNT(*) FROM indexed_comments WHERE author_public_key = ?", key
            ),
        )

    def get_author_velocity_stats(
        self, author_public_key: str, publication_type: PublicationType, now: int
    ) -> VelocityStats:
        """Posts and replies only; the indexer never sees votes or edits."""
        publication_type = PublicationType(publication_type)
        if publication_type == PublicationType.POST:
            parent_clause = "parent_cid IS NULL"
        elif publication_type == PublicationType.REPLY:
            parent_clause = "parent_cid IS NOT NULL"
        else:
            return VelocityStats()

        row = self._fetchone(
            f"""SELECT COALESCE(SUM(CASE WHEN timestamp >= ? THEN 1 ELSE 0 END), 0), COUNT(*)
                FROM indexed_comments
                WHERE author_public_key = ? AND {parent_clause} AND timestamp >= ?""",
            (now - HOUR_SECONDS, author_public_key, now - DAY_SECONDS),
        )
        if row is None:
            return VelocityStats()
        return VelocityStats(last_hour=row[0], last_24_hours=row[1])

    def find_recent_comments(
        self,
        since: int,
        author_public_key: str | None = None,
        exclude_author_public_key: str | None = None,
        limit: int = 100,
    ) -> list[StoredComment]:
        clause, params = _author_filter(author_public_key, exclude_author_public_key)
        rows = self._fetchall(
            f"""SELECT cid, author_public_key, content, title, subplebbit_address, timestamp
                FROM indexed_comments
                WHERE timestamp >= ?
                  AND (content IS NOT NULL OR title IS NOT NULL){clause}
                ORDER BY timestamp DESC
                LIMIT ?""",
            [since, *params, limit],
        )
        return [
            StoredComment(
                id=cid,
                source="indexer",
                author_public_key=author,
                content=content,
                title=title,
                subplebbit_address=address,
                timestamp=timestamp,
            )
            for cid, author, content, title, address, timestamp in rows
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
                FROM indexed_comments
                WHERE normalized_link = ? AND timestamp >= ?{clause}""",
            [normalized_link, since, *params],
        )
        if row is None:
            return LinkStats()
        return LinkStats(count=row[0], unique_authors=row[1])
