"""
Combined Data Service — reconciles engine-local and indexer history.

Each kind of data has its own combination rule:
  Account age   → oldest timestamp from either source wins (MIN)
  Karma         → per community, the most recently observed snapshot wins
  Velocity      → counts from both sources are added (SUM)
  Content/links → matches from both sources are merged (UNION / SUM)

The service never writes. A store that raises is logged and treated as having
no data, so one broken source only degrades the evaluation.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, TypeVar

from spamblocker.data.engine_store import EngineStore
from spamblocker.data.indexer_store import IndexerStore
from spamblocker.models.history_models import (
    KarmaRecord,
    LinkStats,
    NetworkStats,
    StoredComment,
    TimestampedKarma,
    VelocityStats,
)
from spamblocker.models.publication_models import PublicationType

logger = logging.getLogger("spamblocker.data")

T = TypeVar("T")


def merge_earliest_timestamp(engine_first_seen: int | None, indexer_first_seen: int | None) -> int | None:
    """Oldest of the two; whichever exists if only one does."""
    if engine_first_seen is not None and indexer_first_seen is not None:
        return min(engine_first_seen, indexer_first_seen)
    return engine_first_seen if engine_first_seen is not None else indexer_first_seen


def merge_karma_snapshots(
    engine_karma: dict[str, TimestampedKarma],
    indexer_karma: dict[str, TimestampedKarma],
) -> dict[str, KarmaRecord]:
    """Newest snapshot per community. Engine data wins a tie."""
    merged: dict[str, KarmaRecord] = {}
    for address in {**engine_karma, **indexer_karma}:
        engine = engine_karma.get(address)
        indexer = indexer_karma.get(address)
        if engine is not None and (indexer is None or engine.observed_at >= indexer.observed_at):
            chosen = engine
        else:
            chosen = indexer
        merged[address] = KarmaRecord(post_score=chosen.post_score, reply_score=chosen.reply_score)
    return merged


def sum_velocity_stats(stats: Iterable[VelocityStats]) -> VelocityStats:
    """Total across publication types (or sources); empty input is zero."""
    total = VelocityStats()
    for item in stats:
        total = total + item
    return total


def _merge_comments(*sources: list[StoredComment], limit: int) -> list[StoredComment]:
    combined = [c for source in sources for c in source]
    combined.sort(key=lambda c: c.timestamp, reverse=True)
    return combined[:limit]


class CombinedDataService:
    """Read-only view over both history stores. Either store may be absent."""

    def __init__(
        self,
        engine_store: EngineStore | None = None,
        indexer_store: IndexerStore | None = None,
    ) -> None:
        self.engine_store = engine_store
        self.indexer_store = indexer_store

    def _safe(self, source: str, query: Callable[[], T], default: T) -> T:
        try:
            return query()
        except Exception as e:
            logger.warning(f"{source} store failed, continuing without it: {e}", exc_info=True)
            return default

    def _engine(self, method: str, default: T, *args) -> T:
        if self.engine_store is None:
            return default
        return self._safe("Engine", lambda: getattr(self.engine_store, method)(*args), default)

    def _indexer(self, method: str, default: T, *args) -> T:
        if self.indexer_store is None:
            return default
        return self._safe("Indexer", lambda: getattr(self.indexer_store, method)(*args), default)

    # ── Account age ──

    def get_author_earliest_timestamp(self, author_public_key: str) -> int | None:
        return merge_earliest_timestamp(
            self._engine("get_author_first_seen_timestamp", None, author_public_key),
            self._indexer("get_author_first_indexed_timestamp", None, author_public_key),
        )

    # ── Karma ──

    def get_author_karma_by_subplebbit(self, author_public_key: str) -> dict[str, KarmaRecord]:
        return merge_karma_snapshots(
            self._engine("get_author_karma_by_subplebbit", {}, author_public_key),
            self._indexer("get_author_karma_by_subplebbit", {}, author_public_key),
        )

    # ── Network moderation history (indexer only) ──

    def get_author_network_stats(self, author_public_key: str) -> NetworkStats:
        return self._indexer("get_author_network_stats", NetworkStats(), author_public_key)

    # ── Velocity ──

    def get_author_velocity_stats(
        self, author_public_key: str, publication_type: PublicationType, now: int
    ) -> VelocityStats:
        """Engine + indexer counts. The indexer only knows posts and replies."""
        publication_type = PublicationType(publication_type)
        stats = self._engine("get_author_velocity_stats", VelocityStats(), author_public_key, publication_type, now)
        if publication_type in (PublicationType.POST, PublicationType.REPLY):
            stats = stats + self._indexer(
                "get_author_velocity_stats", VelocityStats(), author_public_key, publication_type, now
            )
        return stats

    def get_wallet_velocity_stats(
        self, wallet_address: str, publication_type: PublicationType, now: int
    ) -> VelocityStats:
        return self._engine("get_wallet_velocity_stats", VelocityStats(), wallet_address, publication_type, now)

    # ── Social verification (engine only) ──

    def get_author_oauth_identities(self, author_public_key: str) -> list[str]:
        return self._engine("get_author_oauth_identities", [], author_public_key)

    def count_authors_with_oauth_identity(self, oauth_identity: str) -> int:
        return self._engine("count_authors_with_oauth_identity", 0, oauth_identity)

    # ── Content similarity ──

    def find_recent_comments_by_author(
        self, author_public_key: str, since: int, limit: int = 100
    ) -> list[StoredComment]:
        return _merge_comments(
            self._engine("find_recent_comments", [], since, author_public_key, None, limit),
            self._indexer("find_recent_comments", [], since, author_public_key, None, limit),
            limit=limit,
        )

    def find_recent_comments_by_others(
        self, author_public_key: str, since: int, limit: int = 100
    ) -> list[StoredComment]:
        return _merge_comments(
            self._engine("find_recent_comments", [], since, None, author_public_key, limit),
            self._indexer("find_recent_comments", [], since, None, author_public_key, limit),
            limit=limit,
        )

    # ── Link reuse ──

    def count_links_by_author(self, normalized_link: str, author_public_key: str, since: int) -> LinkStats:
        return self._engine(
            "count_links", LinkStats(), normalized_link, since, author_public_key, None
        ) + self._indexer("count_links", LinkStats(), normalized_link, since, author_public_key, None)

    def count_links_by_others(self, normalized_link: str, author_public_key: str, since: int) -> LinkStats:
        return self._engine(
            "count_links", LinkStats(), normalized_link, since, None, author_public_key
        ) + self._indexer("count_links", LinkStats(), normalized_link, since, None, author_public_key)
