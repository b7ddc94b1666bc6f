"""
Historical Data Models — aggregates returned by the engine and indexer accessors.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class KarmaRecord(BaseModel):
    """Per-community karma snapshot (post + reply score)."""

    post_score: int = 0
    reply_score: int = 0

    @property
    def total(self) -> int:
        return self.post_score + self.reply_score


class TimestampedKarma(KarmaRecord):
    """Karma snapshot with the source timestamp used for newest-wins reconciliation."""

    observed_at: int = Field(..., description="Seconds; receipt time (engine) or update time (indexer)")


class VelocityStats(BaseModel):
    last_hour: int = 0
    last_24_hours: int = 0

    def __add__(self, other: VelocityStats) -> VelocityStats:
        return VelocityStats(
            last_hour=self.last_hour + other.last_hour,
            last_24_hours=self.last_24_hours + other.last_24_hours,
        )

    @property
    def effective_rate(self) -> float:
        """Publications per hour; the daily average guards against hidden bursts."""
        return max(float(self.last_hour), self.last_24_hours / 24)


class NetworkStats(BaseModel):
    """Network-wide moderation outcomes for one author, from the indexer."""

    ban_count: int = 0
    removal_count: int = 0
    disapproval_count: int = 0
    unfetchable_count: int = 0
    modqueue_accepted: int = 0
    modqueue_rejected: int = 0
    total_indexed_comments: int = 0


class StoredComment(BaseModel):
    """A previously seen comment, used for duplicate detection."""

    id: str
    source: Literal["engine", "indexer"]
    author_public_key: str
    content: str | None = None
    title: str | None = None
    subplebbit_address: str = ""
    timestamp: int = 0


class LinkStats(BaseModel):
    count: int = 0
    unique_authors: int = 0

    def __add__(self, other: LinkStats) -> LinkStats:
        return LinkStats(
            count=self.count + other.count,
            unique_authors=self.unique_authors + other.unique_authors,
        )
