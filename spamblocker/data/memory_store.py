"""
In-memory accessors — list-backed EngineStore / IndexerStore implementations.

Useful when embedding the engine in a process that already keeps its own
history, and as deterministic fixtures in tests. Links are normalised on insert
the same way the SQLite accessors expect them to be stored.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from spamblocker.core.url_utils import normalize_url
from spamblocker.data.engine_store import DAY_SECONDS, HOUR_SECONDS
from spamblocker.models.history_models import (
    LinkStats,
    NetworkStats,
    StoredComment,
    TimestampedKarma,
    VelocityStats,
)
from spamblocker.models.publication_models import PublicationType

_COMMENT_TYPES = (PublicationType.POST, PublicationType.REPLY)


@dataclass
class EnginePublicationRecord:
    session_id: str
    author_public_key: str
    publication_type: PublicationType
    subplebbit_address: str
    received_at: int
    content: str | None = None
    title: str | None = None
    normalized_link: str | None = None
    post_score: int | None = None
    reply_score: int | None = None
    wallet_addresses: list[str] = field(default_factory=list)


@dataclass
class IndexedCommentRecord:
    cid: str
    author_public_key: str
    subplebbit_address: str
    timestamp: int
    fetched_at: int
    parent_cid: str | None = None
    content: str | None = None
    title: str | None = None
    normalized_link: str | None = None
    post_score: int | None = None
    reply_score: int | None = None
    updated_at: int | None = None
    removed: bool = False
    approved: bool | None = None
    ban_expires_at: int | None = None
    unfetchable: bool = False


@dataclass
class ModqueueRecord:
    cid: str
    author_public_key: str
    subplebbit_address: str
    resolved: bool = False
    accepted: bool | None = None


def _velocity(timestamps: list[int], now: int) -> VelocityStats:
    return VelocityStats(
        last_hour=sum(1 for t in timestamps if t >= now - HOUR_SECONDS),
        last_24_hours=sum(1 for t in timestamps if t >= now - DAY_SECONDS),
    )


def _author_matches(
    key: str, author_public_key: str | None, exclude_author_public_key: str | None
) -> bool:
    if author_public_key is not None:
        return key == author_public_key
    if exclude_author_public_key is not None:
        return key != exclude_author_public_key
    return True


def _link_stats(authors: list[str]) -> LinkStats:
    return LinkStats(count=len(authors), unique_authors=len(set(authors)))


def _latest_karma(rows: list[tuple[str, int, int, int]]) -> dict[str, TimestampedKarma]:
    karma: dict[str, TimestampedKarma] = {}
    for address, post_score, reply_score, observed_at in sorted(rows, key=lambda r: r[3], reverse=True):
        if address not in karma:
            karma[address] = TimestampedKarma(
                post_score=post_score, reply_score=reply_score, observed_at=observed_at
            )
    return karma


class InMemoryEngineStore:
    """EngineStore over plain Python lists."""

    def __init__(self) -> None:
        self.publications: list[EnginePublicationRecord] = []
        self.oauth_links: dict[str, set[str]] = {}

    def add_publication(
        self,
        author_public_key: str,
        publication_type: PublicationType | str,
        subplebbit_address: str,
        received_at: int,
        content: str | None = None,
        title: str | None = None,
        link: str | None = None,
        post_score: int | None = None,
        reply_score: int | None = None,
        wallet_addresses: list[str] | None = None,
        session_id: str | None = None,
    ) -> EnginePublicationRecord:
        record = EnginePublicationRecord(
            session_id=session_id or uuid.uuid4().hex,
            author_public_key=author_public_key,
            publication_type=PublicationType(publication_type),
            subplebbit_address=subplebbit_address,
            received_at=received_at,
            content=content,
            title=title,
            normalized_link=normalize_url(link) if link else None,
            post_score=post_score,
            reply_score=reply_score,
            wallet_addresses=list(wallet_addresses or []),
        )
        self.publications.append(record)
        return record

    def add_oauth_link(self, author_public_key: str, oauth_identity: str) -> None:
        self.oauth_links.setdefault(oauth_identity, set()).add(author_public_key)

    # ── EngineStore ──

    def get_author_first_seen_timestamp(self, author_public_key: str) -> int | None:
        times = [p.received_at for p in self.publications if p.author_public_key == author_public_key]
        return min(times) if times else None

    def get_author_karma_by_subplebbit(self, author_public_key: str) -> dict[str, TimestampedKarma]:
        return _latest_karma(
            [
                (p.subplebbit_address, p.post_score or 0, p.reply_score or 0, p.received_at)
                for p in self.publications
                if p.author_public_key == author_public_key
                and (p.post_score is not None or p.reply_score is not None)
            ]
        )

    def get_author_velocity_stats(
        self, author_public_key: str, publication_type: PublicationType, now: int
    ) -> VelocityStats:
        publication_type = PublicationType(publication_type)
        return _velocity(
            [
                p.received_at
                for p in self.publications
                if p.author_public_key == author_public_key and p.publication_type == publication_type
            ],
            now,
        )

    def get_wallet_velocity_stats(
        self, wallet_address: str, publication_type: PublicationType, now: int
    ) -> VelocityStats:
        publication_type = PublicationType(publication_type)
        wallet = wallet_address.lower()
        return _velocity(
            [
                p.received_at
                for p in self.publications
                if p.publication_type == publication_type
                and wallet in (w.lower() for w in p.wallet_addresses)
            ],
            now,
        )

    def get_author_oauth_identities(self, author_public_key: str) -> list[str]:
        return sorted(
            identity for identity, authors in self.oauth_links.items() if author_public_key in authors
        )

    def count_authors_with_oauth_identity(self, oauth_identity: str) -> int:
        return len(self.oauth_links.get(oauth_identity, ()))

    def find_recent_comments(
        self,
        since: int,
        author_public_key: str | None = None,
        exclude_author_public_key: str | None = None,
        limit: int = 100,
    ) -> list[StoredComment]:
        matches = [
            p
            for p in self.publications
            if p.publication_type in _COMMENT_TYPES
            and p.received_at >= since
            and (p.content is not None or p.title is not None)
            and _author_matches(p.author_public_key, author_public_key, exclude_author_public_key)
        ]
        matches.sort(key=lambda p: p.received_at, reverse=True)
        return [
            StoredComment(
                id=p.session_id,
                source="engine",
                author_public_key=p.author_public_key,
                content=p.content,
                title=p.title,
                subplebbit_address=p.subplebbit_address,
                timestamp=p.received_at,
            )
            for p in matches[:limit]
        ]

    def count_links(
        self,
        normalized_link: str,
        since: int,
        author_public_key: str | None = None,
        exclude_author_public_key: str | None = None,
    ) -> LinkStats:
        return _link_stats(
            [
                p.author_public_key
                for p in self.publications
                if p.normalized_link == normalized_link
                and p.received_at >= since
                and _author_matches(p.author_public_key, author_public_key, exclude_author_public_key)
            ]
        )


class InMemoryIndexerStore:
    """IndexerStore over plain Python lists."""

    def __init__(self) -> None:
        self.comments: list[IndexedCommentRecord] = []
        self.modqueue: list[ModqueueRecord] = []

    def add_comment(
        self,
        author_public_key: str,
        subplebbit_address: str,
        timestamp: int,
        fetched_at: int | None = None,
        parent_cid: str | None = None,
        content: str | None = None,
        title: str | None = None,
        link: str | None = None,
        cid: str | None = None,
        **update_fields,
    ) -> IndexedCommentRecord:
        """Index a comment. Extra keyword arguments set CommentUpdate fields
        (post_score, reply_score, updated_at, removed, approved, ban_expires_at, unfetchable)."""
        record = IndexedCommentRecord(
            cid=cid or f"Qm{uuid.uuid4().hex}",
            author_public_key=author_public_key,
            subplebbit_address=subplebbit_address,
            timestamp=timestamp,
            fetched_at=fetched_at if fetched_at is not None else timestamp,
            parent_cid=parent_cid,
            content=content,
            title=title,
            normalized_link=normalize_url(link) if link else None,
            **update_fields,
        )
        self.comments.append(record)
        return record

    def add_modqueue_item(
        self,
        author_public_key: str,
        subplebbit_address: str,
        resolved: bool = False,
        accepted: bool | None = None,
        cid: str | None = None,
    ) -> ModqueueRecord:
        record = ModqueueRecord(
            cid=cid or f"Qm{uuid.uuid4().hex}",
            author_public_key=author_public_key,
            subplebbit_address=subplebbit_address,
            resolved=resolved,
            accepted=accepted,
        )
        self.modqueue.append(record)
        return record

    def _by_author(self, author_public_key: str) -> list[IndexedCommentRecord]:
        return [c for c in self.comments if c.author_public_key == author_public_key]

    # ── IndexerStore ──

    def get_author_first_indexed_timestamp(self, author_public_key: str) -> int | None:
        times = [c.fetched_at for c in self._by_author(author_public_key)]
        return min(times) if times else None

    def get_author_karma_by_subplebbit(self, author_public_key: str) -> dict[str, TimestampedKarma]:
        return _latest_karma(
            [
                (
                    c.subplebbit_address,
                    c.post_score or 0,
                    c.reply_score or 0,
                    c.updated_at if c.updated_at is not None else c.fetched_at,
                )
                for c in self._by_author(author_public_key)
                if c.post_score is not None or c.reply_score is not None
            ]
        )

    def get_author_network_stats(self, author_public_key: str) -> NetworkStats:
        comments = self._by_author(author_public_key)
        resolved = [
            m for m in self.modqueue if m.author_public_key == author_public_key and m.resolved
        ]
        return NetworkStats(
            ban_count=len({c.subplebbit_address for c in comments if c.ban_expires_at is not None}),
            removal_count=sum(1 for c in comments if c.removed),
            disapproval_count=sum(1 for c in comments if c.approved is False),
            unfetchable_count=sum(1 for c in comments if c.unfetchable),
            modqueue_accepted=sum(1 for m in resolved if m.accepted is True),
            modqueue_rejected=sum(1 for m in resolved if m.accepted is False),
            total_indexed_comments=len(comments),
        )

    def get_author_velocity_stats(
        self, author_public_key: str, publication_type: PublicationType, now: int
    ) -> VelocityStats:
        publication_type = PublicationType(publication_type)
        if publication_type not in _COMMENT_TYPES:
            return VelocityStats()
        want_reply = publication_type == PublicationType.REPLY
        return _velocity(
            [
                c.timestamp
                for c in self._by_author(author_public_key)
                if (c.parent_cid is not None) == want_reply
            ],
            now,
        )

    def find_recent_comments(
        self,
        since: int,
        author_public_key: str | None = None,
        exclude_author_public_key: str | None = None,
        limit: int = 100,
    ) -> list[StoredComment]:
        matches = [
            c
            for c in self.comments
            if c.timestamp >= since
            and (c.content is not None or c.title is not None)
            and _author_matches(c.author_public_key, author_public_key, exclude_author_public_key)
        ]
        matches.sort(key=lambda c: c.timestamp, reverse=True)
        return [
            StoredComment(
                id=c.cid,
                source="indexer",
                author_public_key=c.author_public_key,
                content=c.content,
                title=c.title,
                subplebbit_address=c.subplebbit_address,
                timestamp=c.timestamp,
            )
            for c in matches[:limit]
        ]

    def count_links(
        self,
        normalized_link: str,
        since: int,
        author_public_key: str | None = None,
        exclude_author_public_key: str | None = None,
    ) -> LinkStats:
        return _link_stats(
            [
                c.author_public_key
                for c in self.comments
                if c.normalized_link == normalized_link
                and c.timestamp >= since
                and _author_matches(c.author_public_key, author_public_key, exclude_author_public_key)
            ]
        )
