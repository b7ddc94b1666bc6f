"""
Tests for the SQLite engine and indexer accessors.
"""

import sqlite3

import pytest

from conftest import NOW, DAY, AUTHOR_KEY, SUBPLEBBIT
from spamblocker.data import engine_store, indexer_store
from spamblocker.data.engine_store import SQLiteEngineStore
from spamblocker.data.indexer_store import SQLiteIndexerStore
from spamblocker.models.publication_models import PublicationType


@pytest.fixture
def engine_db():
    conn = sqlite3.connect(":memory:")
    conn.executescript(engine_store.SCHEMA_SQL)
    rows = [
        ("s1", AUTHOR_KEY, "post", SUBPLEBBIT, "hello world", None, None, None, 3, 1, NOW - 10 * DAY),
        ("s2", AUTHOR_KEY, "reply", SUBPLEBBIT, "a reply", None, None, None, 8, 2, NOW - 1800),
        ("s3", AUTHOR_KEY, "vote", SUBPLEBBIT, None, None, None, None, None, None, NOW - 60),
        ("s4", "other", "post", SUBPLEBBIT, "spam", None, "https://x.com/a", "https://x.com/a", None, None, NOW - 120),
        ("s5", "other", "post", "b.eth", "spam", None, "https://x.com/a", "https://x.com/a", None, None, NOW - 90),
    ]
    conn.executemany("INSERT INTO publications VALUES (?,?,?,?,?,?,?,?,?,?,?)", rows)
    conn.executemany(
        "INSERT INTO publication_wallets VALUES (?,?,?)",
        [("s2", "0xABCDEF", "eth"), ("s3", "0xabcdef", "eth")],
    )
    conn.executemany(
        "INSERT INTO oauth_links VALUES (?,?,?)",
        [(AUTHOR_KEY, "google:1", NOW), ("other", "google:1", NOW), (AUTHOR_KEY, "github:9", NOW)],
    )
    yield SQLiteEngineStore(conn)
    conn.close()


@pytest.fixture
def indexer_db():
    conn = sqlite3.connect(":memory:")
    conn.executescript(indexer_store.SCHEMA_SQL)
    columns = (
        "cid, author_public_key, subplebbit_address, parent_cid, content, timestamp, fetched_at, "
        "post_score, updated_at, removed, approved, ban_expires_at, update_fetched_at, "
        "fetch_failure_count, last_fetch_failed_at"
    )
    rows = [
        ("c1", AUTHOR_KEY, "a.eth", None, "first", NOW - 90 * DAY, NOW - 60 * DAY, 4, NOW - DAY, 0, None, None, NOW - DAY, 0, None),
        ("c2", AUTHOR_KEY, "a.eth", "c0", "reply", NOW - 600, NOW - 500, 2, NOW - 2 * DAY, 1, None, NOW + DAY, NOW - 2 * DAY, 0, None),
        ("c3", AUTHOR_KEY, "b.eth", None, "gone", NOW - 300, NOW - 200, None, None, 0, 0, NOW + DAY, None, 3, NOW - 100),
        ("c4", AUTHOR_KEY, "b.eth", None, "again", NOW - 200, NOW - 100, None, None, 0, None, NOW + DAY, NOW - 50, 1, NOW - 20),
    ]
    conn.executemany(f"INSERT INTO indexed_comments ({columns}) VALUES ({','.join('?' * 15)})", rows)
    conn.executemany(
        "INSERT INTO modqueue_comments VALUES (?,?,?,?,?)",
        [("m1", AUTHOR_KEY, "a.eth", 1, 1), ("m2", AUTHOR_KEY, "a.eth", 1, 0), ("m3", AUTHOR_KEY, "a.eth", 0, None)],
    )
    yield SQLiteIndexerStore(conn)
    conn.close()


# ── Engine store ──


def test_engine_first_seen(engine_db):
    assert engine_db.get_author_first_seen_timestamp(AUTHOR_KEY) == NOW - 10 * DAY
    assert engine_db.get_author_first_seen_timestamp("nobody") is None


def test_engine_karma_keeps_newest_row(engine_db):
    karma = engine_db.get_author_karma_by_subplebbit(AUTHOR_KEY)
    assert karma[SUBPLEBBIT].post_score == 8
    assert karma[SUBPLEBBIT].observed_at == NOW - 1800


def test_engine_velocity(engine_db):
    stats = engine_db.get_author_velocity_stats(AUTHOR_KEY, PublicationType.REPLY, NOW)
    assert (stats.last_hour, stats.last_24_hours) == (1, 1)
    assert engine_db.get_author_velocity_stats(AUTHOR_KEY, PublicationType.POST, NOW).last_24_hours == 0


def test_engine_wallet_velocity_ignores_case(engine_db):
    assert engine_db.get_wallet_velocity_stats("0xabcdef", PublicationType.REPLY, NOW).last_hour == 1
    assert engine_db.get_wallet_velocity_stats("0xAbCdEf", PublicationType.VOTE, NOW).last_hour == 1


def test_engine_oauth(engine_db):
    assert engine_db.get_author_oauth_identities(AUTHOR_KEY) == ["github:9", "google:1"]
    assert engine_db.count_authors_with_oauth_identity("google:1") == 2


def test_engine_recent_comments_and_links(engine_db):
    mine = engine_db.find_recent_comments(NOW - DAY, author_public_key=AUTHOR_KEY)
    assert [c.id for c in mine] == ["s2"]

    others = engine_db.find_recent_comments(NOW - DAY, exclude_author_public_key=AUTHOR_KEY)
    assert [c.id for c in others] == ["s5", "s4"]

    links = engine_db.count_links("https://x.com/a", NOW - DAY, exclude_author_public_key=AUTHOR_KEY)
    assert (links.count, links.unique_authors) == (2, 1)


def test_engine_missing_tables_mean_no_data():
    store = SQLiteEngineStore(sqlite3.connect(":memory:"))
    assert store.get_author_first_seen_timestamp(AUTHOR_KEY) is None
    assert store.get_author_karma_by_subplebbit(AUTHOR_KEY) == {}
    assert store.get_author_velocity_stats(AUTHOR_KEY, PublicationType.POST, NOW).last_hour == 0
    assert store.count_links("https://x.com/a", 0).count == 0


# ── Indexer store ──


def test_indexer_first_seen_uses_fetch_time(indexer_db):
    assert indexer_db.get_author_first_indexed_timestamp(AUTHOR_KEY) == NOW - 60 * DAY


def test_indexer_karma_uses_update_time(indexer_db):
    karma = indexer_db.get_author_karma_by_subplebbit(AUTHOR_KEY)
    # c1 was updated more recently than c2
    assert karma["a.eth"].post_score == 4
    assert karma["a.eth"].observed_at == NOW - DAY
    assert "b.eth" not in karma


def test_indexer_network_stats(indexer_db):
    stats = indexer_db.get_author_network_stats(AUTHOR_KEY)
    assert stats.total_indexed_comments == 4
    assert stats.ban_count == 2
    assert stats.removal_count == 1
    assert stats.disapproval_count == 1
    # c3 never fetched; c4 failed after its last success
    assert stats.unfetchable_count == 2
    assert (stats.modqueue_accepted, stats.modqueue_rejected) == (1, 1)


def test_indexer_velocity_splits_posts_and_replies(indexer_db):
    posts = indexer_db.get_author_velocity_stats(AUTHOR_KEY, PublicationType.POST, NOW)
    replies = indexer_db.get_author_velocity_stats(AUTHOR_KEY, PublicationType.REPLY, NOW)
    assert (posts.last_hour, posts.last_24_hours) == (2, 2)
    assert (replies.last_hour, replies.last_24_hours) == (1, 1)
    assert indexer_db.get_author_velocity_stats(AUTHOR_KEY, PublicationType.VOTE, NOW).last_hour == 0


def test_indexer_recent_comments(indexer_db):
    comments = indexer_db.find_recent_comments(NOW - DAY, author_public_key=AUTHOR_KEY, limit=2)
    assert [c.id for c in comments] == ["c4", "c3"]
    assert all(c.source == "indexer" for c in comments)


def test_indexer_missing_tables_mean_no_data():
    store = SQLiteIndexerStore(sqlite3.connect(":memory:"))
    assert store.get_author_first_indexed_timestamp(AUTHOR_KEY) is None
    assert store.get_author_network_stats(AUTHOR_KEY).total_indexed_comments == 0
    assert store.find_recent_comments(0) == []
