"""
Tests for Velocity and Wallet Velocity Factors.
"""

import pytest

from conftest import NOW, AUTHOR_KEY, SUBPLEBBIT
from spamblocker.core.factors import velocity, wallet_velocity
from spamblocker.core.factors.velocity import THRESHOLDS, blend_cross_type, score_rate
from spamblocker.models.publication_models import PublicationType

WALLET = "0x1234567890abcdef1234567890abcdef12345678"


def _publish(store, kind, count, seconds_ago=60, author=AUTHOR_KEY, wallets=None):
    for _ in range(count):
        store.add_publication(author, kind, SUBPLEBBIT, received_at=NOW - seconds_ago, wallet_addresses=wallets)


def test_quiet_author_is_normal(make_context):
    result = velocity.calculate(make_context(), 0.1)
    assert result.score == 0.1
    assert result.weight == 0.1


def test_cross_type_blend_formula():
    assert blend_cross_type(0.1, 0.95) == pytest.approx(0.525)
    assert blend_cross_type(0.7, 0.4) == 0.7


def test_burst_on_another_type_raises_current(make_context, engine_store):
    # 11 edits in the last hour: bot-like for edits, but only 11/hr aggregate
    _publish(engine_store, "commentEdit", 11)
    result = velocity.calculate(make_context(kind="post"), 0.1)
    assert result.score == pytest.approx(0.525)
    assert "cross-type penalty" in result.explanation


def test_aggregate_dominates_when_higher(make_context, engine_store):
    # 65/hr in total, none above its own type's suspicious band
    _publish(engine_store, "vote", 40)
    _publish(engine_store, "reply", 10)
    _publish(engine_store, "commentModeration", 10)
    _publish(engine_store, "post", 5)
    result = velocity.calculate(make_context(kind="post"), 0.1)
    assert result.score == 0.7
    assert "aggregate" in result.explanation


def test_vote_flood_is_bot_like(make_context, engine_store):
    _publish(engine_store, "vote", 160)
    assert velocity.calculate(make_context(kind="vote"), 0.1).score == 0.95


def test_votes_tolerate_higher_rates_than_posts(make_context, engine_store):
    _publish(engine_store, "vote", 25)
    result = velocity.calculate(make_context(kind="vote"), 0.1)
    assert result.score == 0.4
    assert "vote 25/hr" in result.explanation


def test_daily_average_catches_spread_out_flood(make_context, engine_store):
    # 120 posts spread over the past day, none in the last hour: 5/hr average
    for i in range(120):
        engine_store.add_publication(AUTHOR_KEY, "post", SUBPLEBBIT, received_at=NOW - 3700 - i * 600)
    assert velocity.calculate(make_context(kind="post"), 0.1).score == 0.4


def test_indexer_comments_count_toward_velocity(make_context, engine_store, indexer_store):
    _publish(engine_store, "post", 2)
    for _ in range(2):
        indexer_store.add_comment(AUTHOR_KEY, "other.eth", timestamp=NOW - 120)
    # 2 + 2 = 4 posts/hr: elevated
    assert velocity.calculate(make_context(kind="post"), 0.1).score == 0.4


def test_other_authors_do_not_count(make_context, engine_store):
    _publish(engine_store, "post", 50, author="someone-else")
    assert velocity.calculate(make_context(kind="post"), 0.1).score == 0.1


def test_subplebbit_edit_uses_aggregate_only(make_context, engine_store):
    _publish(engine_store, "vote", 90)
    result = velocity.calculate(make_context(kind="subplebbitEdit"), 0.1)
    assert result.score == 0.95
    assert "subplebbitEdit" in result.explanation


@pytest.mark.parametrize("publication_type", list(THRESHOLDS))
def test_thresholds_monotonic(publication_type):
    t = THRESHOLDS[publication_type]
    assert score_rate(t.normal, t)[0] < score_rate(t.elevated, t)[0] < score_rate(t.suspicious, t)[0]
    assert score_rate(t.suspicious + 1, t)[0] == 0.95


def test_wallet_velocity_without_wallets_opts_out(make_context):
    result = wallet_velocity.calculate(make_context(), 0.08)
    assert result.weight == 0.0


def test_wallet_velocity_counts_across_authors(make_context, engine_store):
    # Same wallet, many signing keys
    for i in range(9):
        _publish(engine_store, "post", 1, author=f"sock-{i}", wallets=[WALLET])
    ctx = make_context(kind="post", wallets={"eth": WALLET})
    result = wallet_velocity.calculate(ctx, 0.08)
    assert result.score == 0.95
    assert result.weight == 0.08
    assert "0x1234...5678" in result.explanation


def test_wallet_velocity_riskiest_wallet_wins(make_context, engine_store):
    other_wallet = "0xabcdef"
    _publish(engine_store, "reply", 12, author="sock", wallets=[other_wallet])
    ctx = make_context(kind="reply", wallets={"eth": WALLET, "sol": other_wallet})
    assert wallet_velocity.calculate(ctx, 0.08).score == 0.7


def test_wallet_velocity_not_tracked_for_subplebbit_edit(make_context):
    ctx = make_context(kind="subplebbitEdit", wallets={"eth": WALLET})
    assert wallet_velocity.calculate(ctx, 0.08).weight == 0.0


def test_wallet_lookup_is_case_insensitive(make_context, engine_store):
    _publish(engine_store, "vote", 70, author="sock", wallets=[WALLET.upper()])
    ctx = make_context(kind="vote", wallets={"eth": WALLET})
    assert wallet_velocity.calculate(ctx, 0.08).score == 0.95


def test_tracked_types_exclude_subplebbit_edit():
    assert PublicationType.SUBPLEBBIT_EDIT not in THRESHOLDS


def test_untracked_types_stay_out_of_aggregate(make_context, engine_store):
    _publish(engine_store, "subplebbitEdit", 90)
    result = velocity.calculate(make_context(kind="post"), 0.1)
    assert result.score == 0.1
    assert "aggregate 0/hr" in result.explanation
