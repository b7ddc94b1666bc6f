"""
Tests for Karma Factor — count-based net trust across communities.
"""

import pytest

from conftest import NOW, AUTHOR_KEY, SUBPLEBBIT
from spamblocker.core.factors import karma


def _karma_in(engine_store, address, post_score, reply_score=0, received_at=NOW - 100):
    engine_store.add_publication(
        AUTHOR_KEY, "post", address, received_at=received_at, post_score=post_score, reply_score=reply_score
    )


def test_no_data_is_neutral_with_weight_kept(make_context):
    result = karma.calculate(make_context(), 0.12)
    assert result.score == 0.5
    assert result.weight == 0.12


def test_positive_in_five_communities_is_widely_trusted(make_context, engine_store):
    for i in range(5):
        _karma_in(engine_store, f"community{i}.eth", post_score=3)
    assert karma.calculate(make_context(), 0.12).score == 0.1


def test_magnitude_does_not_matter(make_context, engine_store):
    _karma_in(engine_store, "a.eth", post_score=10)
    _karma_in(engine_store, "b.eth", post_score=20)
    _karma_in(engine_store, "hostile.eth", post_score=-100000)
    # +1 +1 -1 = net 1
    assert karma.calculate(make_context(), 0.12).score == 0.35


@pytest.mark.parametrize(
    "net, expected",
    [(7, 0.1), (5, 0.1), (4, 0.2), (3, 0.2), (2, 0.35), (1, 0.35), (0, 0.5), (-1, 0.65), (-2, 0.8), (-3, 0.8), (-4, 0.9)],
)
def test_net_trust_brackets(net, expected):
    assert karma.score_net_trust(net)[0] == expected


def test_zero_karma_communities_do_not_vote(make_context, engine_store):
    _karma_in(engine_store, "a.eth", post_score=2, reply_score=-2)
    _karma_in(engine_store, "b.eth", post_score=0)
    assert karma.calculate(make_context(), 0.12).score == 0.5


def test_current_community_uses_live_snapshot(make_context, engine_store):
    # Stored history says positive here, live publication says negative
    _karma_in(engine_store, SUBPLEBBIT, post_score=50)
    ctx = make_context(post_score=-5, reply_score=0)
    assert karma.calculate(ctx, 0.12).score == 0.65


def test_current_community_excluded_without_live_snapshot(make_context, engine_store):
    _karma_in(engine_store, SUBPLEBBIT, post_score=50)
    assert karma.calculate(make_context(), 0.12).score == 0.5


def test_newest_snapshot_wins_across_sources(make_context, engine_store, indexer_store):
    _karma_in(engine_store, "a.eth", post_score=5, received_at=NOW - 1000)
    indexer_store.add_comment(
        AUTHOR_KEY, "a.eth", timestamp=NOW - 5000, post_score=-3, updated_at=NOW - 10
    )
    assert karma.calculate(make_context(), 0.12).score == 0.65
