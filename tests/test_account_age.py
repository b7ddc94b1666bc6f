"""
Tests for Account Age Factor — server-observed history only.
"""

import pytest

from conftest import DAY, NOW, AUTHOR_KEY, SUBPLEBBIT
from spamblocker.core.factors import account_age
from spamblocker.models.publication_models import ChallengeRequest


def test_no_history_scores_as_brand_new(make_context):
    result = account_age.calculate(make_context(), 0.14)
    assert result.score == 0.9
    assert result.weight == 0.14


@pytest.mark.parametrize(
    "age_days, expected",
    [
        (400, 0.1),
        (100, 0.2),
        (45, 0.35),
        (10, 0.5),
        (3, 0.7),
        (0.5, 0.85),
    ],
)
def test_age_brackets(make_context, engine_store, age_days, expected):
    engine_store.add_publication(AUTHOR_KEY, "post", SUBPLEBBIT, received_at=int(NOW - age_days * DAY))
    assert account_age.calculate(make_context(), 0.14).score == expected


def test_score_never_increases_with_age(make_context, engine_store):
    scores = []
    for age_days in (0, 1.5, 8, 31, 91, 366, 1000):
        engine_store.publications.clear()
        engine_store.add_publication(AUTHOR_KEY, "post", SUBPLEBBIT, received_at=int(NOW - age_days * DAY))
        scores.append(account_age.calculate(make_context(), 1.0).score)
    assert scores == sorted(scores, reverse=True)


def test_oldest_source_wins(make_context, engine_store, indexer_store):
    engine_store.add_publication(AUTHOR_KEY, "post", SUBPLEBBIT, received_at=NOW - 2 * DAY)
    indexer_store.add_comment(AUTHOR_KEY, "other.eth", timestamp=NOW - 400 * DAY, fetched_at=NOW - 200 * DAY)
    # Indexer fetch time (200 days), not the author-claimed timestamp (400 days)
    assert account_age.calculate(make_context(), 0.14).score == 0.2


def test_claimed_first_comment_timestamp_is_ignored(make_context, make_request):
    payload = make_request().comment.model_dump(by_alias=True)
    payload["author"]["subplebbit"] = {"firstCommentTimestamp": NOW - 1000 * DAY}
    forged = ChallengeRequest.model_validate({"comment": payload})

    assert forged.comment.author.subplebbit.first_comment_timestamp == NOW - 1000 * DAY
    assert account_age.calculate(make_context(forged), 0.14).score == 0.9


def test_future_timestamp_treated_as_new(make_context, engine_store):
    engine_store.add_publication(AUTHOR_KEY, "post", SUBPLEBBIT, received_at=NOW + DAY)
    assert account_age.calculate(make_context(), 0.14).score == 0.85
