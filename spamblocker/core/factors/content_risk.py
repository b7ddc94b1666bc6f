"""
Comment Content/Title Risk Factor — textual spam heuristics for posts and replies.

Additive scoring from a 0.3 baseline. Static checks look at the comment text
itself (URL count, shouting, repetition); history checks compare it with comments
seen in the similarity window, from the same author (self-spam) and from
everyone else (coordinated campaigns). The total is clamped to [0, 1].
"""

from __future__ import annotations

from dataclasses import dataclass

from spamblocker.core.publication import is_comment
from spamblocker.core.risk_context import RiskContext
from spamblocker.core.text_utils import has_excessive_caps, has_repetitive_patterns, text_similarity
from spamblocker.core.url_utils import count_urls
from spamblocker.models.history_models import StoredComment
from spamblocker.models.risk_models import RiskFactorResult

FACTOR_NAME = "commentContentTitleRisk"

BASELINE_SCORE = 0.3

EXACT_MATCH_SIMILARITY = 0.95
SIMILAR_MATCH_SIMILARITY = 0.6

MIN_CONTENT_LENGTH = 10
MIN_TITLE_LENGTH = 5

# Candidate comments fetched per source for similarity checks
CANDIDATE_LIMIT = 200


@dataclass
class MatchCounts:
    exact: int = 0
    similar: int = 0
    authors: set[str] | None = None


def count_matches(text: str, candidates: list[StoredComment], field: str) -> MatchCounts:
    """Count exact and near-duplicate matches of text in the given field of candidates."""
    counts = MatchCounts(authors=set())
    for candidate in candidates:
        other = getattr(candidate, field)
        if not other:
            continue
        similarity = text_similarity(text, other)
        if similarity >= EXACT_MATCH_SIMILARITY:
            counts.exact += 1
        elif similarity >= SIMILAR_MATCH_SIMILARITY:
            counts.similar += 1
        else:
            continue
        counts.authors.add(candidate.author_public_key)
    return counts


def _stepped(count: int, steps: tuple[tuple[int, float], ...]) -> float:
    """First increment whose minimum count is met; steps are ordered high to low."""
    for minimum, increment in steps:
        if count >= minimum:
            return increment
    return 0.0


def _score_content_history(
    content: str, own: list[StoredComment], others: list[StoredComment], issues: list[str]
) -> float:
    added = 0.0

    mine = count_matches(content, own, "content")
    increment = _stepped(mine.exact, ((5, 0.35), (3, 0.25), (1, 0.15)))
    if increment:
        added += increment
        issues.append(f"{mine.exact} duplicate comment(s) from same author")
    increment = _stepped(mine.similar, ((3, 0.2), (1, 0.1)))
    if increment:
        added += increment
        issues.append(f"{mine.similar} similar comment(s) from same author")

    theirs = count_matches(content, others, "content")
    increment = _stepped(theirs.exact, ((5, 0.4), (2, 0.25), (1, 0.1)))
    if increment:
        added += increment
        issues.append(
            f"{theirs.exact} identical comment(s) from {len(theirs.authors)} other author(s)"
        )
    increment = _stepped(theirs.similar, ((3, 0.2), (1, 0.08)))
    if increment:
        added += increment
        issues.append(f"{theirs.similar} similar comment(s) from other authors")

    return added


def _score_title_history(
    title: str, own: list[StoredComment], others: list[StoredComment], issues: list[str]
) -> float:
    added = 0.0

    mine = count_matches(title, own, "title")
    increment = _stepped(mine.exact, ((3, 0.3), (1, 0.15)))
    if increment:
        added += increment
        issues.append(f"{mine.exact} post(s) with same title from author")
    if mine.similar >= 2:
        added += 0.15
        issues.append(f"{mine.similar} posts with similar title from author")

    theirs = count_matches(title, others, "title")
    increment = _stepped(theirs.exact, ((3, 0.25), (1, 0.1)))
    if increment:
        added += increment
        issues.append(f"{theirs.exact} post(s) with same title from other authors")
    if theirs.similar >= 2:
        added += 0.1
        issues.append(f"{theirs.similar} similar titles from other authors")

    return added


def _score_static(content: str, issues: list[str]) -> float:
    added = 0.0

    url_count = count_urls(content)
    increment = _stepped(url_count, ((5, 0.2), (3, 0.1)))
    if increment:
        added += increment
        issues.append(f"contains {url_count} URLs")

    if has_excessive_caps(content):
        added += 0.1
        issues.append("excessive capitalization")

    if has_repetitive_patterns(content):
        added += 0.15
        issues.append("repetitive patterns")

    return added


def calculate(ctx: RiskContext, weight: float) -> RiskFactorResult:
    if not is_comment(ctx.publication_type):
        return RiskFactorResult(
            name=FACTOR_NAME,
            score=0.5,
            weight=0.0,
            explanation="Content/title analysis: not applicable to non-comment publications",
        )

    comment = ctx.publication
    content = comment.content or ""
    title = comment.title or ""
    issues: list[str] = []
    score = BASELINE_SCORE

    check_content = len(content.strip()) > MIN_CONTENT_LENGTH
    check_title = len(title.strip()) > MIN_TITLE_LENGTH
    if check_content or check_title:
        author_key = ctx.author_public_key
        since = ctx.similarity_since
        own = ctx.combined_data.find_recent_comments_by_author(author_key, since, CANDIDATE_LIMIT)
        others = ctx.combined_data.find_recent_comments_by_others(author_key, since, CANDIDATE_LIMIT)
        if check_content:
            score += _score_content_history(content, own, others, issues)
        if check_title:
            score += _score_title_history(title, own, others, issues)

    if content:
        score += _score_static(content, issues)

    score = max(0.0, min(1.0, score))
    explanation = (
        f"Content/title analysis: {', '.join(issues)}"
        if issues
        else "Content/title analysis: no suspicious patterns detected"
    )
    return RiskFactorResult(name=FACTOR_NAME, score=score, weight=weight, explanation=explanation)
