"""
Network Risk Factors — moderation outcomes across every indexed community.

Three factors share one indexer lookup shape:
  networkBanHistory       communities that have banned the author
  modqueueRejectionRate   rejected / resolved moderation-queue submissions
  networkRemovalRate      removed, disapproved or purged / all indexed comments

Each opts out (weight 0) when the indexer has nothing to measure against,
since "no bans" only means something for an author who has posted somewhere.
"""

from __future__ import annotations

from spamblocker.core.risk_context import RiskContext
from spamblocker.models.risk_models import RiskFactorResult

BAN_HISTORY = "networkBanHistory"
MODQUEUE_REJECTION_RATE = "modqueueRejectionRate"
NETWORK_REMOVAL_RATE = "networkRemovalRate"

# (maximum rate, inclusive) → score
MODQUEUE_RATE_BRACKETS: tuple[tuple[float, float], ...] = ((0.1, 0.1), (0.3, 0.3), (0.5, 0.5), (0.7, 0.7))
REMOVAL_RATE_BRACKETS: tuple[tuple[float, float], ...] = ((0.05, 0.1), (0.15, 0.3), (0.3, 0.5), (0.5, 0.7))
HIGHEST_RATE_SCORE = 0.9


def score_ban_count(ban_count: int) -> float:
    if ban_count <= 0:
        return 0.0
    if ban_count == 1:
        return 0.4
    if ban_count == 2:
        return 0.6
    return 0.85


def score_rate(rate: float, brackets: tuple[tuple[float, float], ...]) -> float:
    for max_rate, score in brackets:
        if rate <= max_rate:
            return score
    return HIGHEST_RATE_SCORE


def _rate_label(score: float) -> str:
    if score >= 0.9:
        return " - high risk"
    if score >= 0.7:
        return " - elevated risk"
    return ""


def calculate_ban_history(ctx: RiskContext, weight: float) -> RiskFactorResult:
    stats = ctx.combined_data.get_author_network_stats(ctx.author_public_key)
    if stats.total_indexed_comments == 0:
        return RiskFactorResult(
            name=BAN_HISTORY,
            score=0.0,
            weight=0.0,
            explanation="No indexed posting history to evaluate bans",
        )

    if stats.ban_count == 0:
        explanation = f"No bans across {stats.total_indexed_comments} indexed comments"
    else:
        explanation = f"Banned in {stats.ban_count} indexed communit{'y' if stats.ban_count == 1 else 'ies'}"
    return RiskFactorResult(
        name=BAN_HISTORY,
        score=score_ban_count(stats.ban_count),
        weight=weight,
        explanation=explanation,
    )


def calculate_modqueue_rejection_rate(ctx: RiskContext, weight: float) -> RiskFactorResult:
    stats = ctx.combined_data.get_author_network_stats(ctx.author_public_key)
    resolved = stats.modqueue_accepted + stats.modqueue_rejected
    if resolved == 0:
        return RiskFactorResult(
            name=MODQUEUE_REJECTION_RATE,
            score=0.5,
            weight=0.0,
            explanation="No resolved modqueue submissions",
        )

    rate = stats.modqueue_rejected / resolved
    score = score_rate(rate, MODQUEUE_RATE_BRACKETS)
    return RiskFactorResult(
        name=MODQUEUE_REJECTION_RATE,
        score=score,
        weight=weight,
        explanation=(
            f"ModQueue: {round(rate * 100)}% rejection rate{_rate_label(score)} "
            f"({stats.modqueue_rejected}/{resolved})"
        ),
    )


def calculate_network_removal_rate(ctx: RiskContext, weight: float) -> RiskFactorResult:
    stats = ctx.combined_data.get_author_network_stats(ctx.author_public_key)
    total = stats.total_indexed_comments
    if total == 0:
        return RiskFactorResult(
            name=NETWORK_REMOVAL_RATE,
            score=0.5,
            weight=0.0,
            explanation="No indexed comments for this author",
        )

    removed = stats.removal_count + stats.disapproval_count + stats.unfetchable_count
    rate = min(1.0, removed / total)
    score = score_rate(rate, REMOVAL_RATE_BRACKETS)
    return RiskFactorResult(
        name=NETWORK_REMOVAL_RATE,
        score=score,
        weight=weight,
        explanation=(
            f"Network removal rate: {round(rate * 100)}%{_rate_label(score)} "
            f"({removed}/{total} comments)"
        ),
    )
