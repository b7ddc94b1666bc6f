"""
Account Age Factor — older identities are less likely to be throwaways.

Age is measured from the earliest time either history source saw the author's
signing key. The community-claimed firstCommentTimestamp is not used: it is
scoped to one community and can be set by that community's owner.
"""

from __future__ import annotations

from spamblocker.core.risk_context import RiskContext
from spamblocker.models.risk_models import RiskFactorResult

FACTOR_NAME = "accountAge"

DAY_SECONDS = 24 * 60 * 60

# (minimum age in days, exclusive) → score, label
AGE_BRACKETS: tuple[tuple[float, float, str], ...] = (
    (365, 0.1, "very established"),
    (90, 0.2, "established"),
    (30, 0.35, "moderately established"),
    (7, 0.5, "maturing"),
    (1, 0.7, "new"),
)
VERY_NEW_SCORE = 0.85
NO_HISTORY_SCORE = 0.9


def calculate(ctx: RiskContext, weight: float) -> RiskFactorResult:
    """Score the author's age across engine and indexer history."""
    first_seen = ctx.combined_data.get_author_earliest_timestamp(ctx.author_public_key)

    if first_seen is None:
        return RiskFactorResult(
            name=FACTOR_NAME,
            score=NO_HISTORY_SCORE,
            weight=weight,
            explanation="No prior activity seen from this author",
        )

    age_days = max(0, ctx.now - first_seen) / DAY_SECONDS
    for min_days, score, label in AGE_BRACKETS:
        if age_days > min_days:
            return RiskFactorResult(
                name=FACTOR_NAME,
                score=score,
                weight=weight,
                explanation=f"First seen {int(age_days)} days ago ({label})",
            )

    return RiskFactorResult(
        name=FACTOR_NAME,
        score=VERY_NEW_SCORE,
        weight=weight,
        explanation="First seen less than 1 day ago (very new)",
    )
