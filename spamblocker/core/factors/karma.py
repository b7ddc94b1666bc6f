"""
Karma Factor — cross-community reputation, counted per community.

Each community where the author has nonzero karma casts one vote: +1 for
positive, -1 for negative, regardless of magnitude. The net count is what gets
scored, so a few hostile communities cannot bury an author with huge negative
numbers (and a few friendly ones cannot inflate them).

The receiving community's stored snapshot is dropped in favour of the live
value carried on the publication.
"""

from __future__ import annotations

from spamblocker.core.risk_context import RiskContext
from spamblocker.models.history_models import KarmaRecord
from spamblocker.models.risk_models import RiskFactorResult

FACTOR_NAME = "karmaScore"

NO_DATA_SCORE = 0.5


def score_net_trust(net: int) -> tuple[float, str]:
    """Map the net trust count to a score and label."""
    if net >= 5:
        return 0.1, "widely trusted"
    if net >= 3:
        return 0.2, "trusted in several communities"
    if net >= 1:
        return 0.35, "positive"
    if net == 0:
        return 0.5, "neutral"
    if net == -1:
        return 0.65, "negative"
    if net >= -3:
        return 0.8, "negative in several communities"
    return 0.9, "widely distrusted"


def collect_karma(ctx: RiskContext) -> dict[str, KarmaRecord]:
    """Historical karma per community with the current community replaced by the live snapshot."""
    karma = ctx.combined_data.get_author_karma_by_subplebbit(ctx.author_public_key)
    current = ctx.publication.subplebbit_address
    karma.pop(current, None)

    live = ctx.author.subplebbit
    if live is not None and (live.post_score is not None or live.reply_score is not None):
        karma[current] = KarmaRecord(post_score=live.post_score or 0, reply_score=live.reply_score or 0)
    return karma


def calculate(ctx: RiskContext, weight: float) -> RiskFactorResult:
    karma = collect_karma(ctx)
    if not karma:
        return RiskFactorResult(
            name=FACTOR_NAME,
            score=NO_DATA_SCORE,
            weight=weight,
            explanation="No karma data in any community",
        )

    positive = sum(1 for record in karma.values() if record.total > 0)
    negative = sum(1 for record in karma.values() if record.total < 0)
    net = positive - negative
    score, label = score_net_trust(net)

    return RiskFactorResult(
        name=FACTOR_NAME,
        score=score,
        weight=weight,
        explanation=(
            f"Karma: net trust {net:+d} ({positive} positive, {negative} negative "
            f"of {len(karma)} communities, {label})"
        ),
    )
