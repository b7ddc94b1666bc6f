"""
Velocity Factor — publication rate of the author's signing key.

Three views of the same history are scored and the worst one wins:
  per-type    the current publication type against its own thresholds
  aggregate   all types summed, against the aggregate thresholds
  cross-type  half of the gap to the riskiest other type is blended in

Rates are per hour: max(last hour, last 24h / 24), so a burst inside a busy
day is not averaged away and a steady daily flood is not hidden by a quiet hour.
"""

from __future__ import annotations

from dataclasses import dataclass

from spamblocker.core.combined_data_service import sum_velocity_stats
from spamblocker.core.risk_context import RiskContext
from spamblocker.models.history_models import VelocityStats
from spamblocker.models.publication_models import TRACKED_VELOCITY_TYPES, PublicationType
from spamblocker.models.risk_models import RiskFactorResult

FACTOR_NAME = "velocityRisk"

CROSS_TYPE_BLEND = 0.5


@dataclass(frozen=True)
class VelocityThresholds:
    """Upper bounds (per hour, inclusive) of the normal, elevated and suspicious bands."""

    normal: float
    elevated: float
    suspicious: float


THRESHOLDS: dict[PublicationType, VelocityThresholds] = {
    PublicationType.POST: VelocityThresholds(normal=2, elevated=5, suspicious=8),
    PublicationType.REPLY: VelocityThresholds(normal=5, elevated=10, suspicious=15),
    PublicationType.VOTE: VelocityThresholds(normal=20, elevated=40, suspicious=60),
    PublicationType.COMMENT_EDIT: VelocityThresholds(normal=3, elevated=5, suspicious=10),
    PublicationType.COMMENT_MODERATION: VelocityThresholds(normal=5, elevated=10, suspicious=15),
}
AGGREGATE_THRESHOLDS = VelocityThresholds(normal=25, elevated=50, suspicious=80)

SCORE_NORMAL = 0.1
SCORE_ELEVATED = 0.4
SCORE_SUSPICIOUS = 0.7
SCORE_BOT_LIKE = 0.95


def score_rate(rate: float, thresholds: VelocityThresholds) -> tuple[float, str]:
    """Bracket an hourly rate into a score and a label."""
    if rate <= thresholds.normal:
        return SCORE_NORMAL, "normal"
    if rate <= thresholds.elevated:
        return SCORE_ELEVATED, "elevated"
    if rate <= thresholds.suspicious:
        return SCORE_SUSPICIOUS, "suspicious"
    return SCORE_BOT_LIKE, "likely automated"


def blend_cross_type(current_score: float, other_score: float) -> float:
    """Pull the current type's score halfway toward a riskier concurrent type."""
    if other_score <= current_score:
        return current_score
    return current_score + (other_score - current_score) * CROSS_TYPE_BLEND


def _format_rate(rate: float) -> str:
    return f"{rate:.0f}/hr" if rate == int(rate) else f"{rate:.1f}/hr"


def calculate(ctx: RiskContext, weight: float) -> RiskFactorResult:
    author_key = ctx.author_public_key
    current_type = ctx.publication_type

    per_type: dict[PublicationType, VelocityStats] = {
        publication_type: ctx.combined_data.get_author_velocity_stats(author_key, publication_type, ctx.now)
        for publication_type in TRACKED_VELOCITY_TYPES
    }
    aggregate_rate = sum_velocity_stats(per_type.values()).effective_rate
    aggregate_score, aggregate_label = score_rate(aggregate_rate, AGGREGATE_THRESHOLDS)
    parts = [f"aggregate {_format_rate(aggregate_rate)} ({aggregate_label})"]

    if current_type not in THRESHOLDS:
        return RiskFactorResult(
            name=FACTOR_NAME,
            score=aggregate_score,
            weight=weight,
            explanation=f"Velocity: {current_type.value} scored on {parts[0]}",
        )

    type_scores = {
        publication_type: score_rate(stats.effective_rate, THRESHOLDS[publication_type])[0]
        for publication_type, stats in per_type.items()
    }
    current_rate = per_type[current_type].effective_rate
    current_score, current_label = score_rate(current_rate, THRESHOLDS[current_type])
    parts.insert(0, f"{current_type.value} {_format_rate(current_rate)} ({current_label})")

    others = {t: s for t, s in type_scores.items() if t != current_type}
    riskiest_other = max(others, key=others.get)
    blended = blend_cross_type(current_score, others[riskiest_other])
    if blended > current_score:
        rate = per_type[riskiest_other].effective_rate
        parts.append(
            f"cross-type penalty from {riskiest_other.value} {_format_rate(rate)} → {blended:.3f}"
        )

    return RiskFactorResult(
        name=FACTOR_NAME,
        score=max(current_score, aggregate_score, blended),
        weight=weight,
        explanation="Velocity: " + ", ".join(parts),
    )
