"""
Risk Aggregator — combines factor results into one explainable score.

risk = Σ(score × weight / Σ active weights)

Only factors with weight > 0 take part, so the effective weights of the
active factors always sum to 1.0 however many factors opted out. With no
active factor at all the score is a neutral 0.5.
"""

from __future__ import annotations

from spamblocker.models.risk_models import RiskFactorResult, RiskScoreResult

NEUTRAL_SCORE = 0.5
KEY_FACTOR_COUNT = 3


def risk_level(score: float) -> str:
    if score < 0.3:
        return "Low"
    if score < 0.7:
        return "Moderate"
    return "High"


def compute_risk_score(factors: list[RiskFactorResult]) -> RiskScoreResult:
    """
    Redistribute weights over the active factors and sum the weighted scores.

    Args:
        factors: Raw calculator output, in registry order.

    Returns:
        RiskScoreResult whose factors carry their effective weights.
    """
    total_weight = sum(f.weight for f in factors if f.weight > 0)

    if total_weight <= 0:
        return RiskScoreResult(
            score=NEUTRAL_SCORE,
            factors=[f.model_copy(update={"effective_weight": 0.0}) for f in factors],
            explanation=(
                f"{risk_level(NEUTRAL_SCORE)} risk ({round(NEUTRAL_SCORE * 100)}%). "
                "No risk factors had enough data; using neutral score."
            ),
        )

    weighted: list[RiskFactorResult] = []
    raw_score = 0.0
    for f in factors:
        effective_weight = f.weight / total_weight if f.weight > 0 else 0.0
        raw_score += f.score * effective_weight
        weighted.append(f.model_copy(update={"effective_weight": min(1.0, effective_weight)}))

    score = max(0.0, min(1.0, raw_score))

    # Largest contributions to the final score
    contributors = sorted(
        (f for f in weighted if f.weight > 0),
        key=lambda f: f.score * f.weight,
        reverse=True,
    )[:KEY_FACTOR_COUNT]
    key_factors = ", ".join(f"{f.name}: {round(f.score * 100)}%" for f in contributors)

    return RiskScoreResult(
        score=score,
        factors=weighted,
        explanation=f"{risk_level(score)} risk ({round(score * 100)}%). Key factors: {key_factors}",
    )
