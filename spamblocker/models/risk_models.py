"""
Risk Scoring Data Models — factor results, final score, and weight presets.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from spamblocker.core.challenge_tier import ChallengeTier


class RiskFactorResult(BaseModel):
    """Output of one factor calculator.

    A weight of 0 means "insufficient data, opted out", not "zero risk".
    """

    name: str
    score: float = Field(..., ge=0.0, le=1.0)
    weight: float = Field(..., ge=0.0)
    effective_weight: float = Field(
        default=0.0, ge=0.0, le=1.0, description="Share of the decision after redistribution"
    )
    explanation: str = ""

    @property
    def is_active(self) -> bool:
        return self.weight > 0


class RiskScoreResult(BaseModel):
    """Final weighted risk score with its factor breakdown."""

    score: float = Field(..., ge=0.0, le=1.0)
    factors: list[RiskFactorResult] = Field(default_factory=list)
    explanation: str = ""
    formula: str = Field(
        default="risk = Σ(score × weight / Σ active weights)",
        description="Human-readable formula used",
    )


class RiskAssessment(BaseModel):
    """Score plus the enforcement tier it maps to."""

    evaluation_id: str
    result: RiskScoreResult
    tier: ChallengeTier


class WeightConfig(BaseModel):
    """Base weight per factor. Presets sum to 1.0; only relative proportions matter."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    # Reserved: no calculator reads it yet
    author_reputation: float = Field(default=0.0, alias="authorReputation")
    account_age: float = Field(default=0.0, alias="accountAge")
    karma_score: float = Field(default=0.0, alias="karmaScore")
    comment_content_title_risk: float = Field(default=0.0, alias="commentContentTitleRisk")
    comment_url_risk: float = Field(default=0.0, alias="commentUrlRisk")
    velocity_risk: float = Field(default=0.0, alias="velocityRisk")
    wallet_velocity: float = Field(default=0.0, alias="walletVelocity")
    ip_risk: float = Field(default=0.0, alias="ipRisk")
    network_ban_history: float = Field(default=0.0, alias="networkBanHistory")
    modqueue_rejection_rate: float = Field(default=0.0, alias="modqueueRejectionRate")
    network_removal_rate: float = Field(default=0.0, alias="networkRemovalRate")
    social_verification: float = Field(default=0.0, alias="socialVerification")

    def as_factor_weights(self) -> dict[str, float]:
        """Weights keyed by factor name (the camelCase alias)."""
        return self.model_dump(by_alias=True)


# Used when no IP intelligence is available. Total: 1.0
WEIGHTS_NO_IP = WeightConfig(
    author_reputation=0.0,
    account_age=0.14,
    karma_score=0.12,
    comment_content_title_risk=0.12,
    comment_url_risk=0.10,
    velocity_risk=0.10,
    wallet_velocity=0.08,
    ip_risk=0.0,
    network_ban_history=0.10,
    modqueue_rejection_rate=0.06,
    network_removal_rate=0.08,
    social_verification=0.10,
)

# Used when IP intelligence is available. Total: 1.0
WEIGHTS_WITH_IP = WeightConfig(
    author_reputation=0.0,
    account_age=0.10,
    karma_score=0.08,
    comment_content_title_risk=0.10,
    comment_url_risk=0.08,
    velocity_risk=0.08,
    wallet_velocity=0.07,
    ip_risk=0.20,
    network_ban_history=0.09,
    modqueue_rejection_rate=0.05,
    network_removal_rate=0.07,
    social_verification=0.08,
)
