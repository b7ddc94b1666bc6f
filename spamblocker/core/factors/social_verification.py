"""
Social Verification Factor — credibility of OAuth accounts linked to the author.

Each linked identity ("provider:userId") is worth its provider's base
credibility, discounted by 1/sqrt(n) when n local authors share it (one
account farmed across many keys is worth less each time). Identities are then
combined highest first, each additional one contributing 70% of the previous
multiplier, and capped. Credibility c maps to risk through

    score = clamp(1 - 0.75c + 0.15c², 0, 1)

    c     score
    0     1.00
    0.5   0.66
    1.0   0.40
    1.7   0.15
    2.5   0.03
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from spamblocker.core.risk_context import RiskContext
from spamblocker.models.risk_models import RiskFactorResult

FACTOR_NAME = "socialVerification"

MULTIPLE_SERVICE_DECAY = 0.7
MAX_COMBINED_CREDIBILITY = 2.5


@dataclass
class IdentityCredibility:
    identity: str
    provider: str
    base_credibility: float
    author_count: int

    @property
    def effective_credibility(self) -> float:
        return self.base_credibility / math.sqrt(max(self.author_count, 1))


def extract_provider(oauth_identity: str) -> str:
    provider, sep, _ = oauth_identity.partition(":")
    return (provider if sep and provider else oauth_identity).lower()


def combine_credibility(identities: list[IdentityCredibility]) -> float:
    """Decayed sum of effective credibilities, highest first, capped."""
    combined = 0.0
    multiplier = 1.0
    for item in sorted(identities, key=lambda i: i.effective_credibility, reverse=True):
        combined += item.effective_credibility * multiplier
        multiplier *= MULTIPLE_SERVICE_DECAY
    return min(combined, MAX_COMBINED_CREDIBILITY)


def credibility_to_score(credibility: float) -> float:
    score = 1 - 0.75 * credibility + 0.15 * credibility * credibility
    return max(0.0, min(1.0, score))


def calculate(ctx: RiskContext, weight: float) -> RiskFactorResult:
    if not ctx.enabled_oauth_providers:
        return RiskFactorResult(
            name=FACTOR_NAME,
            score=0.5,
            weight=0.0,
            explanation="OAuth verification disabled on server",
        )

    oauth_identities = ctx.combined_data.get_author_oauth_identities(ctx.author_public_key)
    if not oauth_identities:
        return RiskFactorResult(
            name=FACTOR_NAME,
            score=1.0,
            weight=weight,
            explanation="No OAuth verification (OAuth enabled but author unverified)",
        )

    credibility_table = {k.lower(): v for k, v in ctx.provider_credibility.items()}
    identities = []
    for identity in oauth_identities:
        provider = extract_provider(identity)
        identities.append(
            IdentityCredibility(
                identity=identity,
                provider=provider,
                base_credibility=credibility_table.get(provider, ctx.unknown_provider_credibility),
                author_count=ctx.combined_data.count_authors_with_oauth_identity(identity),
            )
        )

    combined = combine_credibility(identities)
    providers = ", ".join(
        item.provider + (f" (shared by {item.author_count} authors)" if item.author_count > 1 else "")
        for item in sorted(identities, key=lambda i: i.effective_credibility, reverse=True)
    )
    if len(identities) == 1:
        explanation = f"Verified via {providers} (credibility: {combined:.2f})"
    else:
        explanation = (
            f"Verified via {len(identities)} providers: {providers} "
            f"(combined credibility: {combined:.2f})"
        )

    return RiskFactorResult(
        name=FACTOR_NAME,
        score=credibility_to_score(combined),
        weight=weight,
        explanation=explanation,
    )
