"""
Wallet Velocity Factor — publication rate per linked wallet.

Wallet ownership is verified upstream, so a wallet shared between many signing
keys is a reliable coordination signal. Every wallet on the author is checked
and the riskiest one decides the score.
"""

from __future__ import annotations

from spamblocker.core.factors.velocity import THRESHOLDS, score_rate
from spamblocker.core.publication import get_wallet_addresses, shorten_address
from spamblocker.core.risk_context import RiskContext
from spamblocker.models.risk_models import RiskFactorResult

FACTOR_NAME = "walletVelocity"


def calculate(ctx: RiskContext, weight: float) -> RiskFactorResult:
    wallets = get_wallet_addresses(ctx.author)
    if not wallets:
        return RiskFactorResult(
            name=FACTOR_NAME,
            score=0.0,
            weight=0.0,
            explanation="Wallet velocity: no wallets linked to author",
        )

    publication_type = ctx.publication_type
    thresholds = THRESHOLDS.get(publication_type)
    if thresholds is None:
        return RiskFactorResult(
            name=FACTOR_NAME,
            score=0.0,
            weight=0.0,
            explanation=f"Wallet velocity: not tracked for {publication_type.value}",
        )

    worst = None
    for wallet in wallets:
        stats = ctx.combined_data.get_wallet_velocity_stats(wallet.address, publication_type, ctx.now)
        score, level = score_rate(stats.effective_rate, thresholds)
        if worst is None or score > worst[0]:
            worst = (score, level, stats, wallet)

    score, level, stats, wallet = worst
    return RiskFactorResult(
        name=FACTOR_NAME,
        score=score,
        weight=weight,
        explanation=(
            f"Wallet velocity ({publication_type.value}): {stats.last_hour}/hr, "
            f"{stats.last_24_hours}/24h from {shorten_address(wallet.address)} "
            f"on {wallet.chain_ticker} ({level})"
        ),
    )
