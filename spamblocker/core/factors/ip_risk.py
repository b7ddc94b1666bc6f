"""
IP Risk Factor — anonymisation-service detection.

Only available once the author has loaded the challenge page and the gateway
has looked up their address. Classification is best-effort: residential
addresses can be misreported and VPN detection is imperfect.
"""

from __future__ import annotations

from typing import Literal

from spamblocker.core.risk_context import RiskContext
from spamblocker.models.publication_models import IpIntelligence
from spamblocker.models.risk_models import RiskFactorResult

FACTOR_NAME = "ipRisk"

IpType = Literal["tor", "proxy", "vpn", "datacenter", "residential", "unknown"]

# Checked in this order; the first matching flag decides
IP_TYPE_SCORES: dict[str, tuple[float, str]] = {
    "tor": (0.95, "Tor exit node"),
    "proxy": (0.85, "proxy server"),
    "vpn": (0.75, "VPN"),
    "datacenter": (0.7, "datacenter IP"),
    "residential": (0.2, "residential IP"),
}


def estimate_ip_type(ip_intelligence: IpIntelligence | None) -> IpType:
    if ip_intelligence is None:
        return "unknown"
    if ip_intelligence.is_tor:
        return "tor"
    if ip_intelligence.is_proxy:
        return "proxy"
    if ip_intelligence.is_vpn:
        return "vpn"
    if ip_intelligence.is_datacenter:
        return "datacenter"
    return "residential"


def calculate(ctx: RiskContext, weight: float) -> RiskFactorResult:
    ip_type = estimate_ip_type(ctx.ip_intelligence)
    if ip_type == "unknown":
        return RiskFactorResult(
            name=FACTOR_NAME,
            score=0.5,
            weight=0.0,
            explanation="IP risk: no IP intelligence available",
        )

    score, label = IP_TYPE_SCORES[ip_type]
    country = ctx.ip_intelligence.country_code
    return RiskFactorResult(
        name=FACTOR_NAME,
        score=score,
        weight=weight,
        explanation=f"IP risk: {label}" + (f" ({country})" if country else ""),
    )
