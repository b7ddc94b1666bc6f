"""
Factor Registry — ordered list of every risk factor the engine runs.

Each factor module exposes its name and a pure calculate(ctx, weight) function.
Adding a factor means writing the module and appending one descriptor here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from spamblocker.core.factors import (
    account_age,
    content_risk,
    ip_risk,
    karma,
    network_risk,
    social_verification,
    url_risk,
    velocity,
    wallet_velocity,
)
from spamblocker.core.risk_context import RiskContext
from spamblocker.errors import ConfigurationError
from spamblocker.models.risk_models import RiskFactorResult, WeightConfig

logger = logging.getLogger("spamblocker.engine")

# Type for a factor calculator
FactorCalculateFn = Callable[[RiskContext, float], RiskFactorResult]

# Weight key with no calculator yet
RESERVED_WEIGHT_KEYS = frozenset({"authorReputation"})


@dataclass(frozen=True)
class FactorDescriptor:
    name: str
    calculate: FactorCalculateFn
    default_weight: float = 0.0


FACTOR_REGISTRY: tuple[FactorDescriptor, ...] = (
    FactorDescriptor(account_age.FACTOR_NAME, account_age.calculate),
    FactorDescriptor(karma.FACTOR_NAME, karma.calculate),
    FactorDescriptor(content_risk.FACTOR_NAME, content_risk.calculate),
    FactorDescriptor(url_risk.FACTOR_NAME, url_risk.calculate),
    FactorDescriptor(velocity.FACTOR_NAME, velocity.calculate),
    FactorDescriptor(wallet_velocity.FACTOR_NAME, wallet_velocity.calculate),
    FactorDescriptor(ip_risk.FACTOR_NAME, ip_risk.calculate),
    FactorDescriptor(network_risk.BAN_HISTORY, network_risk.calculate_ban_history),
    FactorDescriptor(network_risk.MODQUEUE_REJECTION_RATE, network_risk.calculate_modqueue_rejection_rate),
    FactorDescriptor(network_risk.NETWORK_REMOVAL_RATE, network_risk.calculate_network_removal_rate),
    FactorDescriptor(social_verification.FACTOR_NAME, social_verification.calculate),
)

KNOWN_WEIGHT_KEYS = frozenset(d.name for d in FACTOR_REGISTRY) | RESERVED_WEIGHT_KEYS


def resolve_weights(weights: WeightConfig | Mapping[str, Any]) -> dict[str, float]:
    """Weights keyed by factor name, validated.

    Accepts a WeightConfig or a mapping keyed by factor name (camelCase) or
    field name (snake_case). Unknown keys and negative weights are
    configuration errors.
    """
    if isinstance(weights, WeightConfig):
        resolved = weights.as_factor_weights()
    else:
        aliases = {name: field.alias for name, field in WeightConfig.model_fields.items()}
        resolved = {}
        for key, value in weights.items():
            factor_name = aliases.get(key, key)
            if factor_name not in KNOWN_WEIGHT_KEYS:
                raise ConfigurationError(f"Unknown risk factor weight: {key!r}")
            try:
                resolved[factor_name] = float(value)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Weight for {key!r} is not a number: {value!r}") from e

    negative = sorted(name for name, value in resolved.items() if value < 0)
    if negative:
        raise ConfigurationError(f"Risk factor weights must be non-negative: {negative}")

    for reserved in RESERVED_WEIGHT_KEYS:
        if resolved.get(reserved, 0.0) > 0:
            logger.debug(f"Weight for {reserved} ignored: no calculator is registered for it")

    return resolved
