"""
Challenge Tier Mapper — turns a risk score into an enforcement tier.

Tiers partition [0, 1] into half-open ranges:
  score < auto_accept          → auto_accept        (no challenge)
  score < captcha_only         → captcha_only
  score < auto_reject          → captcha_and_oauth
  otherwise                    → auto_reject

Thresholds must be strictly increasing; anything else is a configuration error.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from spamblocker.errors import ConfigurationError


class ChallengeTier(str, Enum):
    AUTO_ACCEPT = "auto_accept"
    CAPTCHA_ONLY = "captcha_only"
    CAPTCHA_AND_OAUTH = "captcha_and_oauth"
    AUTO_REJECT = "auto_reject"


class ChallengeTierConfig(BaseModel):
    """Tier thresholds on the 0.0-1.0 risk scale (higher = riskier)."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    auto_accept_threshold: float = Field(default=0.2, alias="autoAcceptThreshold")
    captcha_only_threshold: float = Field(default=0.4, alias="captchaOnlyThreshold")
    auto_reject_threshold: float = Field(default=0.8, alias="autoRejectThreshold")


DEFAULT_CHALLENGE_TIER_CONFIG = ChallengeTierConfig()


def validate_tier_config(config: ChallengeTierConfig) -> ChallengeTierConfig:
    """Raise ConfigurationError unless auto_accept < captcha_only < auto_reject."""
    if config.auto_accept_threshold >= config.captcha_only_threshold:
        raise ConfigurationError(
            "auto_accept_threshold must be less than captcha_only_threshold "
            f"({config.auto_accept_threshold} >= {config.captcha_only_threshold})"
        )
    if config.captcha_only_threshold >= config.auto_reject_threshold:
        raise ConfigurationError(
            "captcha_only_threshold must be less than auto_reject_threshold "
            f"({config.captcha_only_threshold} >= {config.auto_reject_threshold})"
        )
    return config


class ChallengeTierMapper:
    """Validated, reusable score → tier classifier."""

    def __init__(self, config: ChallengeTierConfig | None = None) -> None:
        self.config = validate_tier_config(config or DEFAULT_CHALLENGE_TIER_CONFIG)

    def classify(self, risk_score: float) -> ChallengeTier:
        cfg = self.config
        if risk_score < cfg.auto_accept_threshold:
            return ChallengeTier.AUTO_ACCEPT
        if risk_score < cfg.captcha_only_threshold:
            return ChallengeTier.CAPTCHA_ONLY
        if risk_score < cfg.auto_reject_threshold:
            return ChallengeTier.CAPTCHA_AND_OAUTH
        return ChallengeTier.AUTO_REJECT


def determine_challenge_tier(
    risk_score: float,
    config: ChallengeTierConfig | dict[str, Any] | None = None,
) -> ChallengeTier:
    """Functional form of the mapper.

    A dict is treated as a partial override merged over the defaults, so callers
    deriving thresholds from deployment options only need to pass what they change.
    """
    if isinstance(config, dict):
        aliases = {f.alias: name for name, f in ChallengeTierConfig.model_fields.items()}
        overrides = {}
        for key, value in config.items():
            try:
                overrides[aliases.get(key, key)] = float(value)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Challenge tier setting {key!r} is not a number: {value!r}") from e
        unknown = set(overrides) - set(ChallengeTierConfig.model_fields)
        if unknown:
            raise ConfigurationError(f"Unknown challenge tier settings: {sorted(unknown)}")
        config = DEFAULT_CHALLENGE_TIER_CONFIG.model_copy(update=overrides)
    return ChallengeTierMapper(config).classify(risk_score)
