"""
Risk Engine — orchestrates one risk assessment per challenge request.

Pipeline:
1. Build the per-request RiskContext (publication, clock, history, IP intel)
2. Pick the weight preset (IP-available or not) unless weights are given
3. Run every registered factor calculator
4. Redistribute weights over active factors and aggregate
5. Map the score to a challenge tier
6. Append an audit record (if configured)

The engine holds no per-request state and never writes to the history stores.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Mapping

from spamblocker.audit.logger import AuditLogger
from spamblocker.config import Settings
from spamblocker.config import settings as default_settings
from spamblocker.core.aggregator import compute_risk_score
from spamblocker.core.challenge_tier import ChallengeTierConfig, ChallengeTierMapper
from spamblocker.core.combined_data_service import CombinedDataService
from spamblocker.core.factor_registry import FACTOR_REGISTRY, FactorDescriptor, resolve_weights
from spamblocker.core.publication import get_publication_type
from spamblocker.core.risk_context import RiskContext
from spamblocker.data.engine_store import SQLiteEngineStore
from spamblocker.data.indexer_store import SQLiteIndexerStore
from spamblocker.errors import MalformedPublicationError
from spamblocker.models.audit_models import AuditEntry, FactorAudit
from spamblocker.models.publication_models import ChallengeRequest, IpIntelligence
from spamblocker.models.risk_models import (
    WEIGHTS_NO_IP,
    WEIGHTS_WITH_IP,
    RiskAssessment,
    RiskFactorResult,
    RiskScoreResult,
    WeightConfig,
)

logger = logging.getLogger("spamblocker.engine")

Weights = WeightConfig | Mapping[str, Any]


class RiskEngine:
    """Scores challenge requests against combined engine and indexer history."""

    def __init__(
        self,
        combined_data: CombinedDataService,
        settings: Settings | None = None,
        tier_config: ChallengeTierConfig | None = None,
        audit_logger: AuditLogger | None = None,
        factors: tuple[FactorDescriptor, ...] = FACTOR_REGISTRY,
    ) -> None:
        self.settings = settings or default_settings
        self.combined_data = combined_data
        self.factors = factors
        # Raises ConfigurationError on bad thresholds before any request is served
        self.tier_mapper = ChallengeTierMapper(tier_config or self.settings.tier_config())

        if audit_logger is None and self.settings.audit_log_path:
            audit_logger = AuditLogger(self.settings.audit_log_path)
        self.audit_logger = audit_logger

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> RiskEngine:
        """Engine over read-only SQLite stores named by the settings (either may be unset)."""
        settings = settings or default_settings
        engine_store = SQLiteEngineStore.from_path(settings.engine_db_path) if settings.engine_db_path else None
        indexer_store = SQLiteIndexerStore.from_path(settings.indexer_db_path) if settings.indexer_db_path else None
        if engine_store is None and indexer_store is None:
            logger.warning("No history stores configured; scoring will rely on the publication alone")
        return cls(CombinedDataService(engine_store, indexer_store), settings=settings)

    def build_context(
        self,
        challenge_request: ChallengeRequest,
        now: int | None = None,
        ip_intelligence: IpIntelligence | None = None,
    ) -> RiskContext:
        # Fail fast on a request without a recognisable publication
        get_publication_type(challenge_request)
        return RiskContext(
            challenge_request=challenge_request,
            now=int(time.time()) if now is None else int(now),
            combined_data=self.combined_data,
            ip_intelligence=ip_intelligence,
            enabled_oauth_providers=tuple(self.settings.oauth_enabled_providers),
            provider_credibility=dict(self.settings.oauth_provider_credibility),
            unknown_provider_credibility=self.settings.oauth_unknown_provider_credibility,
            similarity_window_seconds=self.settings.similarity_window_seconds,
        )

    def _run_factor(self, descriptor: FactorDescriptor, ctx: RiskContext, weight: float) -> RiskFactorResult:
        try:
            return descriptor.calculate(ctx, weight)
        except MalformedPublicationError:
            raise
        except Exception as e:
            # A broken factor opts out instead of failing the whole evaluation
            logger.error(f"Factor {descriptor.name} failed: {e}", exc_info=True)
            return RiskFactorResult(
                name=descriptor.name,
                score=0.5,
                weight=0.0,
                explanation=f"Factor '{descriptor.name}' internal error: {type(e).__name__}",
            )

    def evaluate(self, ctx: RiskContext, weights: Weights | None = None) -> RiskScoreResult:
        """
        Score one request.

        Args:
            ctx: Context from build_context().
            weights: Base weights. Defaults to WEIGHTS_WITH_IP when IP
                intelligence is present, WEIGHTS_NO_IP otherwise.

        Returns:
            RiskScoreResult with every factor's score, weight and effective weight.
        """
        if weights is None:
            weights = WEIGHTS_WITH_IP if ctx.has_ip_info else WEIGHTS_NO_IP
        resolved = resolve_weights(weights)

        factors: list[RiskFactorResult] = []
        for descriptor in self.factors:
            weight = resolved.get(descriptor.name, descriptor.default_weight)
            result = self._run_factor(descriptor, ctx, weight)
            logger.debug(
                f"{result.name}: score={result.score:.3f} weight={result.weight:.3f}: {result.explanation}"
            )
            factors.append(result)

        return compute_risk_score(factors)

    def assess(
        self,
        challenge_request: ChallengeRequest,
        now: int | None = None,
        ip_intelligence: IpIntelligence | None = None,
        weights: Weights | None = None,
    ) -> RiskAssessment:
        """Context → evaluate → tier → audit, in one call."""
        evaluation_id = str(uuid.uuid4())[:8]
        start_time = time.monotonic()

        ctx = self.build_context(challenge_request, now=now, ip_intelligence=ip_intelligence)
        result = self.evaluate(ctx, weights)
        tier = self.tier_mapper.classify(result.score)

        elapsed_ms = (time.monotonic() - start_time) * 1000
        active = [f for f in result.factors if f.is_active]
        logger.info(
            f"[{evaluation_id}] {ctx.publication_type.value} in {ctx.publication.subplebbit_address}: "
            f"risk={result.score:.3f} tier={tier.value} active_factors={len(active)} "
            f"({elapsed_ms:.1f}ms)"
        )

        if self.audit_logger is not None:
            self.audit_logger.log(
                AuditEntry(
                    evaluation_id=evaluation_id,
                    evaluated_at=ctx.now,
                    author_public_key=ctx.author_public_key,
                    subplebbit_address=ctx.publication.subplebbit_address,
                    publication_type=ctx.publication_type.value,
                    risk_score=round(result.score, 4),
                    tier=tier.value,
                    has_ip_info=ctx.has_ip_info,
                    active_factors=len(active),
                    factors=[
                        FactorAudit(
                            name=f.name,
                            score=round(f.score, 4),
                            weight=f.weight,
                            effective_weight=round(f.effective_weight, 4),
                        )
                        for f in result.factors
                    ],
                    duration_ms=round(elapsed_ms, 2),
                )
            )

        return RiskAssessment(evaluation_id=evaluation_id, result=result, tier=tier)
