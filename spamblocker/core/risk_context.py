"""
Risk Context — everything a factor calculator may read for one evaluation.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from spamblocker.core.combined_data_service import CombinedDataService
from spamblocker.core.publication import (
    get_author,
    get_author_public_key,
    get_publication,
    get_publication_type,
)
from spamblocker.models.publication_models import (
    Author,
    ChallengeRequest,
    IpIntelligence,
    Publication,
    PublicationType,
)


@dataclass
class RiskContext:
    """Per-request evaluation input. Built once, never shared between requests."""

    challenge_request: ChallengeRequest
    now: int
    combined_data: CombinedDataService
    ip_intelligence: IpIntelligence | None = None
    enabled_oauth_providers: tuple[str, ...] = ()
    provider_credibility: dict[str, float] = field(default_factory=dict)
    unknown_provider_credibility: float = 0.5
    similarity_window_seconds: int = 24 * 60 * 60

    @property
    def has_ip_info(self) -> bool:
        return self.ip_intelligence is not None

    @property
    def publication(self) -> Publication:
        return get_publication(self.challenge_request)

    @property
    def publication_type(self) -> PublicationType:
        return get_publication_type(self.challenge_request)

    @property
    def author(self) -> Author:
        return get_author(self.challenge_request)

    @property
    def author_public_key(self) -> str:
        return get_author_public_key(self.challenge_request)

    @property
    def similarity_since(self) -> int:
        return self.now - self.similarity_window_seconds
