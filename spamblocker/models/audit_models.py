"""
Audit Models — one record per assessed publication.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class FactorAudit(BaseModel):
    name: str
    score: float
    weight: float
    effective_weight: float


class AuditEntry(BaseModel):
    """Audit metadata for an assessment."""

    evaluation_id: str
    evaluated_at: int = Field(..., description="Evaluation clock (seconds), the same `now` the factors saw")
    author_public_key: str
    subplebbit_address: str
    publication_type: str
    risk_score: float
    tier: str
    has_ip_info: bool = False
    active_factors: int = 0
    factors: list[FactorAudit] = Field(default_factory=list)
    duration_ms: float = 0.0
