"""
Spam Blocker Configuration — pydantic-settings based.

All settings are read from environment variables (prefix SPAMBLOCKER_) or a .env file.
Nothing here is required: every field has a deployment-safe default.
"""

from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from spamblocker.core.challenge_tier import ChallengeTierConfig

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


class Settings(BaseSettings):
    """Engine-wide settings sourced from environment variables."""

    # ── Challenge Tiers ──
    auto_accept_threshold: float = Field(
        default=0.2, description="Risk score below this is accepted without a challenge"
    )
    captcha_only_threshold: float = Field(
        default=0.4, description="Risk score below this gets a CAPTCHA only"
    )
    auto_reject_threshold: float = Field(
        default=0.8, description="Risk score at or above this is rejected outright"
    )

    # ── Social Verification ──
    oauth_enabled_providers: list[str] = Field(
        default_factory=list,
        description="OAuth providers configured on the server. Empty disables social verification.",
    )
    oauth_provider_credibility: dict[str, float] = Field(
        default_factory=lambda: {
            "google": 1.0,
            "github": 1.0,
            "twitter": 0.85,
            "discord": 0.7,
            "tiktok": 0.6,
            "reddit": 0.6,
            "yandex": 0.5,
        },
        description="Base credibility per OAuth provider (0.5-1.0)",
    )
    oauth_unknown_provider_credibility: float = Field(
        default=0.5, description="Credibility for providers missing from the table"
    )

    # ── Content / Link Similarity ──
    similarity_window_seconds: int = Field(
        default=24 * 60 * 60,
        description="Look-back window for duplicate content and link detection",
    )

    # ── Historical Data ──
    engine_db_path: str | None = Field(
        default=None, description="SQLite file holding publications seen by this gateway"
    )
    indexer_db_path: str | None = Field(
        default=None, description="SQLite file holding network-wide crawled history"
    )

    # ── IP Intelligence ──
    ipapi_api_key: str | None = Field(default=None, description="ipapi.is API key")
    ipapi_timeout_seconds: float = Field(
        default=3.0, description="IP intelligence request timeout in seconds"
    )

    # ── Audit / Logging ──
    audit_log_path: str | None = Field(
        default=None, description="Path to JSON-lines audit log. None disables auditing."
    )
    log_level: str = Field(default="INFO", description="Root log level for configure_logging()")

    model_config = SettingsConfigDict(
        env_prefix="SPAMBLOCKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def tier_config(self) -> ChallengeTierConfig:
        """Challenge tier thresholds as a config object (validated by the mapper)."""
        return ChallengeTierConfig(
            auto_accept_threshold=self.auto_accept_threshold,
            captcha_only_threshold=self.captcha_only_threshold,
            auto_reject_threshold=self.auto_reject_threshold,
        )


def configure_logging(level: str | None = None) -> None:
    """Install the standard log format for host processes embedding the engine."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )


# Shared defaults: the engine reads these but never mutates them
settings = Settings()
