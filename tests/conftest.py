"""
Test fixtures shared across all spam blocker tests.
"""

import pytest

from spamblocker.config import Settings
from spamblocker.core.combined_data_service import CombinedDataService
from spamblocker.core.risk_context import RiskContext
from spamblocker.data.memory_store import InMemoryEngineStore, InMemoryIndexerStore
from spamblocker.models.publication_models import ChallengeRequest

NOW = 1_700_000_000
DAY = 24 * 60 * 60
AUTHOR_KEY = "12D3KooWAuthorSigningKey"
SUBPLEBBIT = "memes.eth"

_PAYLOAD_KEYS = {
    "post": "comment",
    "reply": "comment",
    "vote": "vote",
    "commentEdit": "commentEdit",
    "commentModeration": "commentModeration",
    "subplebbitEdit": "subplebbitEdit",
}


def build_challenge_request(
    kind="post",
    author_key=AUTHOR_KEY,
    subplebbit=SUBPLEBBIT,
    content="Just sharing a thought about the weekend.",
    title=None,
    link=None,
    post_score=None,
    reply_score=None,
    wallets=None,
):
    """A verified challenge request as the network would deliver it (camelCase)."""
    author = {"address": "author.eth"}
    if post_score is not None or reply_score is not None:
        author["subplebbit"] = {"postScore": post_score, "replyScore": reply_score}
    if wallets:
        author["wallets"] = {
            chain: {"address": address, "timestamp": NOW - DAY} for chain, address in wallets.items()
        }

    publication = {
        "author": author,
        "subplebbitAddress": subplebbit,
        "signature": {"publicKey": author_key, "type": "ed25519", "signature": "sig"},
        "timestamp": NOW,
        "protocolVersion": "1.0.0",
    }
    if kind in ("post", "reply"):
        publication.update({"content": content, "title": title, "link": link})
        if kind == "reply":
            publication["parentCid"] = "QmParentComment"
    elif kind == "vote":
        publication.update({"commentCid": "QmTarget", "vote": 1})
    elif kind in ("commentEdit", "commentModeration"):
        publication["commentCid"] = "QmTarget"

    return ChallengeRequest.model_validate({_PAYLOAD_KEYS[kind]: publication})


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def engine_store():
    return InMemoryEngineStore()


@pytest.fixture
def indexer_store():
    return InMemoryIndexerStore()


@pytest.fixture
def combined(engine_store, indexer_store):
    return CombinedDataService(engine_store, indexer_store)


@pytest.fixture
def test_settings():
    """Settings isolated from the developer's environment and .env file."""
    return Settings(_env_file=None, oauth_enabled_providers=["google", "github", "discord"])


@pytest.fixture
def make_request():
    return build_challenge_request


@pytest.fixture
def make_context(combined, test_settings):
    """Build a RiskContext around a challenge request with the shared stores."""

    def _make(challenge_request=None, ip_intelligence=None, enabled_oauth_providers=None, **request_kwargs):
        if challenge_request is None:
            challenge_request = build_challenge_request(**request_kwargs)
        providers = (
            test_settings.oauth_enabled_providers
            if enabled_oauth_providers is None
            else enabled_oauth_providers
        )
        return RiskContext(
            challenge_request=challenge_request,
            now=NOW,
            combined_data=combined,
            ip_intelligence=ip_intelligence,
            enabled_oauth_providers=tuple(providers),
            provider_credibility=dict(test_settings.oauth_provider_credibility),
            unknown_provider_credibility=test_settings.oauth_unknown_provider_credibility,
            similarity_window_seconds=test_settings.similarity_window_seconds,
        )

    return _make
