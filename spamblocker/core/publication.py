"""
Publication helpers — extract the payload, author identity, type and wallets
from a verified challenge request.
"""

from __future__ import annotations

from dataclasses import dataclass

from spamblocker.errors import MalformedPublicationError
from spamblocker.models.publication_models import (
    Author,
    ChallengeRequest,
    Publication,
    PublicationType,
)


@dataclass(frozen=True)
class WalletInfo:
    address: str
    chain_ticker: str


def get_publication(challenge_request: ChallengeRequest) -> Publication:
    """Return whichever publication the request carries."""
    for publication in (
        challenge_request.comment,
        challenge_request.vote,
        challenge_request.comment_edit,
        challenge_request.comment_moderation,
        challenge_request.subplebbit_edit,
    ):
        if publication is not None:
            return publication
    raise MalformedPublicationError("Challenge request carries no publication")


def get_publication_type(challenge_request: ChallengeRequest) -> PublicationType:
    """post = comment without parentCid, reply = comment with one."""
    if challenge_request.comment is not None:
        return PublicationType.REPLY if challenge_request.comment.parent_cid else PublicationType.POST
    if challenge_request.vote is not None:
        return PublicationType.VOTE
    if challenge_request.comment_edit is not None:
        return PublicationType.COMMENT_EDIT
    if challenge_request.comment_moderation is not None:
        return PublicationType.COMMENT_MODERATION
    if challenge_request.subplebbit_edit is not None:
        return PublicationType.SUBPLEBBIT_EDIT
    raise MalformedPublicationError("Unknown publication type in challenge request")


def get_author(challenge_request: ChallengeRequest) -> Author:
    return get_publication(challenge_request).author


def get_author_public_key(challenge_request: ChallengeRequest) -> str:
    """The Ed25519 signing key. Use this, never author.address, as the identity."""
    return get_publication(challenge_request).signature.public_key


def is_comment(publication_type: PublicationType) -> bool:
    return publication_type in (PublicationType.POST, PublicationType.REPLY)


def get_wallet_addresses(author: Author) -> list[WalletInfo]:
    """All wallet addresses attested on the author, keyed by chain ticker."""
    return [
        WalletInfo(address=wallet.address, chain_ticker=chain_ticker)
        for chain_ticker, wallet in author.wallets.items()
        if wallet.address
    ]


def shorten_address(address: str) -> str:
    """0x1234...abcd style display form for log lines and explanations."""
    return f"{address[:6]}...{address[-4:]}" if len(address) > 10 else address
