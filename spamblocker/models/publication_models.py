"""
Publication Models — the already-verified challenge request handed to the engine.

Field names are snake_case; the network's camelCase names are accepted as aliases
so decrypted challenge requests can be validated directly.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PublicationType(str, Enum):
    POST = "post"
    REPLY = "reply"
    VOTE = "vote"
    COMMENT_EDIT = "commentEdit"
    COMMENT_MODERATION = "commentModeration"
    SUBPLEBBIT_EDIT = "subplebbitEdit"


# Types with publication-rate tracking (subplebbit edits are too rare to matter)
TRACKED_VELOCITY_TYPES: tuple[PublicationType, ...] = (
    PublicationType.POST,
    PublicationType.REPLY,
    PublicationType.VOTE,
    PublicationType.COMMENT_EDIT,
    PublicationType.COMMENT_MODERATION,
)


class _NetworkModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class Signature(_NetworkModel):
    """Publication signature. The public key is the author's authoritative identity."""

    public_key: str = Field(..., alias="publicKey", min_length=1)
    type: str = "ed25519"
    signature: str = ""


class SubplebbitAuthor(_NetworkModel):
    """Author reputation snapshot as reported by the receiving community."""

    post_score: int | None = Field(default=None, alias="postScore")
    reply_score: int | None = Field(default=None, alias="replyScore")
    first_comment_timestamp: int | None = Field(default=None, alias="firstCommentTimestamp")
    last_comment_cid: str | None = Field(default=None, alias="lastCommentCid")
    ban_expires_at: int | None = Field(default=None, alias="banExpiresAt")


class Wallet(_NetworkModel):
    """A wallet attestation; ownership is verified upstream."""

    address: str
    timestamp: int | None = None
    signature: dict | None = None


class Author(_NetworkModel):
    address: str = Field(..., description="Display address; may be a domain, never an identity key")
    subplebbit: SubplebbitAuthor | None = None
    wallets: dict[str, Wallet] = Field(default_factory=dict)
    previous_comment_cid: str | None = Field(default=None, alias="previousCommentCid")


class Publication(_NetworkModel):
    """Any author-submitted action. Payload fields are optional per type."""

    author: Author
    subplebbit_address: str = Field(..., alias="subplebbitAddress")
    signature: Signature
    timestamp: int
    protocol_version: str | None = Field(default=None, alias="protocolVersion")

    # Comment fields
    content: str | None = None
    title: str | None = None
    link: str | None = None
    parent_cid: str | None = Field(default=None, alias="parentCid")

    # Vote / edit / moderation fields
    comment_cid: str | None = Field(default=None, alias="commentCid")
    vote: int | None = None


class ChallengeRequest(_NetworkModel):
    """Decrypted challenge request. Exactly one payload is expected to be set."""

    comment: Publication | None = None
    vote: Publication | None = None
    comment_edit: Publication | None = Field(default=None, alias="commentEdit")
    comment_moderation: Publication | None = Field(default=None, alias="commentModeration")
    subplebbit_edit: Publication | None = Field(default=None, alias="subplebbitEdit")


class IpIntelligence(_NetworkModel):
    """Best-effort IP classification from an external provider."""

    is_vpn: bool | None = Field(default=None, alias="isVpn")
    is_proxy: bool | None = Field(default=None, alias="isProxy")
    is_tor: bool | None = Field(default=None, alias="isTor")
    is_datacenter: bool | None = Field(default=None, alias="isDatacenter")
    country_code: str | None = Field(default=None, alias="countryCode")
