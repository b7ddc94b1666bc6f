"""
Spam Blocker error taxonomy.

Missing historical data is never an error; only configuration mistakes and
caller precondition violations raise.
"""

from __future__ import annotations


class SpamBlockerError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(SpamBlockerError, ValueError):
    """Invalid engine configuration (tier ordering, weights). Raised eagerly."""


class MalformedPublicationError(SpamBlockerError, ValueError):
    """A challenge request carried no recognizable publication payload."""
