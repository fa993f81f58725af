"""
Feed Ingestion Errors

Exception hierarchy shared by fetchers, parsers and configuration code.
"""

from typing import Optional


class VulnFeedError(Exception):
    """Base exception for all feed ingestion failures."""


class FetchError(VulnFeedError):
    """Raised when a remote feed could not be retrieved."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(VulnFeedError):
    """Raised when upstream data is malformed or does not match its schema."""


class ConfigurationError(VulnFeedError):
    """Raised eagerly from configure() when an updater cannot be used."""


class Unchanged(Exception):
    """Signals that the upstream feed has not changed since the last fingerprint.

    This is not a failure: callers should skip the parse and store steps.
    """

    def __init__(self, fingerprint: str = ""):
        super().__init__("feed unchanged")
        self.fingerprint = fingerprint
