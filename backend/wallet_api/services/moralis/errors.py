"""
Errors raised by upstream HTTP clients.

Messages are part of the contract: the retry gate and the 429 mapping
match on substrings ("rate limit", "timeout", "network").
"""
from typing import Optional


class UpstreamError(Exception):
    """Upstream API call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(UpstreamError):
    """Upstream returned 429."""


class UpstreamTimeoutError(UpstreamError):
    """Upstream did not answer in time."""


class UpstreamNetworkError(UpstreamError):
    """Connection-level failure (DNS, refused, reset)."""
