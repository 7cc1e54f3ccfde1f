"""
Moralis EVM API access.
"""
from wallet_api.services.moralis.client import MoralisClient
from wallet_api.services.moralis.errors import (
    UpstreamError,
    RateLimitError,
    UpstreamTimeoutError,
    UpstreamNetworkError,
)

__all__ = [
    "MoralisClient",
    "UpstreamError",
    "RateLimitError",
    "UpstreamTimeoutError",
    "UpstreamNetworkError",
]
