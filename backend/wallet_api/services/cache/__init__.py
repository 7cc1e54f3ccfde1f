"""
Metadata caching: memory tier, database tier and the two-tier front.
"""
from wallet_api.services.cache.memory_cache import MemoryCache
from wallet_api.services.cache.persistent_cache import PersistentCache
from wallet_api.services.cache.two_tier import (
    TwoTierCache,
    cache_key,
    DURABILITY_SYNC,
    DURABILITY_ASYNC,
)

__all__ = [
    "MemoryCache",
    "PersistentCache",
    "TwoTierCache",
    "cache_key",
    "DURABILITY_SYNC",
    "DURABILITY_ASYNC",
]
