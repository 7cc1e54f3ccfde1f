"""
Shared service instances for route dependencies.

Each getter builds its object once per process. Tests replace them through
``app.dependency_overrides``.
"""
from functools import lru_cache

from wallet_api.core.config import get_settings
from wallet_api.services.cache import MemoryCache, PersistentCache, TwoTierCache
from wallet_api.services.defillama import DefiLlamaClient
from wallet_api.services.moralis import MoralisClient
from wallet_api.services.nft import MetadataEnricher, NftCollectionsService
from wallet_api.services.webhooks import SignatureVerifier, WebhookStore, build_verifier

TOKEN_PRICE_CACHE_SECONDS = 60
TOKEN_PRICE_CACHE_MAXSIZE = 512


@lru_cache()
def get_moralis_client() -> MoralisClient:
    return MoralisClient()


@lru_cache()
def get_defillama_client() -> DefiLlamaClient:
    return DefiLlamaClient()


@lru_cache()
def get_metadata_cache() -> TwoTierCache:
    settings = get_settings()
    return TwoTierCache(
        memory=MemoryCache(
            ttl_seconds=settings.metadata_memory_ttl_seconds,
            maxsize=settings.metadata_cache_maxsize,
        ),
        persistent=PersistentCache(ttl_seconds=settings.metadata_persistent_ttl_seconds),
        durability_mode=settings.cache_durability_mode,
    )


@lru_cache()
def get_webhook_store() -> WebhookStore:
    return WebhookStore()


@lru_cache()
def get_signature_verifier() -> SignatureVerifier:
    return build_verifier(get_settings().moralis_streams_secret)


@lru_cache()
def get_token_price_cache() -> MemoryCache:
    return MemoryCache(ttl_seconds=TOKEN_PRICE_CACHE_SECONDS, maxsize=TOKEN_PRICE_CACHE_MAXSIZE)


@lru_cache()
def get_collections_service() -> NftCollectionsService:
    settings = get_settings()
    moralis = get_moralis_client()
    enricher = MetadataEnricher(
        moralis=moralis,
        cache=get_metadata_cache(),
        batch_size=settings.metadata_batch_size,
        batch_delay=settings.metadata_batch_delay_seconds,
    )
    return NftCollectionsService(
        moralis=moralis,
        enricher=enricher,
        webhook_store=get_webhook_store(),
        webhook_freshness_seconds=settings.webhook_freshness_seconds,
    )
