"""
Batched collection metadata enrichment.

Addresses are processed in fixed-size batches. Lookups inside a batch run
concurrently; batches run one after another with a fixed pause between
them to stay under the provider's rate limit. A failed lookup yields an
empty result for that address and never fails the batch.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from wallet_api.core.config import METADATA_BATCH_SIZE, METADATA_BATCH_DELAY_SECONDS
from wallet_api.services.cache import TwoTierCache, cache_key
from wallet_api.services.moralis import MoralisClient
from wallet_api.services.nft.models import CollectionSummary, MetadataResult
from wallet_api.services.retry import retry_with_backoff

logger = logging.getLogger(__name__)


class MetadataEnricher:
    """Fetch contract metadata for many collections through the cache."""

    def __init__(
        self,
        moralis: MoralisClient,
        cache: TwoTierCache,
        batch_size: int = METADATA_BATCH_SIZE,
        batch_delay: float = METADATA_BATCH_DELAY_SECONDS,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        retry_options: Optional[Dict[str, Any]] = None,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.moralis = moralis
        self.cache = cache
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.sleep = sleep or asyncio.sleep
        self.retry_options = retry_options or {}

    async def fetch_metadata(self, chain: str, address: str, skip_cache: bool = False) -> MetadataResult:
        """Metadata for one contract: memory, then database, then Moralis."""
        key = cache_key(chain, address)

        if not skip_cache:
            hit = await self.cache.get(key)
            if hit is not None:
                metadata, tier = hit
                return MetadataResult(address=address, metadata=metadata, from_cache=tier)

        try:
            contract = await retry_with_backoff(
                lambda: self.moralis.get_nft_contract_metadata(address, chain),
                **self.retry_options,
            )
            metadata = contract.model_dump(exclude_none=True)
            await self.cache.set(key, metadata)
            return MetadataResult(address=address, metadata=metadata, from_cache=False)
        except Exception as e:
            logger.error(f"Error fetching metadata for collection {address}: {e}")
            return MetadataResult(address=address, metadata=None, from_cache=False)

    async def enrich(self, chain: str, addresses: Sequence[str], skip_cache: bool = False) -> List[MetadataResult]:
        """Look up every address in batches. Results keep input order."""
        results: List[MetadataResult] = []

        for start in range(0, len(addresses), self.batch_size):
            if start > 0:
                await self.sleep(self.batch_delay)

            batch = addresses[start:start + self.batch_size]
            batch_results = await asyncio.gather(
                *(self.fetch_metadata(chain, address, skip_cache) for address in batch)
            )
            results.extend(batch_results)
            logger.debug(f"Enriched batch {start // self.batch_size + 1}: {len(batch)} collections")

        return results


def merge_metadata(collections: Dict[str, CollectionSummary], results: Sequence[MetadataResult]) -> None:
    """Apply enrichment results onto the aggregated collections in place.

    Empty metadata values keep the names from aggregation.
    """
    for result in results:
        if result.metadata is None or result.address not in collections:
            continue
        summary = collections[result.address]
        metadata = result.metadata
        summary.name = metadata.get("name") or summary.name
        summary.symbol = metadata.get("symbol") or summary.symbol
        summary.token_type = metadata.get("contract_type") or ""
        summary.synced_at = metadata.get("synced_at") or ""
