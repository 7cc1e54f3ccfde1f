"""
NFT collections for a wallet.

Flow: recent webhook push (if any) -> wallet NFTs from Moralis ->
group by collection -> batched, cached metadata enrichment -> response.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

from wallet_api.core.config import WEBHOOK_FRESHNESS_SECONDS
from wallet_api.services.moralis import MoralisClient
from wallet_api.services.moralis.models import NftWebhookPayload, chain_id_to_hex
from wallet_api.services.nft.aggregation import aggregate_collections
from wallet_api.services.nft.enrichment import MetadataEnricher, merge_metadata
from wallet_api.services.retry import retry_with_backoff
from wallet_api.services.webhooks import WebhookStore

logger = logging.getLogger(__name__)

SOURCE_WEBHOOK = "webhook"
SOURCE_API = "api"


class NftCollectionsService:
    """Collection-centric view of a wallet's NFTs."""

    def __init__(
        self,
        moralis: MoralisClient,
        enricher: MetadataEnricher,
        webhook_store: WebhookStore,
        webhook_freshness_seconds: float = WEBHOOK_FRESHNESS_SECONDS,
        retry_options: Optional[Dict[str, Any]] = None,
    ):
        self.moralis = moralis
        self.enricher = enricher
        self.webhook_store = webhook_store
        self.webhook_freshness_seconds = webhook_freshness_seconds
        self.retry_options = retry_options or {}

    async def _webhook_response(self, address: str, chain: str) -> Optional[Dict[str, Any]]:
        """Response built from a recent webhook push, or None."""
        try:
            record = await asyncio.to_thread(
                self.webhook_store.latest_recent, chain, address, self.webhook_freshness_seconds
            )
        except Exception as e:
            logger.error(f"Error checking webhook data: {e}")
            return None

        if record is None:
            return None

        logger.info(f"Using webhook data for {address}")
        return {
            "success": True,
            "collections": record.collections,
            "pagination": {
                "total": len(record.collections),
                "cursor": None,
            },
            "source": SOURCE_WEBHOOK,
        }

    async def get_collections(
        self,
        address: str,
        chain: str = "0x1",
        limit: int = 100,
        cursor: Optional[str] = None,
        skip_cache: bool = False,
    ) -> Dict[str, Any]:
        """Collections owned by ``address`` on ``chain``.

        Raises:
            UpstreamError: if the wallet NFT fetch fails after retries
        """
        if not skip_cache:
            cached = await self._webhook_response(address, chain)
            if cached is not None:
                return cached

        page = await retry_with_backoff(
            lambda: self.moralis.get_wallet_nfts(address, chain, limit=limit, cursor=cursor),
            **self.retry_options,
        )

        collection_map = aggregate_collections(page.result)

        if collection_map:
            try:
                results = await self.enricher.enrich(chain, list(collection_map.keys()), skip_cache)
                merge_metadata(collection_map, results)
            except Exception as e:
                # Collections are still useful without metadata
                logger.error(f"Error fetching collection metadata: {e}")

        collections = [summary.to_response() for summary in collection_map.values()]
        return {
            "success": True,
            "collections": collections,
            "pagination": {
                "total": len(collections),
                "cursor": page.cursor,
            },
            "source": SOURCE_API,
        }

    async def record_webhook(self, payload: NftWebhookPayload, raw: Dict[str, Any]) -> bool:
        """Store a webhook push. Returns False when required fields are missing."""
        if not (payload.confirmed and payload.chain_id and payload.address):
            return False

        try:
            chain = chain_id_to_hex(payload.chain_id)
        except ValueError:
            logger.warning(f"Ignoring webhook with unparseable chainId: {payload.chain_id!r}")
            return False

        await asyncio.to_thread(
            self.webhook_store.record,
            chain,
            payload.address.lower(),
            payload.collections or [],
            payload.stream_id,
            raw,
        )
        return True
