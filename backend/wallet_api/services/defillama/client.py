"""
DefiLlama API client.

Documentation: https://defillama.com/docs/api
"""
import logging
from typing import Any, List, Optional

import httpx

from wallet_api.core.config import DEFILLAMA_BASE_URL, DEFILLAMA_COINS_URL, HTTP_TIMEOUT_SECONDS
from wallet_api.services.moralis.errors import (
    RateLimitError,
    UpstreamError,
    UpstreamNetworkError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)


class DefiLlamaClient:
    """Client for the public DefiLlama endpoints (no API key)."""

    def __init__(
        self,
        base_url: str = DEFILLAMA_BASE_URL,
        coins_url: str = DEFILLAMA_COINS_URL,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.coins_url = coins_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _fetch(self, endpoint: str, base_url: Optional[str] = None, params: Optional[dict] = None) -> Any:
        url = f"{base_url or self.base_url}{endpoint}"
        try:
            response = await self._get_client().get(url, params=params)
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(f"DefiLlama request timeout: {endpoint}") from e
        except httpx.TransportError as e:
            raise UpstreamNetworkError(f"DefiLlama network error: {e}") from e

        if response.status_code == 429:
            raise RateLimitError("DefiLlama rate limit exceeded", status_code=429)
        if response.status_code >= 400:
            logger.error(f"Error fetching from DefiLlama API ({endpoint}): {response.status_code}")
            raise UpstreamError(
                f"DefiLlama API error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )
        return response.json()

    async def get_protocol(self, protocol_name: str) -> Any:
        """Protocol data by slug (e.g. "aave")."""
        return await self._fetch(f"/protocol/{protocol_name}")

    async def get_chain_tvl(self, chain: str) -> Any:
        """Historical TVL for one chain."""
        return await self._fetch(f"/v2/historicalChainTvl/{chain}")

    async def get_all_chains_tvl(self) -> Any:
        return await self._fetch("/v2/chains")

    async def get_token_prices(self, coins: List[str]) -> Any:
        """Current prices for coins given as "chain:address"."""
        if not coins:
            return {"coins": {}}
        return await self._fetch(f"/prices/current/{','.join(coins)}", self.coins_url)

    async def get_historical_token_price(self, coin: str, timestamp: int) -> Any:
        return await self._fetch(f"/prices/historical/{timestamp}/{coin}", self.coins_url)

    async def get_token_chart(self, coin: str, span: str = "30d") -> Any:
        return await self._fetch(f"/chart/{coin}", self.coins_url, params={"span": span})

    async def get_stablecoins(self) -> Any:
        return await self._fetch("/stablecoins")

    async def get_yields(self) -> Any:
        return await self._fetch("/yields")
