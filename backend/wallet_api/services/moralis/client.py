"""
Moralis EVM API client.

Thin async wrapper around the REST endpoints (v2.2). Transport failures
and HTTP errors are normalized to the errors in ``errors.py``.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from wallet_api.core.config import MORALIS_API_KEY, MORALIS_BASE_URL, HTTP_TIMEOUT_SECONDS
from wallet_api.services.moralis.errors import (
    RateLimitError,
    UpstreamError,
    UpstreamNetworkError,
    UpstreamTimeoutError,
)
from wallet_api.services.moralis.models import (
    ContractMetadata,
    WalletNftPage,
    parse_wallet_nfts,
)

logger = logging.getLogger(__name__)


class MoralisClient:
    """Client for the Moralis EVM API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = MORALIS_BASE_URL,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Moralis client.

        Args:
            api_key: Moralis API key (defaults to MORALIS_API_KEY from config)
            base_url: API root, without trailing slash
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.api_key = api_key or MORALIS_API_KEY
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            if not self.api_key:
                raise UpstreamError(
                    "Moralis API key not configured. Set MORALIS_API_KEY in wallet_api/config_local.py",
                    status_code=500,
                )
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                follow_redirects=True,
                headers={
                    "X-API-Key": self.api_key,
                    "Accept": "application/json",
                },
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a Moralis endpoint and return decoded JSON."""
        params = {k: v for k, v in (params or {}).items() if v is not None}
        client = self._get_client()

        try:
            response = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            logger.warning(f"moralis_request_failed: path={path}, error=timeout")
            raise UpstreamTimeoutError(f"Moralis request timeout: {path}") from e
        except httpx.TransportError as e:
            logger.warning(f"moralis_request_failed: path={path}, error={type(e).__name__}")
            raise UpstreamNetworkError(f"Moralis network error: {e}") from e

        if response.status_code == 429:
            logger.warning(f"moralis_request_failed: path={path}, status=429")
            raise RateLimitError("Moralis rate limit exceeded (too many requests)", status_code=429)

        if response.status_code == 401:
            raise UpstreamError("Moralis API key is not set correctly", status_code=401)

        if response.status_code >= 400:
            detail = _error_detail(response)
            logger.warning(f"moralis_request_failed: path={path}, status={response.status_code}, detail={detail}")
            raise UpstreamError(f"Moralis API error {response.status_code}: {detail}", status_code=response.status_code)

        return response.json()

    # NFTs

    async def get_wallet_nfts(
        self,
        address: str,
        chain: str = "0x1",
        limit: int = 100,
        cursor: Optional[str] = None,
        token_addresses: Optional[List[str]] = None,
        media_items: bool = False,
    ) -> WalletNftPage:
        params = {
            "chain": chain,
            "limit": limit,
            "cursor": cursor,
            "normalizeMetadata": "true",
            "media_items": "true" if media_items else None,
        }
        for i, token_address in enumerate(token_addresses or []):
            params[f"token_addresses[{i}]"] = token_address
        payload = await self._get(f"/{address}/nft", params)
        return parse_wallet_nfts(payload)

    async def get_wallet_nfts_raw(self, address: str, chain: str = "0x1", **params: Any) -> Dict[str, Any]:
        return await self._get(f"/{address}/nft", {"chain": chain, "normalizeMetadata": "true", **params})

    async def get_nft_contract_metadata(self, address: str, chain: str = "0x1") -> ContractMetadata:
        payload = await self._get(f"/nft/{address}/metadata", {"chain": chain})
        return ContractMetadata.model_validate(payload or {})

    async def get_wallet_nft_collections(self, address: str, chain: str = "0x1", limit: int = 10) -> Dict[str, Any]:
        return await self._get(f"/{address}/nft/collections", {"chain": chain, "limit": limit})

    async def get_nft_trades(self, address: str, chain: str = "0x1", limit: int = 10) -> Dict[str, Any]:
        return await self._get(f"/nft/{address}/trades", {"chain": chain, "limit": limit})

    # Balances and tokens

    async def get_native_balance(self, address: str, chain: str = "0x1") -> Dict[str, Any]:
        return await self._get(f"/{address}/balance", {"chain": chain})

    async def get_wallet_token_balances(self, address: str, chain: str = "0x1") -> List[Dict[str, Any]]:
        return await self._get(f"/{address}/erc20", {"chain": chain})

    async def get_wallet_token_balances_price(self, address: str, chain: str = "0x1") -> Dict[str, Any]:
        """ERC-20 and native balances with USD prices (``/wallets/{address}/tokens``)."""
        return await self._get(f"/wallets/{address}/tokens", {"chain": chain})

    async def get_token_price(self, address: str, chain: str = "0x1") -> Dict[str, Any]:
        return await self._get(f"/erc20/{address}/price", {"chain": chain})

    async def get_token_metadata(self, addresses: List[str], chain: str = "0x1") -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"chain": chain}
        for i, token_address in enumerate(addresses):
            params[f"addresses[{i}]"] = token_address
        return await self._get("/erc20/metadata", params)

    async def search_tokens(
        self,
        query: str,
        chain: str = "0x1",
        limit: int = 10,
        cursor: Optional[str] = None,
    ) -> Any:
        """Tokens whose name or symbol matches ``query``."""
        return await self._get("/tokens/search", {"query": query, "chains": chain, "limit": limit, "cursor": cursor})

    # Activity

    async def get_wallet_transactions(self, address: str, chain: str = "0x1", limit: int = 25) -> Dict[str, Any]:
        return await self._get(f"/{address}", {"chain": chain, "limit": limit})

    async def get_wallet_token_transfers(self, address: str, chain: str = "0x1", limit: int = 25) -> Dict[str, Any]:
        return await self._get(f"/{address}/erc20/transfers", {"chain": chain, "limit": limit})

    async def get_wallet_token_approvals(self, address: str, chain: str = "0x1", limit: int = 25) -> Dict[str, Any]:
        return await self._get(f"/wallets/{address}/approvals", {"chain": chain, "limit": limit})

    # Blocks

    async def get_latest_block(self, chain: str = "0x1") -> Dict[str, Any]:
        """Block closest to now (``/dateToBlock``)."""
        now = datetime.now(timezone.utc).isoformat()
        return await self._get("/dateToBlock", {"chain": chain, "date": now})


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)[:200]
    return str(body)[:200]
