"""
Wallet data endpoints proxied from Moralis: balances, NFTs, activity, prices.
"""
import asyncio
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from web3 import Web3

from wallet_api.api.deps import get_moralis_client, get_token_price_cache
from wallet_api.api.params import INVALID_LIMIT_MESSAGE, parse_limit
from wallet_api.api.responses import error_response
from wallet_api.services.cache import MemoryCache
from wallet_api.services.moralis import MoralisClient, UpstreamError, UpstreamTimeoutError
from wallet_api.services.moralis.models import chain_id_to_hex, parse_token_balances
from wallet_api.services.wallet import detect_spam

logger = logging.getLogger(__name__)

router = APIRouter()

TOKEN_PRICE_TIMEOUT_SECONDS = 10.0

# Common token symbols accepted in place of an address (Ethereum mainnet)
TOKEN_ADDRESS_MAP: Dict[str, str] = {
    "eth": "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee",
    "usdc": "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48",
    "usdt": "0xdac17f958d2ee523a2206206994597c13d831ec7",
    "wbtc": "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599",
    "dai": "0x6b175474e89094c44da98b954eedeac495271d0f",
    "link": "0x514910771af9ca656af840dff83e8264ecf986ca",
    "uni": "0x1f9840a85d5af5bf1d1762f925bdaddc4201f984",
}


class WalletDetailsRequest(BaseModel):
    """Request model for the wallet details lookup."""
    model_config = ConfigDict(populate_by_name=True)

    wallet_address: Optional[str] = Field(default=None, alias="walletAddress")
    chain_id: Optional[Union[str, int]] = Field(default=None, alias="chainId")


@router.get("/balances")
async def get_balances(
    address: Optional[str] = None,
    chain: str = "0x1",
    moralis: MoralisClient = Depends(get_moralis_client),
):
    """Native and ERC-20 balances for a wallet."""
    if not address:
        return error_response(400, "Address is required")

    try:
        native_balance, token_balances = await asyncio.gather(
            moralis.get_native_balance(address, chain),
            moralis.get_wallet_token_balances(address, chain),
        )
    except Exception as e:
        logger.error(f"Error fetching wallet balances: {e}")
        return error_response(500, "Failed to fetch balances")

    return {
        "success": True,
        "data": {
            "nativeBalance": native_balance,
            "tokenBalances": token_balances,
        },
    }


@router.post("/wallet-details")
async def get_wallet_details(
    request: Request,
    moralis: MoralisClient = Depends(get_moralis_client),
):
    """Priced token balances and NFTs for a wallet, in one call."""
    try:
        body = WalletDetailsRequest.model_validate(json.loads(await request.body() or b"{}"))
    except (ValueError, ValidationError) as e:
        logger.warning(f"Invalid wallet details request: {e}")
        return error_response(400, "Invalid request body")

    if not body.wallet_address:
        return error_response(400, "Wallet address is required")

    try:
        chain = chain_id_to_hex(body.chain_id) if body.chain_id else "0x1"
    except ValueError:
        return error_response(400, f"Invalid chainId: {body.chain_id}")

    try:
        token_balances, nfts = await asyncio.gather(
            moralis.get_wallet_token_balances_price(body.wallet_address, chain),
            moralis.get_wallet_nfts_raw(body.wallet_address, chain, limit=100),
        )
    except Exception as e:
        logger.error(f"Wallet details fetch error: {e}")
        return error_response(500, "Failed to fetch wallet details")

    return {
        "success": True,
        "data": {
            "tokenBalances": token_balances,
            "nfts": nfts,
        },
    }


@router.get("/nfts")
async def get_nfts(
    address: Optional[str] = None,
    chain: str = "0x1",
    limit: Optional[str] = None,
    token_address: Optional[str] = Query(None, alias="tokenAddress"),
    moralis: MoralisClient = Depends(get_moralis_client),
):
    """Wallet NFTs, plus collections (all NFTs) or recent trades (one contract)."""
    if not address:
        return error_response(400, "Wallet address is required")

    page_size = parse_limit(limit, default=50)
    if page_size is None:
        return error_response(400, INVALID_LIMIT_MESSAGE)

    params = {"limit": page_size, "media_items": "true"}
    if token_address:
        params["token_addresses[0]"] = token_address

    try:
        nfts = await moralis.get_wallet_nfts_raw(address, chain, **params)
    except Exception as e:
        logger.error(f"Error fetching NFTs: {e}")
        return error_response(500, "Failed to fetch NFTs")

    collections = None
    stats = None
    if not token_address:
        try:
            collections = await moralis.get_wallet_nft_collections(address, chain, limit=10)
        except Exception as e:
            logger.warning(f"Error fetching NFT collections: {e}")
    else:
        try:
            stats = {"trades": await moralis.get_nft_trades(token_address, chain, limit=10)}
        except Exception as e:
            logger.warning(f"Error fetching NFT stats: {e}")

    return {
        "success": True,
        "data": {
            "nfts": nfts,
            "collections": collections,
            "stats": stats,
        },
    }


@router.get("/transactions")
async def get_transactions(
    address: Optional[str] = None,
    chain: str = "0x1",
    limit: Optional[str] = None,
    moralis: MoralisClient = Depends(get_moralis_client),
):
    """Transactions, ERC-20 transfers and token approvals for a wallet."""
    if not address:
        return error_response(400, "Address is required")

    page_size = parse_limit(limit, default=25)
    if page_size is None:
        return error_response(400, INVALID_LIMIT_MESSAGE)

    try:
        transactions, token_transfers, approvals = await asyncio.gather(
            moralis.get_wallet_transactions(address, chain, limit=page_size),
            moralis.get_wallet_token_transfers(address, chain, limit=page_size),
            moralis.get_wallet_token_approvals(address, chain, limit=page_size),
        )
    except Exception as e:
        logger.error(f"Error fetching wallet transactions: {e}")
        return error_response(500, "Failed to fetch transactions")

    return {
        "success": True,
        "data": {
            "transactions": transactions,
            "tokenTransfers": token_transfers,
            "approvals": approvals,
        },
    }


@router.get("/approvals")
async def get_approvals(
    address: Optional[str] = None,
    chain: str = "0x1",
    limit: Optional[str] = None,
    moralis: MoralisClient = Depends(get_moralis_client),
):
    """Active ERC-20 approvals granted by a wallet."""
    if not address:
        return error_response(400, "Wallet address is required")

    page_size = parse_limit(limit, default=25)
    if page_size is None:
        return error_response(400, INVALID_LIMIT_MESSAGE)

    try:
        payload = await moralis.get_wallet_token_approvals(address, chain, limit=page_size)
    except Exception as e:
        logger.error(f"Error fetching wallet approvals: {e}")
        return error_response(500, "Failed to fetch wallet approvals")

    approvals = (payload or {}).get("result") or []
    return {
        "success": True,
        "data": {
            "approvals": approvals,
            "count": len(approvals),
            "cursor": (payload or {}).get("cursor"),
        },
    }


@router.get("/wallet-spam")
async def get_wallet_spam(
    address: Optional[str] = None,
    chain: str = "0x1",
    moralis: MoralisClient = Depends(get_moralis_client),
):
    """Wallet tokens split into likely spam and safe holdings."""
    if not address:
        return error_response(400, "Wallet address is required")

    try:
        token_balances, transfers = await asyncio.gather(
            moralis.get_wallet_token_balances(address, chain),
            moralis.get_wallet_token_transfers(address, chain, limit=100),
        )
    except Exception as e:
        logger.error(f"Error detecting spam tokens: {e}")
        return error_response(500, "Failed to detect spam tokens")

    tokens = token_balances.get("result", []) if isinstance(token_balances, dict) else token_balances or []
    transfer_records = (transfers or {}).get("result") or []
    return {"success": True, "data": detect_spam(address, tokens, transfer_records)}


@router.get("/defi-positions")
async def get_defi_positions(
    address: Optional[str] = None,
    chain: str = "0x1",
    moralis: MoralisClient = Depends(get_moralis_client),
):
    """Token holdings and recent activity, with value totals per symbol."""
    if not address:
        return error_response(400, "Wallet address is required")

    try:
        token_balances, transactions, native_balance = await asyncio.gather(
            moralis.get_wallet_token_balances(address, chain),
            moralis.get_wallet_transactions(address, chain, limit=100),
            moralis.get_native_balance(address, chain),
        )
    except Exception as e:
        logger.error(f"Error fetching DeFi data: {e}")
        return error_response(500, "Failed to fetch DeFi data")

    total_value = 0.0
    token_summary: Dict[str, Dict[str, float]] = {}
    for balance in parse_token_balances(token_balances):
        if balance.usd_price is None and balance.usd_value is None:
            continue
        value = balance.value_usd
        total_value += value

        summary = token_summary.setdefault(balance.symbol or "unknown", {"count": 0, "totalValue": 0.0})
        summary["count"] += 1
        summary["totalValue"] += value

    return {
        "success": True,
        "data": {
            "tokenBalances": token_balances,
            "nativeBalance": native_balance,
            "transactions": transactions,
            "stats": {
                "totalValue": total_value,
                "tokenSummary": token_summary,
            },
        },
    }


def resolve_token_address(value: str) -> Optional[str]:
    """Lower-cased token address for an address or a known symbol."""
    value = value.lower()
    if Web3.is_address(value):
        return value
    return TOKEN_ADDRESS_MAP.get(value)


def _supported_symbols() -> str:
    return ", ".join(TOKEN_ADDRESS_MAP)


@router.get("/token-price")
async def get_token_price(
    address: Optional[str] = None,
    chain: str = "0x1",
    moralis: MoralisClient = Depends(get_moralis_client),
    price_cache: MemoryCache = Depends(get_token_price_cache),
):
    """USD price of a token, cached for one minute."""
    if not address:
        return error_response(400, "Missing token address or symbol")

    token_address = resolve_token_address(address)
    if token_address is None:
        return error_response(
            400,
            f"Invalid token address and unknown symbol: {address.lower()}",
            supportedSymbols=_supported_symbols(),
        )

    key = f"{token_address}-{chain}"
    cached = price_cache.get(key)
    if cached is not None:
        logger.info(f"[Token Price] Cache hit for {token_address}")
        return {
            "success": True,
            "price": cached["price"],
            "cached": True,
            "cachedAt": datetime.fromtimestamp(cached["timestamp"], tz=timezone.utc).isoformat(),
        }

    logger.info(f"[Token Price] Fetching from Moralis: {token_address}")
    try:
        price = await asyncio.wait_for(
            moralis.get_token_price(token_address, chain),
            timeout=TOKEN_PRICE_TIMEOUT_SECONDS,
        )
    except (asyncio.TimeoutError, UpstreamTimeoutError):
        return error_response(504, "Request timed out")
    except UpstreamError as e:
        logger.error(f"Error fetching token price: {e}")
        if e.status_code == 400:
            return error_response(400, "Invalid Ethereum address provided")
        return error_response(500, str(e))
    except Exception as e:
        logger.error(f"Error fetching token price: {e}")
        return error_response(500, "Failed to fetch token price")

    price_cache.set(key, {"price": price, "timestamp": time.time()})
    return {"success": True, "price": price, "cached": False}


async def _fetch_price_or_none(moralis: MoralisClient, token_address: str, chain: str) -> Optional[Dict[str, Any]]:
    """One token price with the per-request timeout; None if the lookup fails."""
    try:
        return await asyncio.wait_for(
            moralis.get_token_price(token_address, chain),
            timeout=TOKEN_PRICE_TIMEOUT_SECONDS,
        )
    except Exception as e:
        logger.error(f"Error fetching price for {token_address}: {e or type(e).__name__}")
        return None


@router.get("/token-prices")
async def get_token_prices(
    tokens: Optional[str] = None,
    chain: str = "0x1",
    moralis: MoralisClient = Depends(get_moralis_client),
    price_cache: MemoryCache = Depends(get_token_price_cache),
):
    """USD prices for a comma-separated list of token addresses or symbols.

    Shares the one-minute cache with ``/token-price``. A token whose lookup
    fails is reported with a null price and is not cached.
    """
    if not tokens:
        return error_response(
            400,
            "Missing tokens parameter. Please provide comma-separated token addresses or symbols.",
        )

    requested = [token.strip().lower() for token in tokens.split(",")]
    valid_tokens: List[str] = []
    invalid_tokens: List[str] = []
    for token in requested:
        if not token:
            continue
        token_address = resolve_token_address(token)
        if token_address is None:
            invalid_tokens.append(token)
        elif token_address not in valid_tokens:
            valid_tokens.append(token_address)

    if not valid_tokens:
        return error_response(
            400,
            "No valid token addresses provided",
            invalidTokens=invalid_tokens,
            supportedSymbols=_supported_symbols(),
        )

    cached_prices: Dict[str, Any] = {}
    to_fetch: List[str] = []
    for token_address in valid_tokens:
        cached = price_cache.get(f"{token_address}-{chain}")
        if cached is not None:
            cached_prices[token_address] = cached["price"]
        else:
            to_fetch.append(token_address)

    fetched_prices: Dict[str, Any] = {}
    if to_fetch:
        logger.info(f"[Token Prices] Fetching {len(to_fetch)} tokens from Moralis")
        results = await asyncio.gather(
            *(_fetch_price_or_none(moralis, token_address, chain) for token_address in to_fetch)
        )
        now = time.time()
        for token_address, price in zip(to_fetch, results):
            fetched_prices[token_address] = price
            if price is not None:
                price_cache.set(f"{token_address}-{chain}", {"price": price, "timestamp": now})

    return {
        "success": True,
        "prices": {**cached_prices, **fetched_prices},
        "meta": {
            "totalRequested": len(requested),
            "validTokens": len(valid_tokens),
            "invalidTokens": invalid_tokens,
            "cachedResults": len(cached_prices),
            "newlyFetched": len(fetched_prices),
        },
    }


@router.get("/token-search")
async def search_tokens(
    query: Optional[str] = None,
    chain: str = "0x1",
    limit: Optional[str] = None,
    cursor: Optional[str] = None,
    moralis: MoralisClient = Depends(get_moralis_client),
):
    """Token metadata and price for an address, or a name/symbol search."""
    if not query:
        return error_response(400, "Search query is required")

    page_size = parse_limit(limit, default=10)
    if page_size is None:
        return error_response(400, INVALID_LIMIT_MESSAGE)

    is_address = Web3.is_address(query.lower())
    price = None
    try:
        if is_address:
            tokens = await moralis.get_token_metadata([query], chain)
            try:
                price = await moralis.get_token_price(query, chain)
            except Exception as e:
                # Metadata alone is still a useful answer
                logger.warning(f"Error fetching token price for {query}: {e}")
        else:
            tokens = await moralis.search_tokens(query, chain, limit=page_size, cursor=cursor or None)
    except Exception as e:
        logger.error(f"Error searching tokens: {e}")
        return error_response(500, "Failed to search tokens")

    return {
        "success": True,
        "data": {
            "tokens": tokens,
            "price": price,
            "query": query,
            "isAddress": is_address,
        },
    }
