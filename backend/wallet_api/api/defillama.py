"""
DefiLlama proxy endpoints.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends

from wallet_api.api.deps import get_defillama_client
from wallet_api.api.responses import error_response
from wallet_api.services.defillama import DefiLlamaClient

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/protocol/{name}")
async def get_protocol(name: str, client: DefiLlamaClient = Depends(get_defillama_client)):
    try:
        return {"success": True, "data": await client.get_protocol(name)}
    except Exception as e:
        logger.error(f"DefiLlama protocol fetch failed for {name}: {e}")
        return error_response(502, str(e))


@router.get("/chains")
async def get_chains(client: DefiLlamaClient = Depends(get_defillama_client)):
    try:
        return {"success": True, "data": await client.get_all_chains_tvl()}
    except Exception as e:
        logger.error(f"DefiLlama chains fetch failed: {e}")
        return error_response(502, str(e))


@router.get("/prices")
async def get_prices(
    coins: Optional[str] = None,
    client: DefiLlamaClient = Depends(get_defillama_client),
):
    """Current prices; ``coins`` is a comma-separated list of "chain:address"."""
    if not coins:
        return error_response(400, "coins parameter is required")

    coin_list = [coin.strip() for coin in coins.split(",") if coin.strip()]
    try:
        return {"success": True, "data": await client.get_token_prices(coin_list)}
    except Exception as e:
        logger.error(f"DefiLlama prices fetch failed: {e}")
        return error_response(502, str(e))


@router.get("/yields")
async def get_yields(client: DefiLlamaClient = Depends(get_defillama_client)):
    try:
        return {"success": True, "data": await client.get_yields()}
    except Exception as e:
        logger.error(f"DefiLlama yields fetch failed: {e}")
        return error_response(502, str(e))
