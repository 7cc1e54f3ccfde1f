"""
Status endpoints for upstream dependencies.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from wallet_api.api.deps import get_moralis_client
from wallet_api.core.config import get_settings
from wallet_api.services.moralis import MoralisClient
from wallet_api.services.status import check_rpc_endpoints

logger = logging.getLogger(__name__)

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("")
async def rpc_status():
    """Liveness of every configured mainnet RPC endpoint."""
    return await check_rpc_endpoints(get_settings().rpc_urls)


@router.get("/moralis")
async def moralis_status(moralis: MoralisClient = Depends(get_moralis_client)):
    """Moralis reachability, reported as the latest block it knows about."""
    try:
        block = await moralis.get_latest_block("0x1")
    except Exception as e:
        logger.error(f"Moralis status check failed: {e}")
        return JSONResponse(status_code=500, content={
            "status": "error",
            "message": str(e) or "Unknown error checking Moralis status",
            "timestamp": _now(),
        })

    if not block or block.get("block") is None:
        return JSONResponse(status_code=500, content={
            "status": "error",
            "message": "Moralis API returned no block",
            "timestamp": _now(),
        })

    return {
        "status": "ok",
        "syncedToBlock": block["block"],
        "timestamp": _now(),
    }
