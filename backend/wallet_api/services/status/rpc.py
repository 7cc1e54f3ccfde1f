"""
JSON-RPC liveness checks (``eth_blockNumber``).
"""
import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import httpx

logger = logging.getLogger(__name__)

RPC_TIMEOUT_SECONDS = 3.0


async def check_rpc_endpoint(
    url: str,
    timeout: float = RPC_TIMEOUT_SECONDS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """Ask one endpoint for its block number.

    Returns:
        Dict with ``success`` and either ``blockNumber``/``blockNumberDecimal``
        or ``error``. Never raises.
    """
    body = {
        "jsonrpc": "2.0",
        "method": "eth_blockNumber",
        "params": [],
        "id": int(time.time() * 1000),
    }
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(url, json=body)
    except httpx.TimeoutException:
        return {"success": False, "error": f"Timed out after {timeout}s"}
    except httpx.HTTPError as e:
        return {"success": False, "error": str(e) or type(e).__name__}

    if response.status_code >= 400:
        return {"success": False, "error": f"HTTP error: {response.status_code}"}

    try:
        data = response.json()
    except ValueError:
        return {"success": False, "error": "Invalid JSON response"}

    if not isinstance(data, dict):
        return {"success": False, "error": "Invalid JSON-RPC response"}

    if data.get("error"):
        error = data["error"]
        message = error.get("message") if isinstance(error, dict) else str(error)
        return {"success": False, "error": message or "Unknown JSON-RPC error"}

    result = data.get("result")
    if not result:
        return {"success": False, "error": "No result returned"}

    try:
        block_number = int(result, 16)
    except (TypeError, ValueError):
        return {"success": False, "error": f"Invalid block number: {result!r:.50}"}

    return {
        "success": True,
        "blockNumber": result,
        "blockNumberDecimal": block_number,
    }


def _hostname(url: str) -> str:
    if "://" not in url:
        return url
    return urlparse(url).hostname or url


async def check_rpc_endpoints(
    urls: List[str],
    timeout: float = RPC_TIMEOUT_SECONDS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """Check every endpoint concurrently and pick the first working one."""
    checks = await asyncio.gather(*(check_rpc_endpoint(url, timeout, transport) for url in urls))
    results = [{"url": url, "hostname": _hostname(url), **check} for url, check in zip(urls, checks)]

    working = next((r for r in results if r["success"]), None)
    if working is None:
        logger.warning(f"No working RPC endpoint among {len(urls)} configured")

    return {
        "status": "ok" if working else "error",
        "endpoints": results,
        "workingEndpoint": working,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
