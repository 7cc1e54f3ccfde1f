"""
Moralis Streams webhook receiver.
"""
import json
import logging

from fastapi import APIRouter, Depends, Request

from wallet_api.api.deps import get_signature_verifier
from wallet_api.api.responses import error_response
from wallet_api.services.webhooks import SignatureVerifier

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhook")
async def receive_stream_event(
    request: Request,
    verifier: SignatureVerifier = Depends(get_signature_verifier),
):
    """Acknowledge a stream event and tally what it carried.

    Only confirmed events are counted; unconfirmed ones are acknowledged
    so Moralis does not redeliver them.
    """
    try:
        body = await request.body()
        signature = request.headers.get("x-signature") or ""
        if not signature or not verifier.verify(body, signature):
            return error_response(401, "Invalid webhook signature")

        event = json.loads(body)
        if not isinstance(event, dict):
            return error_response(400, "Invalid webhook data")

        if not event.get("confirmed"):
            return {"success": True, "message": "Unconfirmed event received, not processed"}

        txs = event.get("txs") or []
        erc20_transfers = event.get("erc20Transfers") or []
        nft_transfers = event.get("nftTransfers") or []

        logger.info(
            f"stream_event_processed: stream={event.get('streamId')}, chain={event.get('chainId')}, "
            f"transactions={len(txs)}, token_transfers={len(erc20_transfers)}, nft_transfers={len(nft_transfers)}"
        )
        return {
            "success": True,
            "processed": {
                "transactions": len(txs),
                "tokenTransfers": len(erc20_transfers),
                "nftTransfers": len(nft_transfers),
            },
        }
    except Exception as e:
        logger.error(f"Error processing Moralis webhook: {e}")
        return error_response(500, "Failed to process webhook")
