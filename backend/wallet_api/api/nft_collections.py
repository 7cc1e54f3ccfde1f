"""
NFT collections endpoints: wallet collections (GET) and the webhook receiver (POST).
"""
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError

from wallet_api.api.deps import get_collections_service, get_signature_verifier
from wallet_api.api.params import INVALID_LIMIT_MESSAGE, parse_limit
from wallet_api.api.responses import error_response
from wallet_api.services.moralis.models import NftWebhookPayload
from wallet_api.services.nft import NftCollectionsService
from wallet_api.services.retry import is_rate_limit_error
from wallet_api.services.webhooks import SignatureVerifier

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def get_nft_collections(
    address: Optional[str] = None,
    chain: str = "0x1",
    limit: Optional[str] = None,
    cursor: Optional[str] = None,
    skip_cache: Optional[str] = Query(None, alias="skipCache"),
    service: NftCollectionsService = Depends(get_collections_service),
):
    """NFT collections owned by a wallet.

    Serves a webhook push from the last few minutes when one exists,
    otherwise groups the wallet's NFTs by collection and enriches them with
    contract metadata.
    """
    if not address:
        return error_response(400, "Missing wallet address parameter")

    page_size = parse_limit(limit, default=100)
    if page_size is None:
        return error_response(400, INVALID_LIMIT_MESSAGE)

    try:
        return await service.get_collections(
            address=address,
            chain=chain or "0x1",
            limit=page_size,
            cursor=cursor or None,
            skip_cache=skip_cache == "true",
        )
    except Exception as e:
        if is_rate_limit_error(e):
            return error_response(429, "Rate limit exceeded. Please try again later.", isRateLimited=True)

        logger.error(f"Error fetching NFT collections: {e}")
        return error_response(500, "Failed to fetch NFT collections")


@router.post("")
async def receive_nft_webhook(
    request: Request,
    service: NftCollectionsService = Depends(get_collections_service),
    verifier: SignatureVerifier = Depends(get_signature_verifier),
):
    """Store collections pushed by a Moralis stream for later GETs."""
    signature = request.headers.get("x-signature")
    if not signature:
        return error_response(401, "Missing webhook signature")

    try:
        body = await request.body()
        if not verifier.verify(body, signature):
            return error_response(401, "Invalid webhook signature")

        raw = json.loads(body)
        try:
            payload = NftWebhookPayload.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Invalid NFT webhook body: {e.errors()[0].get('msg')}")
            return error_response(400, "Invalid webhook data")

        if not await service.record_webhook(payload, raw):
            return error_response(400, "Invalid webhook data")

        return {"success": True}
    except Exception as e:
        logger.error(f"Error processing webhook: {e}")
        return error_response(500, "Webhook processing error")
