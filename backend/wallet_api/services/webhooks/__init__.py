"""
Inbound webhook handling: signature checks and the webhook log.
"""
from wallet_api.services.webhooks.store import WebhookStore, WebhookRecord
from wallet_api.services.webhooks.verifier import (
    SignatureVerifier,
    RejectAllVerifier,
    MoralisSignatureVerifier,
    build_verifier,
)

__all__ = [
    "WebhookStore",
    "WebhookRecord",
    "SignatureVerifier",
    "RejectAllVerifier",
    "MoralisSignatureVerifier",
    "build_verifier",
]
