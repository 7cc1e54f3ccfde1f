"""
Webhook signature verification.
"""
import hmac
import logging
from abc import ABC, abstractmethod
from typing import Optional

from web3 import Web3

logger = logging.getLogger(__name__)


class SignatureVerifier(ABC):
    """Decides whether a webhook body was signed by the stream provider."""

    @abstractmethod
    def verify(self, body: bytes, signature: str) -> bool:
        """
        Args:
            body: Raw request body, exactly as received
            signature: Value of the ``x-signature`` header

        Returns:
            True if the signature is valid for the body
        """
        pass


class RejectAllVerifier(SignatureVerifier):
    """Rejects every webhook. Used until a streams secret is configured."""

    def verify(self, body: bytes, signature: str) -> bool:
        logger.warning("Rejecting webhook: no streams secret configured")
        return False


class MoralisSignatureVerifier(SignatureVerifier):
    """Moralis Streams scheme: ``keccak256(body + secret)`` as hex."""

    def __init__(self, secret: str):
        if not secret:
            raise ValueError("Moralis streams secret must not be empty")
        self.secret = secret

    def expected_signature(self, body: bytes) -> str:
        digest = Web3.keccak(text=body.decode("utf-8") + self.secret)
        return Web3.to_hex(digest)

    def verify(self, body: bytes, signature: str) -> bool:
        try:
            expected = self.expected_signature(body)
        except UnicodeDecodeError:
            return False
        return hmac.compare_digest(_normalize(expected), _normalize(signature))


def _normalize(signature: str) -> str:
    signature = signature.strip().lower()
    return signature[2:] if signature.startswith("0x") else signature


def build_verifier(secret: Optional[str]) -> SignatureVerifier:
    """Moralis verifier when a secret is configured, reject-all otherwise."""
    if secret:
        return MoralisSignatureVerifier(secret)
    return RejectAllVerifier()
