"""
Wallet-level analysis helpers.
"""
from wallet_api.services.wallet.spam import detect_spam

__all__ = [
    "detect_spam",
]
