"""
Spam token detection for a wallet.

Moralis flags suspicious tokens with ``possible_spam``. Flagged tokens are
graded against the wallet's own transfer history: a token that was only
ever received (an unsolicited airdrop) or whose holding is worth less than
``LOW_VALUE_USD`` counts as a pattern, and a flagged token matching two or
more patterns gets ``high`` confidence.
"""
import logging
from typing import Any, Dict, List, Set

from pydantic import ValidationError

from wallet_api.services.moralis.models import TokenBalance

logger = logging.getLogger(__name__)

LOW_VALUE_USD = 0.1
HIGH_CONFIDENCE_PATTERNS = 2


def airdropped_tokens(address: str, transfers: List[Dict[str, Any]]) -> Set[str]:
    """Token contracts the wallet received but never sent."""
    wallet = address.lower()
    received: Set[str] = set()
    sent: Set[str] = set()

    for transfer in transfers:
        token_address = transfer.get("address")
        if not token_address:
            continue
        if (transfer.get("to_address") or "").lower() == wallet:
            received.add(token_address)
        if (transfer.get("from_address") or "").lower() == wallet:
            sent.add(token_address)

    return received - sent


def low_value_tokens(tokens: List[Dict[str, Any]]) -> Set[str]:
    """Token contracts whose priced holding is above zero but under LOW_VALUE_USD."""
    flagged: Set[str] = set()
    for raw in tokens:
        try:
            balance = TokenBalance.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Skipping malformed token balance: {e.errors()[0].get('msg')}")
            continue
        if not balance.token_address:
            continue
        try:
            value = balance.value_usd
        except ValueError:
            # Non-numeric balance string
            continue
        if 0 < value < LOW_VALUE_USD:
            flagged.add(balance.token_address)
    return flagged


def detect_spam(address: str, tokens: List[Dict[str, Any]], transfers: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Split a wallet's tokens into spam and safe lists.

    Args:
        address: Wallet address
        tokens: Raw ERC-20 balance records
        transfers: Raw ERC-20 transfer records for the wallet

    Returns:
        Dict with ``spam_tokens`` (flagged records plus ``spam_confidence``),
        ``safe_tokens`` and the ``spam_patterns`` found
    """
    airdropped = airdropped_tokens(address, transfers)
    low_value = low_value_tokens(tokens)

    spam_tokens = []
    safe_tokens = []
    for token in tokens:
        if token.get("possible_spam") is not True:
            safe_tokens.append(token)
            continue
        token_address = token.get("token_address")
        pattern_count = (token_address in airdropped) + (token_address in low_value)
        confidence = "high" if pattern_count >= HIGH_CONFIDENCE_PATTERNS else "medium"
        spam_tokens.append({**token, "spam_confidence": confidence})

    logger.info(
        f"spam_scan: address={address}, tokens={len(tokens)}, spam={len(spam_tokens)}, "
        f"airdropped={len(airdropped)}, low_value={len(low_value)}"
    )
    return {
        "spam_tokens": spam_tokens,
        "safe_tokens": safe_tokens,
        "spam_patterns": {
            "airdropped_tokens": sorted(airdropped),
            "low_value_tokens": sorted(low_value),
        },
    }
