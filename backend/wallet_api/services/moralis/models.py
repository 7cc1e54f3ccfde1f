"""
Boundary models for Moralis API responses and webhook bodies.
"""
import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


class WalletNft(BaseModel):
    """One ownership record from ``GET /{address}/nft``."""
    model_config = ConfigDict(extra="allow")

    token_address: str
    token_id: str
    name: Optional[str] = None
    symbol: Optional[str] = None
    amount: Optional[str] = None
    contract_type: Optional[str] = None
    metadata: Optional[str] = None  # Raw token metadata JSON string
    normalized_metadata: Optional[Dict[str, Any]] = None

    @property
    def image(self) -> str:
        if self.normalized_metadata:
            return self.normalized_metadata.get("image") or ""
        return ""


class WalletNftPage(BaseModel):
    """A page of wallet NFTs."""
    result: List[WalletNft] = []
    cursor: Optional[str] = None
    page: Optional[int] = None
    page_size: Optional[int] = None


class ContractMetadata(BaseModel):
    """Collection metadata from ``GET /nft/{address}/metadata``."""
    model_config = ConfigDict(extra="allow")

    token_address: Optional[str] = None
    name: Optional[str] = None
    symbol: Optional[str] = None
    contract_type: Optional[str] = None
    synced_at: Optional[str] = None


class TokenBalance(BaseModel):
    """ERC-20 balance entry."""
    model_config = ConfigDict(extra="allow")

    token_address: Optional[str] = None
    symbol: Optional[str] = None
    name: Optional[str] = None
    decimals: Optional[int] = None
    balance: Optional[str] = None
    usd_price: Optional[float] = Field(default=None, validation_alias=AliasChoices("usd_price", "usdPrice"))
    usd_value: Optional[float] = Field(default=None, validation_alias=AliasChoices("usd_value", "usdValue"))
    possible_spam: Optional[bool] = None

    @property
    def value_usd(self) -> float:
        """USD value of the holding; 0 when no price is known."""
        if self.usd_value is not None:
            return self.usd_value
        if self.usd_price is None or not self.balance:
            return 0.0
        return self.usd_price * int(self.balance) / (10 ** (self.decimals or 0))


class NftWebhookPayload(BaseModel):
    """Body posted to the NFT collections webhook."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    confirmed: bool = False
    chain_id: Optional[Union[str, int]] = Field(default=None, alias="chainId")
    address: Optional[str] = None
    collections: Optional[List[Dict[str, Any]]] = None  # null or absent means none
    stream_id: Optional[str] = Field(default=None, alias="streamId")


def parse_wallet_nfts(payload: Dict[str, Any]) -> WalletNftPage:
    """Validate a wallet NFT page record by record.

    Records that do not validate are logged and dropped so one malformed
    entry does not fail the page.
    """
    records = []
    for raw in payload.get("result") or []:
        try:
            records.append(WalletNft.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Skipping malformed NFT record: {e.errors()[0].get('msg')} ({raw!r:.200})")
    return WalletNftPage(
        result=records,
        cursor=payload.get("cursor") or None,
        page=payload.get("page"),
        page_size=payload.get("page_size"),
    )


def parse_token_balances(payload: Any) -> List[TokenBalance]:
    """Validate an ERC-20 balance list, skipping malformed entries."""
    items = payload.get("result", []) if isinstance(payload, dict) else payload or []
    balances = []
    for raw in items:
        try:
            balances.append(TokenBalance.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Skipping malformed token balance: {e.errors()[0].get('msg')}")
    return balances


def chain_id_to_hex(chain_id: Any) -> str:
    """Normalize a chain id ("1", 1, "0x1") to hex form ("0x1")."""
    text = str(chain_id).strip().lower()
    value = int(text, 16) if text.startswith("0x") else int(text, 10)
    return hex(value)
