"""
NFT webhook log model.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, Index
from sqlalchemy.sql import func
from wallet_api.core.database import Base


class NftWebhook(Base):
    """Collections pushed by a Moralis stream for one wallet on one chain."""
    __tablename__ = "nft_webhooks"

    id = Column(Integer, primary_key=True, index=True)
    chain = Column(String(20), nullable=False)  # Hex chain id, e.g. "0x1"
    address = Column(String(64), nullable=False)  # Lower-cased wallet address
    collections = Column(Text, nullable=False, default="[]")  # JSON array
    stream_id = Column(String(100), nullable=True)
    raw = Column(Text, nullable=True)  # Webhook body as received, JSON
    received_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_nft_webhooks_lookup", "address", "chain", "received_at"),
    )
