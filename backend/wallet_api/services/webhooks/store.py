"""
Persistence for NFT webhook pushes.
"""
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import sessionmaker

from wallet_api.core.database import SessionLocal
from wallet_api.models.nft_webhook import NftWebhook

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class WebhookRecord:
    """A stored webhook push."""
    id: int
    chain: str
    address: str
    collections: List[Dict[str, Any]]
    stream_id: Optional[str]
    received_at: datetime

    @classmethod
    def from_row(cls, row: NftWebhook) -> "WebhookRecord":
        received_at = row.received_at
        if received_at.tzinfo is None:
            received_at = received_at.replace(tzinfo=timezone.utc)
        return cls(
            id=row.id,
            chain=row.chain,
            address=row.address,
            collections=json.loads(row.collections or "[]"),
            stream_id=row.stream_id,
            received_at=received_at,
        )


class WebhookStore:
    """Writes webhook pushes and reads back the freshest one per wallet."""

    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.session_factory = session_factory
        self.clock = clock

    def record(
        self,
        chain: str,
        address: str,
        collections: List[Dict[str, Any]],
        stream_id: Optional[str],
        raw: Dict[str, Any],
    ) -> int:
        """Store one push. Raises on database errors."""
        db = self.session_factory()
        try:
            row = NftWebhook(
                chain=chain,
                address=address.lower(),
                collections=json.dumps(collections),
                stream_id=stream_id,
                raw=json.dumps(raw),
                received_at=self.clock(),
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            logger.info(f"Stored NFT webhook for {row.address} on {chain} (stream={stream_id})")
            return row.id
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def latest_recent(self, chain: str, address: str, max_age_seconds: float) -> Optional[WebhookRecord]:
        """Newest push for the wallet received within ``max_age_seconds``."""
        cutoff = self.clock() - timedelta(seconds=max_age_seconds)
        db = self.session_factory()
        try:
            row = (
                db.query(NftWebhook)
                .filter(
                    NftWebhook.address == address.lower(),
                    NftWebhook.chain == chain,
                    NftWebhook.received_at >= cutoff,
                )
                .order_by(NftWebhook.received_at.desc(), NftWebhook.id.desc())
                .first()
            )
            return WebhookRecord.from_row(row) if row else None
        finally:
            db.close()
