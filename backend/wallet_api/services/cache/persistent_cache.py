"""
Database-backed cache tier (data_cache table).
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from sqlalchemy.orm import sessionmaker

from wallet_api.core.database import SessionLocal
from wallet_api.models.data_cache import DataCache

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite returns naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class PersistentCache:
    """JSON payloads stored in ``data_cache`` with a TTL per row.

    Read and write failures are logged and swallowed: a broken database
    degrades to cache misses, it never fails the caller.
    """

    def __init__(
        self,
        ttl_seconds: int,
        session_factory: sessionmaker = SessionLocal,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.ttl_seconds = ttl_seconds
        self.session_factory = session_factory
        self.clock = clock

    def get(self, key: str) -> Optional[Any]:
        """Return the cached payload, or None if missing or expired."""
        db = self.session_factory()
        try:
            entry = db.query(DataCache).filter(DataCache.key == key).first()
            if not entry:
                return None
            age = (self.clock() - _as_utc(entry.fetched_at)).total_seconds()
            if age >= min(entry.ttl_seconds, self.ttl_seconds):
                return None
            return json.loads(entry.payload)
        except Exception as e:
            logger.error(f"Error reading from persistent cache: key={key}, error={e}")
            return None
        finally:
            db.close()

    def set(self, key: str, value: Any) -> bool:
        """Upsert the payload for ``key``. Returns False if the write failed."""
        db = self.session_factory()
        try:
            payload = json.dumps(value)
            entry = db.query(DataCache).filter(DataCache.key == key).first()
            if entry:
                entry.payload = payload
                entry.fetched_at = self.clock()
                entry.ttl_seconds = self.ttl_seconds
            else:
                db.add(DataCache(
                    key=key,
                    payload=payload,
                    fetched_at=self.clock(),
                    ttl_seconds=self.ttl_seconds,
                ))
            db.commit()
            return True
        except Exception as e:
            db.rollback()
            logger.error(f"Error writing to persistent cache: key={key}, error={e}")
            return False
        finally:
            db.close()

    def delete(self, key: str) -> None:
        db = self.session_factory()
        try:
            db.query(DataCache).filter(DataCache.key == key).delete()
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Error deleting from persistent cache: key={key}, error={e}")
        finally:
            db.close()
