"""
Data cache model: durable tier of the collection metadata cache.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from wallet_api.core.database import Base


class DataCache(Base):
    __tablename__ = "data_cache"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(255), unique=True, index=True, nullable=False)  # "chain:address"
    payload = Column(Text, nullable=False)  # JSON string
    fetched_at = Column(DateTime(timezone=True), server_default=func.now())
    ttl_seconds = Column(Integer, nullable=False, default=1800)  # Time to live
