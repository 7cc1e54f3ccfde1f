from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from wallet_api.core.database import init_db


WALLET = "0xAbC0000000000000000000000000000000000001"


class FakeClock:
    """Manually advanced clock usable as both a monotonic timer and a UTC now()."""

    def __init__(self) -> None:
        self.offset = 0.0
        self._start = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def advance(self, seconds: float) -> None:
        self.offset += seconds

    def monotonic(self) -> float:
        return self.offset

    def now(self) -> datetime:
        return self._start + timedelta(seconds=self.offset)


class DictPersistentCache:
    """In-memory stand-in for PersistentCache that counts lookups."""

    def __init__(self, clock: FakeClock, ttl_seconds: int = 1800) -> None:
        self.clock = clock
        self.ttl_seconds = ttl_seconds
        self.rows: Dict[str, tuple] = {}
        self.get_calls = 0
        self.set_calls = 0

    def get(self, key: str) -> Optional[Any]:
        self.get_calls += 1
        row = self.rows.get(key)
        if row is None:
            return None
        value, stored_at = row
        if self.clock.monotonic() - stored_at >= self.ttl_seconds:
            return None
        return value

    def set(self, key: str, value: Any) -> bool:
        self.set_calls += 1
        self.rows[key] = (value, self.clock.monotonic())
        return True

    def delete(self, key: str) -> None:
        self.rows.pop(key, None)


class FakeMoralis:
    """Records calls and serves canned NFT data without HTTP."""

    def __init__(self, nfts: Optional[List[Dict[str, Any]]] = None, failing: Optional[set] = None) -> None:
        from wallet_api.services.moralis.models import parse_wallet_nfts

        self._page = parse_wallet_nfts({"result": nfts or [], "cursor": None})
        self.failing = failing or set()
        self.metadata_calls: List[str] = []
        self.nft_calls = 0

    async def get_wallet_nfts(self, address, chain="0x1", limit=100, cursor=None):
        self.nft_calls += 1
        return self._page

    async def get_nft_contract_metadata(self, address, chain="0x1"):
        from wallet_api.services.moralis.models import ContractMetadata

        self.metadata_calls.append(address)
        if address in self.failing:
            raise ValueError(f"invalid address {address}")
        return ContractMetadata(
            token_address=address,
            name=f"Collection {address[-4:]}",
            symbol=f"C{address[-2:]}",
            contract_type="ERC721",
            synced_at="2026-01-01T00:00:00.000Z",
        )


def nft_record(token_address: str, token_id: str, name: Optional[str] = "Punks", symbol: Optional[str] = "PNK") -> Dict[str, Any]:
    return {
        "token_address": token_address,
        "token_id": token_id,
        "name": name,
        "symbol": symbol,
        "amount": "1",
        "contract_type": "ERC721",
        "metadata": '{"name": "token"}',
        "normalized_metadata": {"image": f"ipfs://{token_address}/{token_id}.png"},
    }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'wallet_api_test.db'}",
        connect_args={"check_same_thread": False},
    )
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()
