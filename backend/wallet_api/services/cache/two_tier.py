"""
Two-tier cache: in-process memory in front of the database tier.
"""
import asyncio
import logging
from typing import Any, Optional, Set, Tuple

from wallet_api.services.cache.memory_cache import MemoryCache
from wallet_api.services.cache.persistent_cache import PersistentCache

logger = logging.getLogger(__name__)

DURABILITY_SYNC = "sync"
DURABILITY_ASYNC = "async"
DURABILITY_MODES = (DURABILITY_SYNC, DURABILITY_ASYNC)


def cache_key(chain: str, address: str) -> str:
    """Cache key for a contract on a chain."""
    return f"{chain}:{address.lower()}"


class TwoTierCache:
    """Memory first, then the persistent tier, then a miss.

    A persistent hit back-fills memory, so a memory entry is never older
    than the persistent entry for the same key.

    ``durability_mode`` decides whether ``set`` waits for the database write
    ("sync") or schedules it and returns ("async"). Scheduled writes are
    tracked; ``flush()`` awaits them.
    """

    def __init__(
        self,
        memory: MemoryCache,
        persistent: PersistentCache,
        durability_mode: str = DURABILITY_ASYNC,
    ):
        if durability_mode not in DURABILITY_MODES:
            raise ValueError(f"Unknown durability mode: {durability_mode!r} (expected one of {DURABILITY_MODES})")
        self.memory = memory
        self.persistent = persistent
        self.durability_mode = durability_mode
        self._pending: Set[asyncio.Task] = set()

    async def get(self, key: str) -> Optional[Tuple[Any, str]]:
        """Look up ``key``.

        Returns:
            ``(value, "memory")`` or ``(value, "persistent")`` on a hit,
            None on a miss in both tiers
        """
        value = self.memory.get(key)
        if value is not None:
            return value, "memory"

        value = await asyncio.to_thread(self.persistent.get, key)
        if value is not None:
            self.memory.set(key, value)
            return value, "persistent"

        return None

    async def set(self, key: str, value: Any) -> None:
        self.memory.set(key, value)

        if self.durability_mode == DURABILITY_SYNC:
            await asyncio.to_thread(self.persistent.set, key, value)
            return

        task = asyncio.create_task(asyncio.to_thread(self.persistent.set, key, value))
        self._pending.add(task)
        task.add_done_callback(self._on_write_done)

    def _on_write_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Persistent cache write failed: {error}")

    async def invalidate(self, key: str) -> None:
        self.memory.invalidate(key)
        await asyncio.to_thread(self.persistent.delete, key)

    async def flush(self) -> None:
        """Wait for scheduled persistent writes to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def pending_writes(self) -> int:
        return len(self._pending)
