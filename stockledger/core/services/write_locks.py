"""Per-key asyncio locks with bounded waiting."""

import asyncio
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager

from stockledger.config import get_logger

logger = get_logger(__name__)


class LockTimeout(Exception):
    """Raised when a keyed lock is not acquired within the timeout."""


class KeyedLockRegistry:
    """
    One asyncio.Lock per key, created on demand and dropped when idle.

    Writers sharing a key run one at a time; different keys never contend.
    """

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._waiters: dict[Hashable, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(
        self, key: Hashable, timeout: float | None = None
    ) -> AsyncIterator[None]:
        """
        Hold the lock for key.

        Usage:
            async with registry.hold(("P1", "W1")):
                ...

        Raises LockTimeout if the lock is not free within timeout seconds.
        """
        wait = self.timeout if timeout is None else timeout
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1

        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=wait)
            except TimeoutError as e:
                logger.warning("keyed_lock_timeout", key=str(key), timeout=wait)
                raise LockTimeout(f"Timed out after {wait}s waiting for {key!r}") from e

            try:
                yield
            finally:
                lock.release()
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                self._locks.pop(key, None)
