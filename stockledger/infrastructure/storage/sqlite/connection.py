"""
aiosqlite connection pool for the catalog and the stock ledger.

Catalog writes use transaction(), which lets SQLite take the write lock
lazily. Ledger appends use write_transaction(), which issues BEGIN IMMEDIATE
so the balance read and the movement insert happen under one write lock,
across processes sharing the database file.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from stockledger.config import get_logger, get_settings

logger = get_logger(__name__)

# Applied to every pooled connection, in order
CONNECTION_PRAGMAS = (
    "journal_mode=WAL",
    "synchronous=NORMAL",
    "foreign_keys=ON",
)

LOCKED_MESSAGES = ("database is locked", "database is busy")


def is_locked_error(error: Exception) -> bool:
    """True when SQLite gave up waiting for another writer."""
    if not isinstance(error, aiosqlite.OperationalError):
        return False
    text = str(error).lower()
    return any(m in text for m in LOCKED_MESSAGES)


class ConnectionPool:
    """Fixed set of connections to one database file, handed out via a queue."""

    def __init__(self, db_path: Path, pool_size: int = 5, busy_timeout: int = 5000):
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout

        self._idle: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=pool_size)
        self._connections: list[aiosqlite.Connection] = []
        self._initialized = False
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        async with self._lock:
            if self._initialized:
                return
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            while len(self._connections) < self.pool_size:
                conn = await self._open()
                self._connections.append(conn)
                self._idle.put_nowait(conn)
            self._initialized = True
            logger.info(
                "connection_pool_initialized",
                db_path=str(self.db_path),
                pool_size=self.pool_size,
                busy_timeout_ms=self.busy_timeout,
            )

    async def _open(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path)
        for pragma in CONNECTION_PRAGMAS:
            await conn.execute(f"PRAGMA {pragma}")
        # Milliseconds SQLite retries before reporting "database is locked"
        await conn.execute(f"PRAGMA busy_timeout={int(self.busy_timeout)}")
        conn.row_factory = aiosqlite.Row
        return conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """Borrow a connection; it goes back to the pool on exit."""
        if not self._initialized:
            await self.initialize()
        conn = await self._idle.get()
        try:
            yield conn
        finally:
            self._idle.put_nowait(conn)

    @asynccontextmanager
    async def _scoped(self, begin: str | None) -> AsyncIterator[aiosqlite.Connection]:
        async with self.acquire() as conn:
            if begin is not None:
                try:
                    await conn.execute(begin)
                except aiosqlite.OperationalError as e:
                    if is_locked_error(e):
                        logger.warning("write_lock_contended", db_path=str(self.db_path))
                    raise
            try:
                yield conn
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise

    def transaction(self):
        """Commit on success, roll back on any exception."""
        return self._scoped(None)

    def write_transaction(self):
        """
        Like transaction(), but holds the database write lock from the start.

        A second writer waits up to busy_timeout, then fails with
        "database is locked" before running any statement.
        """
        return self._scoped("BEGIN IMMEDIATE")

    async def close(self) -> None:
        async with self._lock:
            while self._connections:
                await self._connections.pop().close()
            self._idle = asyncio.Queue(maxsize=self.pool_size)
            self._initialized = False
            logger.info("connection_pool_closed", db_path=str(self.db_path))


_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Process-wide pool built from storage settings on first use."""
    global _pool
    if _pool is None:
        storage = get_settings().storage
        _pool = ConnectionPool(
            db_path=storage.db_path,
            pool_size=storage.pool_size,
            busy_timeout=storage.busy_timeout,
        )
        await _pool.initialize()
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


@asynccontextmanager
async def get_connection() -> AsyncIterator[aiosqlite.Connection]:
    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


@asynccontextmanager
async def get_transaction() -> AsyncIterator[aiosqlite.Connection]:
    pool = await get_pool()
    async with pool.transaction() as conn:
        yield conn


@asynccontextmanager
async def get_write_transaction() -> AsyncIterator[aiosqlite.Connection]:
    pool = await get_pool()
    async with pool.write_transaction() as conn:
        yield conn
