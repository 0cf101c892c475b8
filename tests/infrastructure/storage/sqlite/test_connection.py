"""Tests for the SQLite connection pool."""

import sqlite3
from pathlib import Path

import aiosqlite
import pytest

from stockledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    get_connection,
    get_pool,
    is_locked_error,
)


class TestConnectionPool:
    async def test_initialize_opens_connections(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=2)
        try:
            await pool.initialize()
            assert len(pool._connections) == 2
            async with pool.acquire() as conn:
                cursor = await conn.execute("PRAGMA foreign_keys")
                assert (await cursor.fetchone())[0] == 1
                cursor = await conn.execute("PRAGMA journal_mode")
                assert (await cursor.fetchone())[0] == "wal"
        finally:
            await pool.close()

    async def test_transaction_rolls_back_on_error(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)
        try:
            async with pool.transaction() as conn:
                await conn.execute("CREATE TABLE t (x INTEGER)")

            with pytest.raises(RuntimeError):
                async with pool.transaction() as conn:
                    await conn.execute("INSERT INTO t VALUES (1)")
                    raise RuntimeError("abort")

            async with pool.acquire() as conn:
                cursor = await conn.execute("SELECT COUNT(*) FROM t")
                assert (await cursor.fetchone())[0] == 0
        finally:
            await pool.close()

    async def test_write_transaction_commits(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)
        try:
            async with pool.transaction() as conn:
                await conn.execute("CREATE TABLE t (x INTEGER)")
            async with pool.write_transaction() as conn:
                await conn.execute("INSERT INTO t VALUES (1)")
            async with pool.acquire() as conn:
                cursor = await conn.execute("SELECT COUNT(*) FROM t")
                assert (await cursor.fetchone())[0] == 1
        finally:
            await pool.close()

    async def test_second_writer_times_out_as_locked(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=2, busy_timeout=50)
        try:
            async with pool.transaction() as conn:
                await conn.execute("CREATE TABLE t (x INTEGER)")

            async with pool.write_transaction():
                with pytest.raises(aiosqlite.OperationalError) as exc_info:
                    async with pool.write_transaction():
                        pass
            assert is_locked_error(exc_info.value)
        finally:
            await pool.close()


class TestGlobalPool:
    async def test_get_pool_uses_settings(self, sqlite_db: Path):
        pool = await get_pool()
        assert pool.db_path == sqlite_db
        assert await get_pool() is pool

        async with get_connection() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM stock_movements")
            assert (await cursor.fetchone())[0] == 0


class TestIsLockedError:
    def test_locked(self):
        assert is_locked_error(sqlite3.OperationalError("database is locked"))

    def test_other_operational_error(self):
        assert not is_locked_error(sqlite3.OperationalError("no such table: x"))

    def test_not_operational(self):
        assert not is_locked_error(ValueError("database is locked"))
