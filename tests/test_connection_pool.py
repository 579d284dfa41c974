"""Tests for the aiosqlite connection pool."""

import asyncio
from unittest.mock import AsyncMock

import aiosqlite
import pytest

from lightbnb.config import DatabaseSettings
from lightbnb.db.connection import CURRENT_SCHEMA_VERSION, ConnectionPool

pytestmark = pytest.mark.asyncio

REQUIRED_TABLES = ["users", "properties", "reservations", "property_reviews"]


async def _tables(pool):
    async with pool.acquire() as conn:
        cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        return [row[0] for row in await cursor.fetchall()]


class TestDatabaseInitialization:
    """Test schema bootstrap and version tracking."""

    async def test_in_memory_pool_creates_schema(self, pool):
        tables = await _tables(pool)

        for table in REQUIRED_TABLES:
            assert table in tables

    async def test_file_database_schema_and_version(self, tmp_path):
        settings = DatabaseSettings(path=str(tmp_path / "lightbnb.db"), pool_size=3, pool_timeout=1.0)

        async with ConnectionPool(settings) as pool:
            async with pool.acquire() as conn:
                cursor = await conn.execute("PRAGMA user_version")
                row = await cursor.fetchone()
                assert row[0] == CURRENT_SCHEMA_VERSION
            assert len(pool._connections) == 3

        # Reopening an existing database keeps its data.
        async with ConnectionPool(settings) as pool:
            assert "properties" in await _tables(pool)

    async def test_foreign_keys_enabled(self, pool):
        async with pool.acquire() as conn:
            cursor = await conn.execute("PRAGMA foreign_keys")
            row = await cursor.fetchone()
            assert row[0] == 1

    async def test_schema_file_is_used_when_present(self, tmp_path):
        schema = tmp_path / "schema.sql"
        schema.write_text("CREATE TABLE marker (id INTEGER PRIMARY KEY);", encoding="utf-8")
        settings = DatabaseSettings(path=":memory:", pool_size=1, schema_file=str(schema))

        async with ConnectionPool(settings) as pool:
            tables = await _tables(pool)

        assert tables == ["marker"]

    async def test_missing_schema_file_falls_back_to_builtin(self, tmp_path):
        settings = DatabaseSettings(
            path=":memory:", pool_size=1, schema_file=str(tmp_path / "missing.sql")
        )

        async with ConnectionPool(settings) as pool:
            tables = await _tables(pool)

        for table in REQUIRED_TABLES:
            assert table in tables


class TestPoolLifecycle:
    """Open, acquire and close behaviour."""

    async def test_acquire_before_open_fails(self, db_settings):
        pool = ConnectionPool(db_settings)

        assert not pool.is_open
        with pytest.raises(RuntimeError, match="not open"):
            async with pool.acquire():
                pass

    async def test_open_is_idempotent(self, pool):
        queue = pool._queue
        await pool.open()

        assert pool._queue is queue

    async def test_close_resets_pool(self, db_settings):
        pool = ConnectionPool(db_settings)
        await pool.open()
        assert pool.is_open

        await pool.close()
        await pool.close()

        assert not pool.is_open
        with pytest.raises(RuntimeError):
            async with pool.acquire():
                pass

    async def test_acquire_times_out_when_exhausted(self):
        pool = ConnectionPool(DatabaseSettings(path=":memory:", pool_size=1, pool_timeout=0.05))
        await pool.open()
        try:
            async with pool.acquire():
                with pytest.raises(RuntimeError, match="timeout"):
                    async with pool.acquire():
                        pass
        finally:
            await pool.close()

    async def test_connection_returned_after_error(self, pool):
        with pytest.raises(ValueError):
            async with pool.acquire():
                raise ValueError("boom")

        assert pool._queue.qsize() == pool.size

    async def test_concurrent_acquire(self, pool):
        async def use():
            async with pool.acquire() as conn:
                cursor = await conn.execute("SELECT 1")
                row = await cursor.fetchone()
                await asyncio.sleep(0)
                return row[0]

        assert await asyncio.gather(*(use() for _ in range(6))) == [1] * 6

    async def test_broken_file_connection_is_replaced(self, tmp_path):
        settings = DatabaseSettings(path=str(tmp_path / "db.sqlite"), pool_size=1, pool_timeout=1.0)
        async with ConnectionPool(settings) as pool:
            broken = pool._connections[0]
            await broken.close()

            async with pool.acquire() as conn:
                assert conn is not broken
                cursor = await conn.execute("SELECT COUNT(*) FROM users")
                assert (await cursor.fetchone())[0] == 0

            assert pool._connections[0] is not broken


    async def test_broken_connection_is_closed_when_replaced(self, tmp_path):
        settings = DatabaseSettings(path=str(tmp_path / "db.sqlite"), pool_size=1, pool_timeout=1.0)
        async with ConnectionPool(settings) as pool:
            real = await pool._queue.get()
            await real.close()
            broken = AsyncMock()
            broken.execute.side_effect = aiosqlite.OperationalError("disk I/O error")
            pool._connections = [broken]
            await pool._queue.put(broken)

            async with pool.acquire() as conn:
                assert conn is not broken

            broken.close.assert_awaited_once()
