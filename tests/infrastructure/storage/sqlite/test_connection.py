"""Unit tests for SQLite connection pool."""

import asyncio
from pathlib import Path
from unittest.mock import patch

import aiosqlite
import pytest

from src.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_pool,
)

INSERT_ITEM = (
    "INSERT INTO items (name, starting_date, created_at, updated_at) "
    "VALUES (?, '2024-03-01', '2024-03-01T00:00:00', '2024-03-01T00:00:00')"
)


async def count_items(pool: ConnectionPool, name: str) -> int:
    async with pool.acquire() as conn:
        cursor = await conn.execute("SELECT COUNT(*) FROM items WHERE name = ?", (name,))
        return (await cursor.fetchone())[0]


class TestConnectionPoolInit:
    """Tests for ConnectionPool initialization."""

    def test_defaults(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path)
        assert pool.db_path == temp_db_path
        assert pool.pool_size == 5
        assert pool.busy_timeout == 30000
        assert pool.is_open is False

    async def test_initialize_creates_directory_and_connections(self, tmp_path: Path):
        db_path = tmp_path / "subdir" / "nested" / "test.db"
        pool = ConnectionPool(db_path, pool_size=3)

        await pool.initialize()
        await pool.initialize()

        assert db_path.parent.exists()
        assert len(pool._connections) == 3
        await pool.close()


class TestConnectionSettings:
    """Connections are created with WAL, foreign keys and Row factory."""

    async def test_pragmas(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path)
        conn = await pool._connect()

        cursor = await conn.execute("PRAGMA journal_mode")
        assert (await cursor.fetchone())[0].lower() == "wal"
        cursor = await conn.execute("PRAGMA foreign_keys")
        assert (await cursor.fetchone())[0] == 1
        assert conn.row_factory == aiosqlite.Row
        await conn.close()


class TestConnectionPoolAcquire:
    """Tests for ConnectionPool.acquire()."""

    async def test_returns_connection_to_pool_on_exception(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)
        await pool.initialize()

        with pytest.raises(ValueError):
            async with pool.acquire() as _conn:
                assert pool._idle.qsize() == 0
                raise ValueError("Test error")

        assert pool._idle.qsize() == 1
        await pool.close()

    async def test_blocks_when_pool_exhausted(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)
        await pool.initialize()

        async with pool.acquire() as _conn1:
            with pytest.raises(asyncio.TimeoutError):
                async with asyncio.timeout(0.1):
                    async with pool.acquire() as _conn2:
                        pass

        await pool.close()


class TestConnectionPoolTransaction:
    """Tests for ConnectionPool.transaction()."""

    async def test_commits_on_success(self, migrated_db: Path):
        pool = ConnectionPool(migrated_db, pool_size=1)

        async with pool.transaction() as conn:
            await conn.execute(INSERT_ITEM, ("Committed",))

        assert await count_items(pool, "Committed") == 1
        await pool.close()

    async def test_rolls_back_on_exception(self, migrated_db: Path):
        pool = ConnectionPool(migrated_db, pool_size=1)

        with pytest.raises(ValueError):
            async with pool.transaction(immediate=True) as conn:
                await conn.execute(INSERT_ITEM, ("RolledBack",))
                raise ValueError("Force rollback")

        assert await count_items(pool, "RolledBack") == 0
        await pool.close()

    async def test_immediate_takes_write_lock(self, migrated_db: Path):
        pool = ConnectionPool(migrated_db, pool_size=1)

        async with pool.transaction(immediate=True) as conn:
            assert conn.in_transaction

        await pool.close()


class TestGlobalPool:
    """Tests for the module-level pool helpers."""

    async def test_get_pool_is_singleton(self, mock_settings):
        import src.infrastructure.storage.sqlite.connection as conn_module

        conn_module._pool = None
        with patch.object(conn_module, "get_settings", return_value=mock_settings):
            pool1 = await get_pool()
            pool2 = await get_pool()

            assert pool1 is pool2
            assert pool1.db_path == mock_settings.storage.db_path

            await close_pool()
            assert conn_module._pool is None

    async def test_close_pool_safe_when_none(self):
        import src.infrastructure.storage.sqlite.connection as conn_module

        conn_module._pool = None
        await close_pool()

    async def test_global_pool_transaction_commits(self, mock_settings, migrated_db: Path):
        import src.infrastructure.storage.sqlite.connection as conn_module

        conn_module._pool = None
        mock_settings.storage.db_path = migrated_db

        with patch.object(conn_module, "get_settings", return_value=mock_settings):
            pool = await get_pool()
            async with pool.transaction() as conn:
                await conn.execute(INSERT_ITEM, ("ViaGlobal",))

            assert await count_items(pool, "ViaGlobal") == 1
            await close_pool()
