"""Unit tests for database migrator."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import aiosqlite
import pytest

from src.infrastructure.storage.sqlite.migrations.migrator import (
    REQUIRED_TABLES,
    MigrationInfo,
    create_backup,
    discover_migrations,
    get_applied_migrations,
    get_current_version,
    get_migration_status,
    initialize_database,
    restore_backup,
    verify_schema_integrity,
)

MIGRATOR = "src.infrastructure.storage.sqlite.migrations.migrator"


def check(checks: list[dict], name: str) -> dict:
    return next(c for c in checks if c["check"] == name)


class TestMigrationInfo:
    """Tests for MigrationInfo dataclass."""

    def test_from_file_parses_filename(self, tmp_path: Path):
        migration_file = tmp_path / "v001_inventory_core.sql"
        migration_file.write_text("SELECT 1;")

        info = MigrationInfo.from_file(migration_file)

        assert info.version == "001"
        assert info.name == "inventory_core"
        assert len(info.checksum) == 16

    def test_invalid_filename_raises(self, tmp_path: Path):
        invalid_file = tmp_path / "inventory.sql"
        invalid_file.write_text("SELECT 1;")

        with pytest.raises(ValueError, match="Invalid migration filename"):
            MigrationInfo.from_file(invalid_file)


class TestDiscoverMigrations:
    """Tests for discover_migrations()."""

    def test_shipped_migrations_in_order(self):
        versions = [m.version for m in discover_migrations()]
        assert versions == sorted(versions)
        assert versions[:2] == ["001", "002"]

    def test_skips_invalid_filenames(self, tmp_path: Path):
        (tmp_path / "v002_second.sql").write_text("SELECT 2;")
        (tmp_path / "v001_first.sql").write_text("SELECT 1;")
        (tmp_path / "notes.sql").write_text("SELECT 3;")

        with patch(f"{MIGRATOR}.MIGRATIONS_DIR", tmp_path):
            result = discover_migrations()

        assert [m.name for m in result] == ["first", "second"]


class TestInitializeDatabase:
    """Tests for initialize_database() against the real schema."""

    async def test_creates_inventory_schema(self, db_path: Path):
        results = await initialize_database(db_path, create_backup_before=False)

        assert all(r.success for r in results)
        async with aiosqlite.connect(db_path) as conn:
            cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            tables = {row[0] for row in await cursor.fetchall()}
            assert set(REQUIRED_TABLES) <= tables
            assert await get_current_version(conn) == discover_migrations()[-1].version

    async def test_second_run_applies_nothing(self, migrated_db: Path):
        results = await initialize_database(migrated_db, create_backup_before=False)
        assert results == []

    async def test_backup_cleaned_up_after_success(self, migrated_db: Path):
        await initialize_database(migrated_db, create_backup_before=True)
        assert list(migrated_db.parent.glob("*.backup_*.db")) == []

    async def test_failed_migration_stops(self, tmp_path: Path):
        migrations_dir = tmp_path / "migrations"
        migrations_dir.mkdir()
        (migrations_dir / "v001_broken.sql").write_text("CREATE TABLE oops (;")

        with patch(f"{MIGRATOR}.MIGRATIONS_DIR", migrations_dir):
            results = await initialize_database(tmp_path / "broken.db", create_backup_before=False)

        assert len(results) == 1
        assert results[0].success is False
        assert results[0].error


class TestAppliedMigrations:
    """Tests for get_applied_migrations() and get_migration_status()."""

    async def test_returns_empty_when_no_table(self, tmp_path: Path):
        async with aiosqlite.connect(tmp_path / "empty.db") as conn:
            assert await get_applied_migrations(conn) == {}
            assert await get_current_version(conn) is None

    async def test_status_of_missing_database(self, tmp_path: Path):
        status = await get_migration_status(tmp_path / "missing.db")
        assert status["exists"] is False
        assert status["pending_migrations"] == []

    async def test_status_of_migrated_database(self, migrated_db: Path):
        status = await get_migration_status(migrated_db)
        assert status["exists"] is True
        assert status["pending_migrations"] == []
        assert "001" in status["applied_migrations"]


class TestVerifySchemaIntegrity:
    """Tests for verify_schema_integrity()."""

    async def test_fresh_database_passes(self, migrated_db: Path):
        checks = await verify_schema_integrity(migrated_db)

        for name in (
            "foreign_keys",
            "integrity",
            "required_tables",
            "orphan_stock_entries",
            "price_history_append_only",
            "negative_balances",
        ):
            assert check(checks, name)["status"] == "PASS", name

    async def test_reports_negative_balances(self, migrated_db: Path):
        async with aiosqlite.connect(migrated_db) as conn:
            await conn.execute(
                "INSERT INTO items (id, name, starting_date, created_at, updated_at) "
                "VALUES (1, 'Widget', '2024-03-01', '2024-03-01T00:00:00', '2024-03-01T00:00:00')"
            )
            await conn.execute(
                "INSERT INTO stock_entries (item_id, warehouse_id, quantity, created_at, updated_at) "
                "VALUES (1, 2, '-3.0000', '2024-03-01T00:00:00', '2024-03-01T00:00:00')"
            )
            await conn.commit()

        negative = check(await verify_schema_integrity(migrated_db), "negative_balances")

        assert negative["status"] == "WARN"
        assert negative["entries"] == [{"item_id": 1, "warehouse_id": 2, "quantity": "-3.0000"}]

    async def test_price_history_is_append_only(self, migrated_db: Path):
        async with aiosqlite.connect(migrated_db) as conn:
            await conn.execute(
                "INSERT INTO items (id, name, starting_date, created_at, updated_at) "
                "VALUES (1, 'Widget', '2024-03-01', '2024-03-01T00:00:00', '2024-03-01T00:00:00')"
            )
            await conn.execute(
                "INSERT INTO item_price_history (item_id, new_price, source_type, effective_date, created_at) "
                "VALUES (1, '10.0000', 'initial', '2024-03-01', '2024-03-01T00:00:00')"
            )
            await conn.commit()

            with pytest.raises(aiosqlite.IntegrityError, match="append-only"):
                await conn.execute("DELETE FROM item_price_history")
            with pytest.raises(aiosqlite.IntegrityError, match="append-only"):
                await conn.execute("UPDATE item_price_history SET new_price = '1'")


class TestBackups:
    """Tests for create_backup() and restore_backup()."""

    def test_backup_and_restore(self, tmp_path: Path):
        db_path = tmp_path / "inventory.db"
        db_path.write_text("original content")

        backup_path = create_backup(db_path)
        db_path.write_text("corrupted")
        restore_backup(db_path, backup_path)

        assert ".backup_" in backup_path.name
        assert db_path.read_text() == "original content"


async def test_get_migration_status_uses_settings_path(tmp_path: Path):
    mock_settings = MagicMock()
    mock_settings.storage.db_path = tmp_path / "nowhere.db"

    with patch(f"{MIGRATOR}.get_settings", return_value=mock_settings):
        status = await get_migration_status()

    assert status["exists"] is False
