"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest

from src.application.engine import InventoryEngine
from src.application.services import reset_services
from src.config import reset_settings
from src.core.interfaces.unit_of_work import UnitOfWorkFactory
from src.infrastructure.storage.sqlite.connection import ConnectionPool
from src.infrastructure.storage.sqlite.migrations import initialize_database
from src.infrastructure.storage.sqlite.unit_of_work import make_unit_of_work_factory


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Point settings at a temp data dir and drop cached singletons."""
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "data"))
    reset_settings()
    reset_services()
    yield
    reset_settings()
    reset_services()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path of a not-yet-created database."""
    return tmp_path / "inventory_test.db"


@pytest.fixture
async def migrated_db(db_path: Path) -> Path:
    """Database with every migration applied."""
    results = await initialize_database(db_path, create_backup_before=False)
    assert results and all(r.success for r in results)
    return db_path


@pytest.fixture
async def pool(migrated_db: Path) -> AsyncGenerator[ConnectionPool, None]:
    """Connection pool over the migrated database."""
    pool = ConnectionPool(migrated_db, pool_size=2)
    await pool.initialize()
    yield pool
    await pool.close()


@pytest.fixture
def uow_factory(pool: ConnectionPool) -> UnitOfWorkFactory:
    """Unit-of-work factory bound to the test pool."""
    return make_unit_of_work_factory(pool)


@pytest.fixture
def engine(uow_factory: UnitOfWorkFactory) -> InventoryEngine:
    """Inventory engine on the test database."""
    return InventoryEngine(uow_factory)
