"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from stockledger.application.services import reset_services
from stockledger.core.services import CatalogService, InventoryService
from stockledger.infrastructure.storage.sqlite import SQLiteCatalogStore, SQLiteLedgerStore
from stockledger.infrastructure.storage.sqlite.migrations import initialize_database


@pytest.fixture(autouse=True)
def _fresh_services():
    """Service singletons never leak between tests."""
    reset_services()
    yield
    reset_services()


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "stockledger.db"


@pytest.fixture
async def migrated_db(temp_db_path: Path) -> Path:
    """Temporary database with every migration applied."""
    results = await initialize_database(temp_db_path, create_backup_before=False)
    assert results and all(r.success for r in results)
    return temp_db_path


@pytest.fixture
async def sqlite_db(migrated_db: Path) -> AsyncGenerator[Path, None]:
    """Point the global connection pool at the migrated temp database."""
    import stockledger.infrastructure.storage.sqlite.connection as conn_module

    conn_module._pool = None
    mock_settings = MagicMock()
    mock_settings.storage.db_path = migrated_db
    mock_settings.storage.pool_size = 3
    mock_settings.storage.busy_timeout = 5000

    with patch.object(conn_module, "get_settings", return_value=mock_settings):
        try:
            yield migrated_db
        finally:
            await conn_module.close_pool()


@pytest.fixture
def catalog_store(sqlite_db: Path) -> SQLiteCatalogStore:
    return SQLiteCatalogStore()


@pytest.fixture
def ledger_store(sqlite_db: Path) -> SQLiteLedgerStore:
    return SQLiteLedgerStore()


@pytest.fixture
def catalog(catalog_store: SQLiteCatalogStore) -> CatalogService:
    return CatalogService(catalog_store)


@pytest.fixture
def inventory(
    catalog_store: SQLiteCatalogStore, ledger_store: SQLiteLedgerStore
) -> InventoryService:
    return InventoryService(catalog_store, ledger_store)


@pytest.fixture
async def stocked(catalog: CatalogService) -> dict:
    """One unit, category, active warehouse and product with no movements yet."""
    unit = await catalog.create_unit("Kilogram", "kg")
    category = await catalog.create_category("Tools")
    warehouse = await catalog.create_warehouse({"code": "WH-1", "name": "Main"})
    product = await catalog.create_product(
        {
            "code": "P-001",
            "name": "Widget",
            "category_id": category.id,
            "unit_of_measure_id": unit.id,
            "default_price": "2.50",
        }
    )
    return {
        "unit": unit,
        "category": category,
        "warehouse": warehouse,
        "product": product,
    }
