"""SQLite storage implementations."""

from stockledger.infrastructure.storage.sqlite.catalog_store import SQLiteCatalogStore
from stockledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
    get_write_transaction,
)
from stockledger.infrastructure.storage.sqlite.ledger_store import SQLiteLedgerStore

# Singleton instances
_catalog_store: SQLiteCatalogStore | None = None
_ledger_store: SQLiteLedgerStore | None = None


def get_catalog_store() -> SQLiteCatalogStore:
    """Get singleton catalog store instance."""
    global _catalog_store
    if _catalog_store is None:
        _catalog_store = SQLiteCatalogStore()
    return _catalog_store


def get_ledger_store() -> SQLiteLedgerStore:
    """Get singleton ledger store instance."""
    global _ledger_store
    if _ledger_store is None:
        _ledger_store = SQLiteLedgerStore()
    return _ledger_store


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    "get_write_transaction",
    # Stores
    "SQLiteCatalogStore",
    "SQLiteLedgerStore",
    "get_catalog_store",
    "get_ledger_store",
]
