"""Storage infrastructure implementations."""

from stockledger.infrastructure.storage.sqlite import (
    SQLiteCatalogStore,
    SQLiteLedgerStore,
    close_pool,
    get_catalog_store,
    get_connection,
    get_ledger_store,
    get_pool,
    get_transaction,
)

__all__ = [
    # SQLite stores
    "SQLiteCatalogStore",
    "SQLiteLedgerStore",
    "get_catalog_store",
    "get_ledger_store",
    # Connection pool
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
]
