"""
Core business logic services.

Layer-pure services that depend only on:
- stockledger/core/entities/*
- stockledger/core/interfaces/*
- stockledger/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from stockledger.core.services.balance_projector import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    BalanceProjector,
    classify_balance,
)
from stockledger.core.services.catalog_service import CatalogService
from stockledger.core.services.inventory_service import InventoryService
from stockledger.core.services.stock_ledger import StockLedger
from stockledger.core.services.unit_resolver import (
    NoUnit,
    UnitById,
    UnitByName,
    describe_unit,
    has_unit,
    require_unit,
    resolve_unit,
    unit_reference,
)
from stockledger.core.services.write_locks import KeyedLockRegistry, LockTimeout

__all__ = [
    # Unit resolution
    "UnitById",
    "UnitByName",
    "NoUnit",
    "unit_reference",
    "has_unit",
    "resolve_unit",
    "require_unit",
    "describe_unit",
    # Catalog
    "CatalogService",
    # Ledger
    "StockLedger",
    "KeyedLockRegistry",
    "LockTimeout",
    # Projection
    "BalanceProjector",
    "classify_balance",
    "DEFAULT_LOW_STOCK_THRESHOLD",
    # Façade
    "InventoryService",
]
