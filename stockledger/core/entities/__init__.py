"""Domain entities."""

from stockledger.core.entities.catalog import (
    Category,
    Product,
    ResolvedUnit,
    UnitOfMeasure,
    Warehouse,
)
from stockledger.core.entities.inventory import (
    CategoryShare,
    InventoryOverview,
    LowStockEntry,
    MovementCommand,
    MovementDirection,
    ProductDetail,
    StockBalance,
    StockMovement,
    StockStatus,
    WarehouseStock,
    WarehouseSummary,
)

__all__ = [
    # Catalog
    "Category",
    "Product",
    "ResolvedUnit",
    "UnitOfMeasure",
    "Warehouse",
    # Ledger
    "MovementCommand",
    "MovementDirection",
    "StockMovement",
    "StockBalance",
    # Projections
    "StockStatus",
    "WarehouseStock",
    "LowStockEntry",
    "WarehouseSummary",
    "CategoryShare",
    "InventoryOverview",
    "ProductDetail",
]
