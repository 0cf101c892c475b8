"""Stock ledger entities and the read models projected from it."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from stockledger.core.entities.catalog import (
    Category,
    Product,
    ResolvedUnit,
    Warehouse,
)


class MovementDirection(str, Enum):
    """Direction of a stock movement."""

    IN = "IN"
    OUT = "OUT"

    @property
    def sign(self) -> int:
        return 1 if self is MovementDirection.IN else -1


class StockStatus(str, Enum):
    """Reorder classification of a product's aggregate balance."""

    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    IN_STOCK = "in_stock"


class StockMovement(BaseModel):
    """An immutable ledger entry. Corrections are new compensating entries."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    product_id: int
    warehouse_id: int
    direction: MovementDirection
    quantity: int = Field(..., gt=0)
    unit_id: int
    unit_cost: Decimal | None = Field(default=None, ge=0)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    source_type: str = "manual"
    notes: str | None = None
    # Set only on a freshly appended movement, folded in its write transaction
    balance_after: int | None = None

    @model_validator(mode="after")
    def _cost_only_on_receipt(self) -> "StockMovement":
        if self.unit_cost is not None and self.direction is MovementDirection.OUT:
            raise ValueError("unit_cost is only recorded on IN movements")
        return self

    @property
    def signed_quantity(self) -> int:
        return self.direction.sign * self.quantity


@dataclass(frozen=True)
class MovementCommand:
    """
    Request to append a movement.

    Not validated on construction. The ledger checks preconditions in a
    fixed order and reports the first failure.
    """

    product_id: int
    warehouse_id: int
    direction: MovementDirection
    quantity: int
    unit_cost: Decimal | None = None
    notes: str | None = None
    source_type: str = "manual"


@dataclass(frozen=True)
class StockBalance:
    """Quantity on hand for one (product, warehouse) key."""

    product_id: int
    warehouse_id: int
    quantity_on_hand: int


@dataclass
class WarehouseStock:
    """One line of a per-warehouse breakdown."""

    warehouse: Warehouse
    quantity: int


@dataclass
class LowStockEntry:
    """A product surfaced by the low-stock or out-of-stock report."""

    product: Product
    balance: int
    threshold: int
    status: StockStatus
    unit_symbol: str = "units"
    per_warehouse: list[WarehouseStock] = field(default_factory=list)


@dataclass
class WarehouseSummary:
    """Contents of a single warehouse."""

    warehouse: Warehouse
    product_count: int = 0
    total_units: int = 0
    total_value: Decimal = Decimal("0")


@dataclass
class CategoryShare:
    """Units on hand per category, for the overview distribution."""

    name: str
    units: int


@dataclass
class InventoryOverview:
    """Headline numbers across all products."""

    total_products: int = 0
    total_units: int = 0
    total_value: Decimal = Decimal("0")
    low_stock_count: int = 0
    out_of_stock_count: int = 0
    products_without_unit: int = 0
    category_distribution: list[CategoryShare] = field(default_factory=list)


@dataclass
class ProductDetail:
    """Everything the product detail view shows."""

    product: Product
    unit: ResolvedUnit | None  # None when the unit does not resolve
    unit_symbol: str
    category: Category | None
    total_stock: int
    total_value: Decimal
    status: StockStatus
    per_warehouse: list[WarehouseStock] = field(default_factory=list)
