"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from stockledger.core.entities.catalog import (
    Category,
    Product,
    UnitOfMeasure,
    Warehouse,
)
from stockledger.core.entities.inventory import (
    InventoryOverview,
    LowStockEntry,
    ProductDetail,
    StockMovement,
    WarehouseStock,
    WarehouseSummary,
)

# --- Catalog ---


class UnitResponse(BaseModel):
    id: int
    name: str
    symbol: str | None = None

    @classmethod
    def from_entity(cls, unit: UnitOfMeasure) -> "UnitResponse":
        return cls(id=unit.id, name=unit.name, symbol=unit.symbol)  # type: ignore[arg-type]


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: str | None = None

    @classmethod
    def from_entity(cls, category: Category) -> "CategoryResponse":
        return cls(id=category.id, name=category.name, description=category.description)  # type: ignore[arg-type]


class WarehouseResponse(BaseModel):
    """Warehouse response DTO."""

    id: int
    code: str
    name: str
    address: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, warehouse: Warehouse) -> "WarehouseResponse":
        return cls.model_validate(warehouse.model_dump())


class ProductResponse(BaseModel):
    """Product response DTO."""

    id: int
    code: str
    name: str
    description: str | None = None
    category_id: int | None = None
    category_name: str | None = None
    unit_of_measure_id: int | None = None
    unit_of_measure_name: str | None = None
    default_price: Decimal
    min_quantity: int | None = None
    barcode: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, product: Product) -> "ProductResponse":
        return cls.model_validate(product.model_dump())


class ProductListResponse(BaseModel):
    items: list[ProductResponse]
    total: int


class ProvisionProductResponse(BaseModel):
    """Result of auto-provisioning a product."""

    product: ProductResponse
    unit: UnitResponse
    category: CategoryResponse


# --- Inventory ---


class StockMovementResponse(BaseModel):
    """Stock movement response DTO."""

    id: int
    product_id: int
    warehouse_id: int
    direction: str
    quantity: int
    unit_id: int
    unit_cost: Decimal | None = None
    timestamp: datetime
    source_type: str
    notes: str | None = None
    balance_after: int | None = Field(
        default=None, description="Warehouse balance right after this movement (writes only)"
    )

    @classmethod
    def from_entity(cls, movement: StockMovement) -> "StockMovementResponse":
        return cls(
            id=movement.id,  # type: ignore[arg-type]
            product_id=movement.product_id,
            warehouse_id=movement.warehouse_id,
            direction=movement.direction.value,
            quantity=movement.quantity,
            unit_id=movement.unit_id,
            unit_cost=movement.unit_cost,
            timestamp=movement.timestamp,
            source_type=movement.source_type,
            notes=movement.notes,
            balance_after=movement.balance_after,
        )


class MovementListResponse(BaseModel):
    items: list[StockMovementResponse]
    total: int
    limit: int
    offset: int


class BalanceResponse(BaseModel):
    """Quantity on hand for a product, in one warehouse or all."""

    product_id: int
    warehouse_id: int | None = None
    quantity_on_hand: int


class WarehouseStockResponse(BaseModel):
    warehouse_id: int
    warehouse_code: str
    warehouse_name: str
    quantity: int

    @classmethod
    def from_entity(cls, line: WarehouseStock) -> "WarehouseStockResponse":
        return cls(
            warehouse_id=line.warehouse.id,  # type: ignore[arg-type]
            warehouse_code=line.warehouse.code,
            warehouse_name=line.warehouse.name,
            quantity=line.quantity,
        )


class ProductDetailResponse(BaseModel):
    """Product with unit, category, totals and per-warehouse stock."""

    product: ProductResponse
    unit_name: str | None = None
    unit_symbol: str
    category_name: str | None = None
    total_stock: int
    total_value: Decimal
    status: str
    per_warehouse: list[WarehouseStockResponse]

    @classmethod
    def from_entity(cls, detail: ProductDetail) -> "ProductDetailResponse":
        return cls(
            product=ProductResponse.from_entity(detail.product),
            unit_name=detail.unit.name if detail.unit else None,
            unit_symbol=detail.unit_symbol,
            category_name=detail.category.name if detail.category else None,
            total_stock=detail.total_stock,
            total_value=detail.total_value,
            status=detail.status.value,
            per_warehouse=[WarehouseStockResponse.from_entity(w) for w in detail.per_warehouse],
        )


class StockAlertResponse(BaseModel):
    """One row of the low-stock or out-of-stock report."""

    product_id: int
    code: str
    name: str
    balance: int
    threshold: int
    status: str
    unit_symbol: str
    per_warehouse: list[WarehouseStockResponse]

    @classmethod
    def from_entity(cls, entry: LowStockEntry) -> "StockAlertResponse":
        return cls(
            product_id=entry.product.id,  # type: ignore[arg-type]
            code=entry.product.code,
            name=entry.product.name,
            balance=entry.balance,
            threshold=entry.threshold,
            status=entry.status.value,
            unit_symbol=entry.unit_symbol,
            per_warehouse=[WarehouseStockResponse.from_entity(w) for w in entry.per_warehouse],
        )


class StockAlertListResponse(BaseModel):
    items: list[StockAlertResponse]
    total: int


class WarehouseSummaryResponse(BaseModel):
    """Units and value held in one warehouse."""

    warehouse: WarehouseResponse
    product_count: int
    total_units: int
    total_value: Decimal

    @classmethod
    def from_entity(cls, summary: WarehouseSummary) -> "WarehouseSummaryResponse":
        return cls(
            warehouse=WarehouseResponse.from_entity(summary.warehouse),
            product_count=summary.product_count,
            total_units=summary.total_units,
            total_value=summary.total_value,
        )


class CategoryShareResponse(BaseModel):
    name: str
    units: int


class InventoryOverviewResponse(BaseModel):
    """Headline inventory statistics."""

    total_products: int
    total_units: int
    total_value: Decimal
    low_stock_count: int
    out_of_stock_count: int
    products_without_unit: int
    category_distribution: list[CategoryShareResponse]

    @classmethod
    def from_entity(cls, overview: InventoryOverview) -> "InventoryOverviewResponse":
        return cls(
            total_products=overview.total_products,
            total_units=overview.total_units,
            total_value=overview.total_value,
            low_stock_count=overview.low_stock_count,
            out_of_stock_count=overview.out_of_stock_count,
            products_without_unit=overview.products_without_unit,
            category_distribution=[
                CategoryShareResponse(name=c.name, units=c.units)
                for c in overview.category_distribution
            ],
        )


# --- System ---


class HealthResponse(BaseModel):
    """Liveness and database status."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: str | None = None
    schema_version: str | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. INSUFFICIENT_STOCK)
    - message: human-readable description
    - hint: suggested recovery action
    - details: structured context (available quantity, dependents, ...)
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    details: dict[str, Any] | None = Field(default=None, description="Structured error context")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)
