"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.

Quantities are plain ints here; positivity is a ledger precondition and is
reported by the ledger, not by request parsing.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

# --- Catalog ---


class CreateProductRequest(BaseModel):
    """Request to create a product."""

    code: str = Field(..., description="Unique product code")
    name: str = Field(..., description="Product name")
    description: str | None = Field(default=None)
    category_id: int | None = Field(default=None)
    category_name: str | None = Field(default=None, description="Legacy category reference")
    unit_of_measure_id: int | None = Field(default=None)
    unit_of_measure_name: str | None = Field(default=None, description="Legacy unit reference")
    default_price: Decimal = Field(default=Decimal("0"), description="Price per unit")
    min_quantity: int | None = Field(
        default=None, description="Reorder threshold (system default when unset)"
    )
    barcode: str | None = Field(default=None)
    is_active: bool = Field(default=True)


class UpdateProductRequest(BaseModel):
    """Partial product update. Only fields sent are applied."""

    code: str | None = Field(default=None, description="Must equal the stored code")
    name: str | None = None
    description: str | None = None
    category_id: int | None = None
    category_name: str | None = None
    unit_of_measure_id: int | None = None
    unit_of_measure_name: str | None = None
    default_price: Decimal | None = None
    min_quantity: int | None = None
    barcode: str | None = None
    is_active: bool | None = None


class CreateCategoryRequest(BaseModel):
    """Request to create a category."""

    name: str = Field(..., description="Unique category name")
    description: str | None = Field(default=None)


class UpdateCategoryRequest(BaseModel):
    name: str | None = None
    description: str | None = None


class CreateWarehouseRequest(BaseModel):
    """Request to create a warehouse."""

    code: str = Field(..., description="Unique warehouse code")
    name: str = Field(..., description="Warehouse name")
    address: str | None = Field(default=None)
    is_active: bool = Field(default=True)


class UpdateWarehouseRequest(BaseModel):
    """Partial warehouse update. The code cannot change."""

    code: str | None = None
    name: str | None = None
    address: str | None = None
    is_active: bool | None = None


class CreateUnitRequest(BaseModel):
    """Request to create a unit of measure."""

    name: str = Field(..., description="Unique unit name (case-sensitive)")
    symbol: str = Field(..., description="Display symbol, e.g. kg")


class UpdateUnitRequest(BaseModel):
    name: str | None = None
    symbol: str | None = None


class ProvisionProductRequest(BaseModel):
    """Create a product, finding or creating its unit and category by name."""

    product_name: str = Field(..., description="Product name")
    unit_name: str | None = Field(default=None, description="Unit name or symbol (default: unit)")
    category_name: str | None = Field(default=None, description="Category (default: General)")
    code: str | None = Field(default=None, description="Product code (default: AUTO-<millis>)")
    description: str | None = Field(default=None)
    default_price: Decimal = Field(default=Decimal("0"))
    min_quantity: int | None = Field(default=None)


# --- Inventory ---


class ReceiveStockRequest(BaseModel):
    """Request to receive stock (IN movement)."""

    product_id: int = Field(..., description="Product ID")
    warehouse_id: int = Field(..., description="Receiving warehouse ID")
    quantity: int = Field(..., description="Whole units to receive")
    unit_cost: Decimal | None = Field(default=None, description="Cost per unit")
    notes: str | None = Field(default=None, description="Additional notes")


class IssueStockRequest(BaseModel):
    """Request to issue stock (OUT movement)."""

    product_id: int = Field(..., description="Product ID")
    warehouse_id: int = Field(..., description="Issuing warehouse ID")
    quantity: int = Field(..., description="Whole units to remove")
    notes: str | None = Field(default=None, description="Additional notes")
