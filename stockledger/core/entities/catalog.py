"""Catalog reference data: products, categories, warehouses, units."""

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(UTC)


class UnitOfMeasure(BaseModel):
    """A unit products are counted in (e.g. Kilogram / kg)."""

    id: int | None = None
    name: str  # unique, case-sensitive
    symbol: str | None = None


@dataclass(frozen=True)
class ResolvedUnit:
    """The unit a product resolved to, with a display symbol always set."""

    id: int
    name: str
    symbol: str


class Category(BaseModel):
    """Product grouping."""

    id: int | None = None
    name: str
    description: str | None = None


class Warehouse(BaseModel):
    """A stock location. Inactive warehouses accept no stock-in."""

    id: int | None = None
    code: str  # unique, immutable
    name: str
    address: str | None = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class Product(BaseModel):
    """
    A stocked item.

    Unit and category may be referenced by id or, for legacy/imported rows,
    only by name. Both are resolved at read time and never rewritten.
    """

    id: int | None = None
    code: str  # unique, immutable after creation
    name: str
    description: str | None = None

    category_id: int | None = None
    category_name: str | None = None  # legacy reference

    unit_of_measure_id: int | None = None
    unit_of_measure_name: str | None = None  # legacy reference

    default_price: Decimal = Field(default=Decimal("0"), ge=0)
    min_quantity: int | None = Field(default=None, ge=0)  # None -> system default
    barcode: str | None = None
    is_active: bool = True

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
