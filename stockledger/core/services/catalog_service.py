"""
Catalog Service.

Rules over the catalog store: required fields, unique codes, immutable
codes, and guarded deletes. A delete first counts dependents; with
dependents present it is refused unless the caller confirmed cascade, in
which case dependents and parent go in one store transaction.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from stockledger.config import get_logger
from stockledger.core.entities.catalog import (
    Category,
    Product,
    UnitOfMeasure,
    Warehouse,
)
from stockledger.core.exceptions import (
    CategoryNotFoundError,
    DuplicateCodeError,
    HasDependentsError,
    ImmutableFieldError,
    ProductNotFoundError,
    UnitNotFoundError,
    ValidationError,
    WarehouseNotFoundError,
)
from stockledger.core.interfaces.catalog_store import ICatalogStore

logger = get_logger(__name__)

AUTO_CATEGORY_DESCRIPTION = "Auto-generated category for manual product entry"
MAX_SYMBOL_LENGTH = 10

PRODUCT_FIELDS = {
    "code",
    "name",
    "description",
    "category_id",
    "category_name",
    "unit_of_measure_id",
    "unit_of_measure_name",
    "default_price",
    "min_quantity",
    "barcode",
    "is_active",
}
WAREHOUSE_FIELDS = {"code", "name", "address", "is_active"}


def _require(field: str, value: Any) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(field, "This field is required", value)


def _check_patch_keys(entity: str, patch: dict[str, Any], allowed: set[str]) -> None:
    unknown = set(patch) - allowed
    if unknown:
        raise ValidationError(
            ", ".join(sorted(unknown)), f"Unknown {entity} field(s)", sorted(unknown)
        )


class CatalogService:
    """Catalog CRUD with referential checks."""

    def __init__(
        self,
        catalog_store: ICatalogStore,
        on_cascade: Callable[[], None] | None = None,
    ) -> None:
        self._store = catalog_store
        self._on_cascade = on_cascade

    # Products

    async def create_product(self, data: dict[str, Any] | Product) -> Product:
        """Create a product. Code and name are required; the unit may come later."""
        product = data if isinstance(data, Product) else self._build(Product, data)
        _require("code", product.code)
        _require("name", product.name)

        if await self._store.get_product_by_code(product.code) is not None:
            raise DuplicateCodeError("Product", product.code)
        if product.category_id is not None:
            await self.get_category(product.category_id)

        created = await self._store.create_product(product)
        logger.info("product_created", product_id=created.id, code=created.code)
        return created

    async def get_product(self, product_id: int) -> Product:
        product = await self._store.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    async def list_products(
        self,
        search: str | None = None,
        category_id: int | None = None,
        active_only: bool = False,
        limit: int | None = 100,
        offset: int = 0,
    ) -> list[Product]:
        return await self._store.list_products(
            search=search,
            category_id=category_id,
            active_only=active_only,
            limit=limit,
            offset=offset,
        )

    async def update_product(self, product_id: int, patch: dict[str, Any]) -> Product:
        """Apply a partial update. A differing code is rejected, never ignored."""
        _check_patch_keys("product", patch, PRODUCT_FIELDS)
        current = await self.get_product(product_id)

        if "code" in patch and patch["code"] != current.code:
            raise ImmutableFieldError("Product", "code", current.code, patch["code"])
        if "name" in patch:
            _require("name", patch["name"])
        if patch.get("category_id") is not None:
            await self.get_category(patch["category_id"])

        updated = self._build(Product, {**current.model_dump(), **patch})
        saved = await self._store.update_product(updated)
        logger.info("product_updated", product_id=product_id, fields=sorted(patch))
        return saved

    async def delete_product(self, product_id: int, cascade: bool = False) -> None:
        await self.get_product(product_id)
        dependents = await self._store.count_product_dependents(product_id)
        self._guard_dependents("Product", product_id, dependents, cascade)
        await self._store.delete_product(product_id)
        self._after_delete("product", product_id, dependents)

    # Categories

    async def create_category(self, name: str, description: str | None = None) -> Category:
        _require("name", name)
        created = await self._store.create_category(
            Category(name=name.strip(), description=description)
        )
        logger.info("category_created", category_id=created.id, name=created.name)
        return created

    async def get_category(self, category_id: int) -> Category:
        category = await self._store.get_category(category_id)
        if category is None:
            raise CategoryNotFoundError(category_id)
        return category

    async def list_categories(self) -> list[Category]:
        return await self._store.list_categories()

    async def update_category(
        self,
        category_id: int,
        name: str | None = None,
        description: str | None = None,
    ) -> Category:
        category = await self.get_category(category_id)
        if name is not None:
            _require("name", name)
            category.name = name.strip()
        if description is not None:
            category.description = description
        return await self._store.update_category(category)

    async def delete_category(self, category_id: int, cascade: bool = False) -> None:
        await self.get_category(category_id)
        dependents = await self._store.count_category_dependents(category_id)
        self._guard_dependents("Category", category_id, dependents, cascade)
        await self._store.delete_category(category_id)
        self._after_delete("category", category_id, dependents)

    async def find_or_create_category(self, name: str) -> Category:
        """Reuse a category whose name matches case-insensitively, else create it."""
        _require("category_name", name)
        name = name.strip()
        for category in await self._store.list_categories():
            if category.name.lower() == name.lower():
                return category
        category = await self._store.insert_category_if_absent(
            Category(name=name, description=AUTO_CATEGORY_DESCRIPTION)
        )
        logger.info("category_provisioned", category_id=category.id, name=category.name)
        return category

    # Warehouses

    async def create_warehouse(self, data: dict[str, Any] | Warehouse) -> Warehouse:
        warehouse = data if isinstance(data, Warehouse) else self._build(Warehouse, data)
        _require("code", warehouse.code)
        _require("name", warehouse.name)
        created = await self._store.create_warehouse(warehouse)
        logger.info("warehouse_created", warehouse_id=created.id, code=created.code)
        return created

    async def get_warehouse(self, warehouse_id: int) -> Warehouse:
        warehouse = await self._store.get_warehouse(warehouse_id)
        if warehouse is None:
            raise WarehouseNotFoundError(warehouse_id)
        return warehouse

    async def list_warehouses(self, active_only: bool = False) -> list[Warehouse]:
        return await self._store.list_warehouses(active_only=active_only)

    async def update_warehouse(self, warehouse_id: int, patch: dict[str, Any]) -> Warehouse:
        _check_patch_keys("warehouse", patch, WAREHOUSE_FIELDS)
        current = await self.get_warehouse(warehouse_id)
        if "code" in patch and patch["code"] != current.code:
            raise ImmutableFieldError("Warehouse", "code", current.code, patch["code"])
        if "name" in patch:
            _require("name", patch["name"])
        updated = self._build(Warehouse, {**current.model_dump(), **patch})
        saved = await self._store.update_warehouse(updated)
        logger.info("warehouse_updated", warehouse_id=warehouse_id, fields=sorted(patch))
        return saved

    async def delete_warehouse(self, warehouse_id: int, cascade: bool = False) -> None:
        await self.get_warehouse(warehouse_id)
        dependents = await self._store.count_warehouse_dependents(warehouse_id)
        self._guard_dependents("Warehouse", warehouse_id, dependents, cascade)
        await self._store.delete_warehouse(warehouse_id)
        self._after_delete("warehouse", warehouse_id, dependents)

    # Units of measure

    async def create_unit(self, name: str, symbol: str) -> UnitOfMeasure:
        _require("name", name)
        _require("symbol", symbol)
        created = await self._store.create_unit(UnitOfMeasure(name=name, symbol=symbol))
        logger.info("unit_created", unit_id=created.id, name=created.name)
        return created

    async def get_unit(self, unit_id: int) -> UnitOfMeasure:
        unit = await self._store.get_unit(unit_id)
        if unit is None:
            raise UnitNotFoundError(unit_id)
        return unit

    async def list_units(self) -> list[UnitOfMeasure]:
        return await self._store.list_units()

    async def update_unit(
        self,
        unit_id: int,
        name: str | None = None,
        symbol: str | None = None,
    ) -> UnitOfMeasure:
        unit = await self.get_unit(unit_id)
        if name is not None:
            _require("name", name)
            unit.name = name
        if symbol is not None:
            _require("symbol", symbol)
            unit.symbol = symbol
        return await self._store.update_unit(unit)

    async def delete_unit(self, unit_id: int) -> None:
        await self.get_unit(unit_id)
        await self._store.delete_unit(unit_id)
        logger.info("unit_deleted", unit_id=unit_id)

    async def find_or_create_unit(self, name: str, symbol: str | None = None) -> UnitOfMeasure:
        """Reuse a unit whose name or symbol matches case-insensitively, else create it."""
        _require("unit_name", name)
        name = name.strip()
        wanted = name.lower()
        for unit in await self._store.list_units():
            if unit.name.lower() == wanted or (unit.symbol or "").lower() == wanted:
                return unit
        unit = await self._store.insert_unit_if_absent(
            UnitOfMeasure(name=name, symbol=symbol or name[:MAX_SYMBOL_LENGTH])
        )
        logger.info("unit_provisioned", unit_id=unit.id, name=unit.name)
        return unit

    # Helpers

    @staticmethod
    def _build(model: type, data: dict[str, Any]) -> Any:
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"]) or model.__name__
            raise ValidationError(field, first["msg"], first.get("input")) from e

    @staticmethod
    def _guard_dependents(
        entity: str, entity_id: int, dependents: dict[str, int], cascade: bool
    ) -> None:
        if any(dependents.values()) and not cascade:
            raise HasDependentsError(
                entity, entity_id, {k: v for k, v in dependents.items() if v}
            )

    def _after_delete(self, entity: str, entity_id: int, dependents: dict[str, int]) -> None:
        logger.info(f"{entity}_deleted", id=entity_id, dependents=dependents)
        if any(dependents.values()) and self._on_cascade is not None:
            self._on_cascade()
