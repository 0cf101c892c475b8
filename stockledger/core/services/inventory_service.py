"""
Inventory Service.

Public façade over the catalog, unit resolver, stock ledger and balance
projector. Commands flow one way: validated against the catalog and unit
resolver, appended to the ledger, then the projector drops the affected
cached balances. Queries read from the projector.

Every failure propagates as a typed InventoryError; nothing is retried or
reported as success here.
"""

from __future__ import annotations

from decimal import Decimal

from stockledger.config import get_logger
from stockledger.core.entities.catalog import Category, Product
from stockledger.core.entities.inventory import (
    InventoryOverview,
    LowStockEntry,
    MovementCommand,
    MovementDirection,
    ProductDetail,
    StockMovement,
    WarehouseSummary,
)
from stockledger.core.exceptions import ProductNotFoundError
from stockledger.core.interfaces.catalog_store import ICatalogStore
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.core.services.balance_projector import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    BalanceProjector,
)
from stockledger.core.services.stock_ledger import StockLedger
from stockledger.core.services.unit_resolver import PLACEHOLDER_SYMBOL, resolve_unit
from stockledger.core.services.write_locks import KeyedLockRegistry

logger = get_logger(__name__)


class InventoryService:
    """Stock-in/stock-out commands and balance/alert queries."""

    def __init__(
        self,
        catalog_store: ICatalogStore,
        ledger_store: ILedgerStore,
        projector: BalanceProjector | None = None,
        ledger: StockLedger | None = None,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
        lock_timeout: float = 5.0,
        cache_enabled: bool = True,
    ) -> None:
        self._catalog = catalog_store
        self.projector = projector or BalanceProjector(
            ledger_store,
            catalog_store,
            default_threshold=low_stock_threshold,
            cache_enabled=cache_enabled,
        )
        self.ledger = ledger or StockLedger(
            ledger_store,
            catalog_store,
            locks=KeyedLockRegistry(timeout=lock_timeout),
            on_recorded=self._invalidate,
        )

    def _invalidate(self, movement: StockMovement) -> None:
        self.projector.invalidate(movement.product_id)

    # Commands

    async def stock_in(
        self,
        product_id: int,
        warehouse_id: int,
        quantity: int,
        unit_cost: Decimal | None = None,
        notes: str | None = None,
        source_type: str = "manual",
    ) -> StockMovement:
        """Receive stock into a warehouse."""
        return await self.ledger.record_movement(
            MovementCommand(
                product_id=product_id,
                warehouse_id=warehouse_id,
                direction=MovementDirection.IN,
                quantity=quantity,
                unit_cost=unit_cost,
                notes=notes,
                source_type=source_type,
            )
        )

    async def stock_out(
        self,
        product_id: int,
        warehouse_id: int,
        quantity: int,
        notes: str | None = None,
        source_type: str = "manual",
    ) -> StockMovement:
        """
        Remove stock from a warehouse.

        Raises InsufficientStockError carrying the available quantity when
        the warehouse holds less than requested.
        """
        return await self.ledger.record_movement(
            MovementCommand(
                product_id=product_id,
                warehouse_id=warehouse_id,
                direction=MovementDirection.OUT,
                quantity=quantity,
                notes=notes,
                source_type=source_type,
            )
        )

    # Queries

    async def get_balance(self, product_id: int, warehouse_id: int | None = None) -> int:
        await self._require_product(product_id)
        return await self.projector.balance_of(product_id, warehouse_id)

    async def get_product_detail(self, product_id: int) -> ProductDetail:
        """Product with its unit, category, totals and per-warehouse stock."""
        product = await self._require_product(product_id)
        units = await self._catalog.list_units()
        unit = resolve_unit(product, units)

        total_stock = await self.projector.balance_of(product_id)
        per_warehouse = await self.projector.warehouse_breakdown(product_id)

        return ProductDetail(
            product=product,
            unit=unit,
            unit_symbol=unit.symbol if unit else PLACEHOLDER_SYMBOL,
            category=await self._resolve_category(product),
            total_stock=total_stock,
            total_value=total_stock * product.default_price,
            status=await self.projector.classify(product, total_stock),
            per_warehouse=per_warehouse,
        )

    async def get_low_stock(self) -> list[LowStockEntry]:
        return await self.projector.low_stock_report()

    async def get_out_of_stock(self) -> list[LowStockEntry]:
        return await self.projector.out_of_stock_report()

    async def warehouse_summary(self, warehouse_id: int) -> WarehouseSummary:
        return await self.projector.warehouse_summary(warehouse_id)

    async def list_warehouse_summaries(self) -> list[WarehouseSummary]:
        return [
            await self.projector.warehouse_summary(wh.id)  # type: ignore[arg-type]
            for wh in await self._catalog.list_warehouses()
        ]

    async def get_overview(self) -> InventoryOverview:
        return await self.projector.inventory_overview()

    async def movement_history(
        self,
        product_id: int | None = None,
        warehouse_id: int | None = None,
        direction: MovementDirection | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[StockMovement]:
        return await self.ledger.list_movements(
            product_id=product_id,
            warehouse_id=warehouse_id,
            direction=direction,
            limit=limit,
            offset=offset,
        )

    # Helpers

    async def _require_product(self, product_id: int) -> Product:
        product = await self._catalog.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    async def _resolve_category(self, product: Product) -> Category | None:
        """By id first, then by legacy name."""
        if product.category_id is not None:
            category = await self._catalog.get_category(product.category_id)
            if category is not None:
                return category
        if product.category_name:
            found = await self._catalog.get_category_by_name(product.category_name)
            return found or Category(name=product.category_name)
        return None
