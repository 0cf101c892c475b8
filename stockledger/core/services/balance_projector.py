"""
Balance Projector.

Derives read-side views from the movement ledger: balances per key and in
aggregate, reorder classification, low/out-of-stock reports, warehouse
summaries and the inventory overview.

Per-product warehouse breakdowns are cached, stamped with the product's
ledger version (movement count, highest movement id). Every read checks the
stamp against the ledger, so appends and cascades made by another service
instance or process are seen on the next read. invalidate() drops entries
eagerly after local writes. The cache only serves reads; stock-out
authorization always folds the ledger itself.
"""

from __future__ import annotations

from collections import defaultdict

from stockledger.config import get_logger
from stockledger.core.entities.catalog import Product, Warehouse
from stockledger.core.entities.inventory import (
    CategoryShare,
    InventoryOverview,
    LowStockEntry,
    StockStatus,
    WarehouseStock,
    WarehouseSummary,
)
from stockledger.core.exceptions import WarehouseNotFoundError
from stockledger.core.interfaces.catalog_store import ICatalogStore
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.core.services.unit_resolver import describe_unit, has_unit

logger = get_logger(__name__)

# Reorder threshold for products whose min_quantity is unset.
# Overridable per deployment through INVENTORY_LOW_STOCK_THRESHOLD.
DEFAULT_LOW_STOCK_THRESHOLD = 5

UNCATEGORIZED = "Uncategorized"


def classify_balance(balance: int, threshold: int) -> StockStatus:
    """Zero is out of stock; anything up to and including threshold is low."""
    if balance <= 0:
        return StockStatus.OUT_OF_STOCK
    if balance <= threshold:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


class BalanceProjector:
    """Read-side projections over the stock ledger."""

    def __init__(
        self,
        ledger_store: ILedgerStore,
        catalog_store: ICatalogStore,
        default_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
        cache_enabled: bool = True,
    ) -> None:
        self._ledger = ledger_store
        self._catalog = catalog_store
        self.default_threshold = default_threshold
        self._cache_enabled = cache_enabled
        self._breakdowns: dict[int, tuple[tuple[int, int], dict[int, int]]] = {}

    # Cache

    def invalidate(self, product_id: int | None = None) -> None:
        """Drop cached balances for one product, or for all when product_id is None."""
        if product_id is None:
            self._breakdowns.clear()
        else:
            self._breakdowns.pop(product_id, None)

    async def _breakdown(self, product_id: int) -> dict[int, int]:
        if not self._cache_enabled:
            return await self._ledger.balances_for_product(product_id)

        # Version before contents: a write landing in between leaves the
        # entry newer than its stamp, so the next read refetches it.
        version = await self._ledger.product_version(product_id)
        cached = self._breakdowns.get(product_id)
        if cached is not None and cached[0] == version:
            return cached[1]

        breakdown = await self._ledger.balances_for_product(product_id)
        self._breakdowns[product_id] = (version, breakdown)
        return breakdown

    # Balances

    def threshold_for(self, product: Product) -> int:
        if product.min_quantity is not None:
            return product.min_quantity
        return self.default_threshold

    async def balance_of(self, product_id: int, warehouse_id: int | None = None) -> int:
        """Quantity on hand in one warehouse, or across all when warehouse_id is None."""
        breakdown = await self._breakdown(product_id)
        if warehouse_id is not None:
            return breakdown.get(warehouse_id, 0)
        return sum(breakdown.values())

    async def warehouse_breakdown(
        self,
        product_id: int,
        warehouses: list[Warehouse] | None = None,
    ) -> list[WarehouseStock]:
        """Warehouses holding a positive balance of the product."""
        breakdown = await self._breakdown(product_id)
        if warehouses is None:
            warehouses = await self._catalog.list_warehouses()
        return _stock_lines(breakdown, warehouses)

    async def classify(self, product: Product, balance: int | None = None) -> StockStatus:
        """Classify a product's aggregate balance against its reorder threshold."""
        if balance is None:
            balance = await self.balance_of(product.id)  # type: ignore[arg-type]
        return classify_balance(balance, self.threshold_for(product))

    # Reports

    async def _report(self, wanted: StockStatus) -> list[LowStockEntry]:
        products = await self._catalog.list_products(active_only=True, limit=None)
        warehouses = await self._catalog.list_warehouses()
        units = await self._catalog.list_units()
        by_product = await self._grouped_balances()

        entries: list[LowStockEntry] = []
        for product in products:
            breakdown = by_product.get(product.id, {})  # type: ignore[arg-type]
            balance = sum(breakdown.values())
            threshold = self.threshold_for(product)
            status = classify_balance(balance, threshold)
            if status is not wanted:
                continue
            entries.append(
                LowStockEntry(
                    product=product,
                    balance=balance,
                    threshold=threshold,
                    status=status,
                    unit_symbol=describe_unit(product, units)[1],
                    per_warehouse=_stock_lines(breakdown, warehouses),
                )
            )
        return entries

    async def low_stock_report(self) -> list[LowStockEntry]:
        """Active products with 0 < balance <= threshold. Zero stock is reported separately."""
        entries = await self._report(StockStatus.LOW_STOCK)
        logger.debug("low_stock_report_built", count=len(entries))
        return entries

    async def out_of_stock_report(self) -> list[LowStockEntry]:
        """Active products with no stock in any warehouse."""
        entries = await self._report(StockStatus.OUT_OF_STOCK)
        logger.debug("out_of_stock_report_built", count=len(entries))
        return entries

    async def warehouse_summary(self, warehouse_id: int) -> WarehouseSummary:
        """Product count, units and value held in one warehouse."""
        warehouse = await self._catalog.get_warehouse(warehouse_id)
        if warehouse is None:
            raise WarehouseNotFoundError(warehouse_id)

        balances = await self._ledger.balances_for_warehouse(warehouse_id)
        summary = WarehouseSummary(warehouse=warehouse)
        for product_id, quantity in balances.items():
            if quantity <= 0:
                continue
            product = await self._catalog.get_product(product_id)
            summary.product_count += 1
            summary.total_units += quantity
            if product is not None:
                summary.total_value += quantity * product.default_price
        return summary

    async def inventory_overview(self) -> InventoryOverview:
        """Headline stats: totals, reorder counts and category distribution."""
        products = await self._catalog.list_products(limit=None)
        categories = {c.id: c.name for c in await self._catalog.list_categories()}
        by_product = await self._grouped_balances()

        overview = InventoryOverview(total_products=len(products))
        per_category: dict[str, int] = defaultdict(int)

        for product in products:
            balance = sum(by_product.get(product.id, {}).values())  # type: ignore[arg-type]
            overview.total_units += balance
            overview.total_value += balance * product.default_price

            if not has_unit(product):
                overview.products_without_unit += 1

            if product.is_active:
                status = classify_balance(balance, self.threshold_for(product))
                if status is StockStatus.LOW_STOCK:
                    overview.low_stock_count += 1
                elif status is StockStatus.OUT_OF_STOCK:
                    overview.out_of_stock_count += 1

            if balance > 0:
                per_category[_category_label(product, categories)] += balance

        overview.category_distribution = [
            CategoryShare(name=name, units=units)
            for name, units in sorted(per_category.items())
        ]
        return overview

    async def _grouped_balances(self) -> dict[int, dict[int, int]]:
        grouped: dict[int, dict[int, int]] = defaultdict(dict)
        for row in await self._ledger.all_balances():
            grouped[row.product_id][row.warehouse_id] = row.quantity_on_hand
        return grouped


def _stock_lines(
    breakdown: dict[int, int], warehouses: list[Warehouse]
) -> list[WarehouseStock]:
    return [
        WarehouseStock(warehouse=wh, quantity=breakdown[wh.id])  # type: ignore[index]
        for wh in warehouses
        if breakdown.get(wh.id, 0) > 0  # type: ignore[arg-type]
    ]


def _category_label(product: Product, categories: dict[int | None, str]) -> str:
    if product.category_id is not None and product.category_id in categories:
        return categories[product.category_id]
    return product.category_name or UNCATEGORIZED
