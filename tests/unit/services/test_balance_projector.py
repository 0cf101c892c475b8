"""Tests for BalanceProjector."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from stockledger.core.entities import (
    Category,
    Product,
    StockBalance,
    StockStatus,
    UnitOfMeasure,
    Warehouse,
)
from stockledger.core.exceptions import WarehouseNotFoundError
from stockledger.core.services import BalanceProjector, classify_balance


@pytest.fixture
def ledger_store():
    store = AsyncMock()
    store.balances_for_product.return_value = {1: 7, 2: 3}
    store.product_version.return_value = (2, 10)
    store.all_balances.return_value = []
    return store


@pytest.fixture
def catalog_store():
    store = AsyncMock()
    store.list_warehouses.return_value = [
        Warehouse(id=1, code="WH-1", name="Main"),
        Warehouse(id=2, code="WH-2", name="Annex"),
    ]
    store.list_units.return_value = [UnitOfMeasure(id=1, name="Kilogram", symbol="kg")]
    store.list_categories.return_value = [Category(id=1, name="Tools")]
    return store


@pytest.fixture
def projector(ledger_store, catalog_store):
    return BalanceProjector(ledger_store, catalog_store, default_threshold=5)


class TestClassifyBalance:
    @pytest.mark.parametrize(
        ("balance", "threshold", "status"),
        [
            (0, 5, StockStatus.OUT_OF_STOCK),
            (1, 5, StockStatus.LOW_STOCK),
            (5, 5, StockStatus.LOW_STOCK),
            (6, 5, StockStatus.IN_STOCK),
            (10, 10, StockStatus.LOW_STOCK),
            (0, 0, StockStatus.OUT_OF_STOCK),
            (1, 0, StockStatus.IN_STOCK),
        ],
    )
    def test_boundaries(self, balance, threshold, status):
        assert classify_balance(balance, threshold) is status


class TestBalances:
    async def test_balance_per_warehouse_and_aggregate(self, projector):
        assert await projector.balance_of(1, 1) == 7
        assert await projector.balance_of(1, 2) == 3
        assert await projector.balance_of(1, 99) == 0
        assert await projector.balance_of(1) == 10

    async def test_breakdown_is_cached_until_invalidated(self, projector, ledger_store):
        await projector.balance_of(1)
        await projector.balance_of(1, 1)
        assert ledger_store.balances_for_product.await_count == 1

        projector.invalidate(1)
        await projector.balance_of(1)
        assert ledger_store.balances_for_product.await_count == 2

    async def test_ledger_change_elsewhere_is_seen(self, projector, ledger_store):
        assert await projector.balance_of(1) == 10

        # Another process appended a movement; nothing here invalidated
        ledger_store.product_version.return_value = (3, 11)
        ledger_store.balances_for_product.return_value = {1: 7, 2: 1}

        assert await projector.balance_of(1) == 8
        assert ledger_store.balances_for_product.await_count == 2

    async def test_deleted_movements_change_the_version(self, projector, ledger_store):
        await projector.balance_of(1)
        ledger_store.product_version.return_value = (1, 10)
        ledger_store.balances_for_product.return_value = {1: 7}

        assert await projector.balance_of(1) == 7

    async def test_invalidate_all(self, projector, ledger_store):
        await projector.balance_of(1)
        await projector.balance_of(2)
        projector.invalidate()
        await projector.balance_of(1)
        await projector.balance_of(2)
        assert ledger_store.balances_for_product.await_count == 4

    async def test_cache_can_be_disabled(self, ledger_store, catalog_store):
        projector = BalanceProjector(ledger_store, catalog_store, cache_enabled=False)
        await projector.balance_of(1)
        await projector.balance_of(1)
        assert ledger_store.balances_for_product.await_count == 2
        ledger_store.product_version.assert_not_awaited()

    async def test_warehouse_breakdown_skips_empty(self, projector, ledger_store):
        ledger_store.balances_for_product.return_value = {1: 4, 2: 0}
        lines = await projector.warehouse_breakdown(1)
        assert [(line.warehouse.code, line.quantity) for line in lines] == [("WH-1", 4)]


class TestClassification:
    async def test_min_quantity_overrides_default(self, projector):
        product = Product(id=1, code="P-1", name="Widget", min_quantity=10)
        assert await projector.classify(product, 10) is StockStatus.LOW_STOCK
        assert await projector.classify(product, 11) is StockStatus.IN_STOCK

    async def test_zero_min_quantity_is_respected(self, projector):
        product = Product(id=1, code="P-1", name="Widget", min_quantity=0)
        assert projector.threshold_for(product) == 0
        assert await projector.classify(product, 1) is StockStatus.IN_STOCK

    async def test_default_threshold_applies(self, projector):
        product = Product(id=1, code="P-1", name="Widget")
        assert projector.threshold_for(product) == 5
        assert await projector.classify(product) is StockStatus.IN_STOCK  # balance 10

    async def test_zero_is_out_of_stock(self, projector):
        product = Product(id=1, code="P-1", name="Widget", min_quantity=10)
        assert await projector.classify(product, 0) is StockStatus.OUT_OF_STOCK


class TestReports:
    @pytest.fixture
    def products(self, catalog_store, ledger_store):
        products = [
            Product(id=1, code="P-1", name="Low", unit_of_measure_id=1),
            Product(id=2, code="P-2", name="Empty"),
            Product(id=3, code="P-3", name="Plenty", min_quantity=2),
        ]
        catalog_store.list_products.return_value = products
        ledger_store.all_balances.return_value = [
            StockBalance(product_id=1, warehouse_id=1, quantity_on_hand=3),
            StockBalance(product_id=1, warehouse_id=2, quantity_on_hand=1),
            StockBalance(product_id=3, warehouse_id=1, quantity_on_hand=9),
        ]
        return products

    async def test_low_stock_excludes_zero(self, projector, catalog_store, products):
        entries = await projector.low_stock_report()

        assert [e.product.code for e in entries] == ["P-1"]
        entry = entries[0]
        assert entry.balance == 4
        assert entry.threshold == 5
        assert entry.unit_symbol == "kg"
        assert [line.quantity for line in entry.per_warehouse] == [3, 1]
        catalog_store.list_products.assert_awaited_once_with(active_only=True, limit=None)

    async def test_out_of_stock(self, projector, products):
        entries = await projector.out_of_stock_report()
        assert [e.product.code for e in entries] == ["P-2"]
        assert entries[0].status is StockStatus.OUT_OF_STOCK
        assert entries[0].unit_symbol == "units"


class TestWarehouseSummary:
    async def test_summary_totals(self, projector, catalog_store, ledger_store):
        catalog_store.get_warehouse.return_value = Warehouse(id=1, code="WH-1", name="Main")
        ledger_store.balances_for_warehouse.return_value = {1: 4, 2: 0, 3: 2}
        catalog_store.get_product.side_effect = lambda pid: Product(
            id=pid, code=f"P-{pid}", name="x", default_price=Decimal("1.50")
        )

        summary = await projector.warehouse_summary(1)

        assert summary.product_count == 2
        assert summary.total_units == 6
        assert summary.total_value == Decimal("9.00")

    async def test_unknown_warehouse(self, projector, catalog_store):
        catalog_store.get_warehouse.return_value = None
        with pytest.raises(WarehouseNotFoundError):
            await projector.warehouse_summary(42)


class TestOverview:
    async def test_overview(self, projector, catalog_store, ledger_store):
        catalog_store.list_products.return_value = [
            Product(id=1, code="P-1", name="a", category_id=1, unit_of_measure_id=1,
                    default_price=Decimal("2")),
            Product(id=2, code="P-2", name="b", category_name="Legacy"),
            Product(id=3, code="P-3", name="c", is_active=False),
            Product(id=4, code="P-4", name="d", unit_of_measure_name="kg"),
        ]
        ledger_store.all_balances.return_value = [
            StockBalance(product_id=1, warehouse_id=1, quantity_on_hand=20),
            StockBalance(product_id=2, warehouse_id=1, quantity_on_hand=3),
        ]

        overview = await projector.inventory_overview()

        assert overview.total_products == 4
        assert overview.total_units == 23
        assert overview.total_value == Decimal("40")
        assert overview.low_stock_count == 1
        assert overview.out_of_stock_count == 1  # inactive P-3 is not counted
        assert overview.products_without_unit == 2
        assert [(c.name, c.units) for c in overview.category_distribution] == [
            ("Legacy", 3),
            ("Tools", 20),
        ]
