"""End-to-end stock ledger scenarios against a real SQLite database."""

import asyncio
import random
from collections import Counter
from decimal import Decimal

import pytest

from stockledger.core.entities import StockStatus
from stockledger.core.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    UnitRequiredError,
    WarehouseInactiveError,
)
from stockledger.core.services import InventoryService
from stockledger.infrastructure.storage.sqlite import SQLiteLedgerStore


class TestStockInOut:
    async def test_in_out_and_overdraw(self, inventory, stocked):
        product_id = stocked["product"].id
        warehouse_id = stocked["warehouse"].id

        await inventory.stock_in(product_id, warehouse_id, 100, unit_cost=Decimal("1.10"))
        await inventory.stock_out(product_id, warehouse_id, 30)

        with pytest.raises(InsufficientStockError) as exc_info:
            await inventory.stock_out(product_id, warehouse_id, 71)

        error = exc_info.value
        assert error.available == 70
        assert error.message == "Cannot remove 71 kg. Only 70 kg available in this warehouse."
        assert await inventory.get_balance(product_id, warehouse_id) == 70

        history = await inventory.movement_history(product_id=product_id)
        assert [(m.direction.value, m.quantity) for m in history] == [("OUT", 30), ("IN", 100)]

    async def test_invalid_quantity_leaves_ledger_unchanged(self, inventory, stocked):
        with pytest.raises(InvalidQuantityError):
            await inventory.stock_in(stocked["product"].id, stocked["warehouse"].id, 0)
        assert await inventory.movement_history() == []

    async def test_balances_are_per_warehouse(self, inventory, catalog, stocked):
        annex = await catalog.create_warehouse({"code": "WH-2", "name": "Annex"})
        product_id = stocked["product"].id

        await inventory.stock_in(product_id, stocked["warehouse"].id, 8)
        await inventory.stock_in(product_id, annex.id, 2)

        with pytest.raises(InsufficientStockError):
            await inventory.stock_out(product_id, annex.id, 3)
        assert await inventory.get_balance(product_id) == 10

        detail = await inventory.get_product_detail(product_id)
        assert [(line.warehouse.code, line.quantity) for line in detail.per_warehouse] == [
            ("WH-1", 8),
            ("WH-2", 2),
        ]
        assert detail.total_value == Decimal("25.00")
        assert detail.category.name == "Tools"


class TestConcurrency:
    async def test_concurrent_outs_never_overdraw(self, inventory, stocked):
        product_id = stocked["product"].id
        warehouse_id = stocked["warehouse"].id
        await inventory.stock_in(product_id, warehouse_id, 50)

        results = await asyncio.gather(
            *(inventory.stock_out(product_id, warehouse_id, 10) for _ in range(8)),
            return_exceptions=True,
        )

        succeeded = [r for r in results if not isinstance(r, Exception)]
        refused = [r for r in results if isinstance(r, InsufficientStockError)]
        assert len(succeeded) == 5
        assert len(refused) == 3
        assert await inventory.get_balance(product_id, warehouse_id) == 0

    async def test_separate_services_share_the_database_guard(
        self, catalog_store, ledger_store, stocked
    ):
        first = InventoryService(catalog_store, ledger_store)
        second = InventoryService(catalog_store, ledger_store)
        product_id = stocked["product"].id
        warehouse_id = stocked["warehouse"].id
        await first.stock_in(product_id, warehouse_id, 10)

        results = await asyncio.gather(
            first.stock_out(product_id, warehouse_id, 7),
            second.stock_out(product_id, warehouse_id, 7),
            return_exceptions=True,
        )

        assert sum(isinstance(r, InsufficientStockError) for r in results) == 1
        assert await first.get_balance(product_id, warehouse_id) == 3
        assert await second.get_balance(product_id, warehouse_id) == 3


class TestCachedBalances:
    async def test_other_instance_sees_writes(self, catalog_store, ledger_store, stocked):
        writer = InventoryService(catalog_store, ledger_store)
        reader = InventoryService(catalog_store, ledger_store)
        product_id = stocked["product"].id
        warehouse_id = stocked["warehouse"].id

        await writer.stock_in(product_id, warehouse_id, 10)
        assert await reader.get_balance(product_id) == 10

        await writer.stock_out(product_id, warehouse_id, 3)

        assert await reader.get_balance(product_id) == 7
        assert await reader.get_balance(product_id, warehouse_id) == 7

    async def test_read_overtaken_by_write_is_not_kept(self, catalog_store, sqlite_db, stocked):
        product_id = stocked["product"].id
        warehouse_id = stocked["warehouse"].id
        ledger = InterleavingLedgerStore()
        service = InventoryService(catalog_store, ledger)
        await service.stock_in(product_id, warehouse_id, 100)

        async def issue():
            await service.stock_out(product_id, warehouse_id, 30)

        ledger.after_fold = issue
        assert await service.get_balance(product_id) == 100

        assert await ledger.balance(product_id) == 70
        assert await service.get_balance(product_id) == 70


class InterleavingLedgerStore(SQLiteLedgerStore):
    """Runs after_fold once, between folding balances and returning them."""

    after_fold = None

    async def balances_for_product(self, product_id: int) -> dict[int, int]:
        balances = await super().balances_for_product(product_id)
        if self.after_fold is not None:
            hook, self.after_fold = self.after_fold, None
            await hook()
        return balances


class TestBalanceIdentity:
    """Balances always equal the fold of the movement history."""

    @pytest.mark.parametrize("seed", [7, 1234, 90210])
    async def test_random_sequence_matches_history(self, inventory, catalog, stocked, seed):
        rng = random.Random(seed)
        product_id = stocked["product"].id
        annex = await catalog.create_warehouse({"code": "WH-2", "name": "Annex"})
        warehouse_ids = [stocked["warehouse"].id, annex.id]
        expected = dict.fromkeys(warehouse_ids, 0)
        with pytest.raises(InsufficientStockError):
            await inventory.stock_out(product_id, annex.id, 1)

        for _ in range(60):
            warehouse_id = rng.choice(warehouse_ids)
            quantity = rng.randint(1, 20)
            if rng.random() < 0.5:
                recorded = await inventory.stock_in(product_id, warehouse_id, quantity)
                expected[warehouse_id] += quantity
            elif quantity > expected[warehouse_id]:
                with pytest.raises(InsufficientStockError):
                    await inventory.stock_out(product_id, warehouse_id, quantity)
                recorded = None
            else:
                recorded = await inventory.stock_out(product_id, warehouse_id, quantity)
                expected[warehouse_id] -= quantity

            history = await inventory.movement_history(product_id=product_id, limit=1000)
            folded = Counter()
            for movement in history:
                folded[movement.warehouse_id] += movement.signed_quantity

            for key in warehouse_ids:
                assert await inventory.get_balance(product_id, key) == folded[key]
                assert folded[key] == expected[key]
            assert await inventory.get_balance(product_id) == sum(folded.values())
            if recorded is not None:
                assert recorded.balance_after == folded[warehouse_id]


class TestPreconditions:
    async def test_inactive_warehouse_refuses_in_allows_out(self, inventory, catalog, stocked):
        product_id = stocked["product"].id
        warehouse_id = stocked["warehouse"].id
        await inventory.stock_in(product_id, warehouse_id, 5)
        await catalog.update_warehouse(warehouse_id, {"is_active": False})

        with pytest.raises(WarehouseInactiveError):
            await inventory.stock_in(product_id, warehouse_id, 1)

        await inventory.stock_out(product_id, warehouse_id, 5)
        assert await inventory.get_balance(product_id, warehouse_id) == 0

    async def test_deleted_unit_blocks_movements(self, inventory, catalog, stocked):
        await catalog.delete_unit(stocked["unit"].id)

        with pytest.raises(UnitRequiredError) as exc_info:
            await inventory.stock_in(stocked["product"].id, stocked["warehouse"].id, 1)
        assert exc_info.value.details["reason"] == "stale"

        detail = await inventory.get_product_detail(stocked["product"].id)
        assert detail.unit is None
        assert detail.unit_symbol == "units"

    async def test_legacy_unit_name_resolves(self, inventory, catalog, stocked):
        legacy = await catalog.create_product(
            {"code": "P-OLD", "name": "Imported", "unit_of_measure_name": "Kilogram"}
        )
        recorded = await inventory.stock_in(legacy.id, stocked["warehouse"].id, 4)
        assert recorded.unit_id == stocked["unit"].id

    async def test_product_without_unit_is_refused(self, inventory, catalog, stocked):
        bare = await catalog.create_product({"code": "P-BARE", "name": "Bare"})
        with pytest.raises(UnitRequiredError) as exc_info:
            await inventory.stock_in(bare.id, stocked["warehouse"].id, 1)
        assert exc_info.value.details["reason"] == "missing"


class TestReports:
    async def test_low_stock_threshold_boundary(self, inventory, stocked):
        product_id = stocked["product"].id
        warehouse_id = stocked["warehouse"].id

        await inventory.stock_in(product_id, warehouse_id, 5)
        low = await inventory.get_low_stock()
        assert [e.product.id for e in low] == [product_id]
        assert low[0].threshold == 5
        assert low[0].unit_symbol == "kg"

        await inventory.stock_in(product_id, warehouse_id, 1)
        assert await inventory.get_low_stock() == []

    async def test_zero_is_out_of_stock_not_low(self, inventory, stocked):
        assert await inventory.get_low_stock() == []
        out = await inventory.get_out_of_stock()
        assert [e.product.id for e in out] == [stocked["product"].id]
        assert out[0].status is StockStatus.OUT_OF_STOCK

    async def test_inactive_products_are_not_reported(self, inventory, catalog, stocked):
        await catalog.update_product(stocked["product"].id, {"is_active": False})
        assert await inventory.get_out_of_stock() == []
        assert (await inventory.get_overview()).out_of_stock_count == 0

    async def test_min_quantity_threshold(self, inventory, catalog, stocked):
        product_id = stocked["product"].id
        await catalog.update_product(product_id, {"min_quantity": 10})
        await inventory.stock_in(product_id, stocked["warehouse"].id, 10)

        detail = await inventory.get_product_detail(product_id)
        assert detail.status is StockStatus.LOW_STOCK

    async def test_warehouse_summary_and_overview(self, inventory, stocked):
        await inventory.stock_in(stocked["product"].id, stocked["warehouse"].id, 12)

        summary = await inventory.warehouse_summary(stocked["warehouse"].id)
        assert summary.product_count == 1
        assert summary.total_units == 12
        assert summary.total_value == Decimal("30.00")

        overview = await inventory.get_overview()
        assert overview.total_products == 1
        assert overview.total_units == 12
        assert [(c.name, c.units) for c in overview.category_distribution] == [("Tools", 12)]
