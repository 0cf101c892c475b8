"""Tests for SQLiteCatalogStore against a migrated temp database."""

from decimal import Decimal

import aiosqlite
import pytest

from stockledger.core.entities import (
    Category,
    MovementDirection,
    Product,
    StockMovement,
    UnitOfMeasure,
    Warehouse,
)
from stockledger.core.exceptions import (
    CascadeDeleteError,
    CategoryNotFoundError,
    DuplicateCodeError,
    DuplicateNameError,
)


async def add_movement(ledger_store, product_id: int, warehouse_id: int, quantity: int = 5):
    return await ledger_store.append_movement(
        StockMovement(
            product_id=product_id,
            warehouse_id=warehouse_id,
            direction=MovementDirection.IN,
            quantity=quantity,
            unit_id=1,
        )
    )


class TestUnitsAndCategories:
    async def test_create_and_get_unit(self, catalog_store):
        unit = await catalog_store.create_unit(UnitOfMeasure(name="Kilogram", symbol="kg"))
        assert unit.id is not None
        assert await catalog_store.get_unit(unit.id) == unit
        assert (await catalog_store.get_unit_by_name("Kilogram")).id == unit.id
        assert await catalog_store.get_unit_by_name("kilogram") is None

    async def test_duplicate_unit_name(self, catalog_store):
        await catalog_store.create_unit(UnitOfMeasure(name="Kilogram", symbol="kg"))
        with pytest.raises(DuplicateNameError):
            await catalog_store.create_unit(UnitOfMeasure(name="Kilogram", symbol="KG"))

    async def test_insert_unit_if_absent_is_idempotent(self, catalog_store):
        first = await catalog_store.insert_unit_if_absent(UnitOfMeasure(name="box", symbol="box"))
        second = await catalog_store.insert_unit_if_absent(UnitOfMeasure(name="box", symbol="bx"))
        assert first.id == second.id
        assert second.symbol == "box"
        assert len(await catalog_store.list_units()) == 1

    async def test_insert_category_if_absent_is_idempotent(self, catalog_store):
        first = await catalog_store.insert_category_if_absent(Category(name="General"))
        second = await catalog_store.insert_category_if_absent(Category(name="General"))
        assert first.id == second.id
        assert len(await catalog_store.list_categories()) == 1

    async def test_duplicate_category_rename(self, catalog_store):
        await catalog_store.create_category(Category(name="Tools"))
        other = await catalog_store.create_category(Category(name="Spares"))
        other.name = "Tools"
        with pytest.raises(DuplicateNameError):
            await catalog_store.update_category(other)

    async def test_delete_unit(self, catalog_store):
        unit = await catalog_store.create_unit(UnitOfMeasure(name="Kilogram", symbol="kg"))
        assert await catalog_store.delete_unit(unit.id) is True
        assert await catalog_store.delete_unit(unit.id) is False


class TestProducts:
    async def test_round_trip_keeps_decimal_price(self, catalog_store):
        created = await catalog_store.create_product(
            Product(code="P-1", name="Widget", default_price=Decimal("0.10"), min_quantity=3)
        )
        fetched = await catalog_store.get_product(created.id)
        assert fetched.default_price == Decimal("0.10")
        assert fetched.min_quantity == 3
        assert fetched.is_active is True

    async def test_duplicate_code(self, catalog_store):
        await catalog_store.create_product(Product(code="P-1", name="Widget"))
        with pytest.raises(DuplicateCodeError):
            await catalog_store.create_product(Product(code="P-1", name="Gadget"))

    async def test_update_never_writes_code(self, catalog_store):
        created = await catalog_store.create_product(Product(code="P-1", name="Widget"))
        changed = created.model_copy(update={"code": "P-9", "name": "Renamed"})
        await catalog_store.update_product(changed)

        fetched = await catalog_store.get_product(created.id)
        assert fetched.code == "P-1"
        assert fetched.name == "Renamed"

    async def test_create_with_missing_category(self, catalog_store):
        with pytest.raises(CategoryNotFoundError):
            await catalog_store.create_product(Product(code="P-1", name="Widget", category_id=999))
        assert await catalog_store.get_product_by_code("P-1") is None

    async def test_update_to_missing_category(self, catalog_store):
        created = await catalog_store.create_product(Product(code="P-1", name="Widget"))
        with pytest.raises(CategoryNotFoundError):
            await catalog_store.update_product(created.model_copy(update={"category_id": 999}))
        assert (await catalog_store.get_product(created.id)).category_id is None

    async def test_list_products_filters(self, catalog_store):
        tools = await catalog_store.create_category(Category(name="Tools"))
        await catalog_store.create_product(Product(code="HAM-1", name="Hammer", category_id=tools.id))
        await catalog_store.create_product(Product(code="NAIL-1", name="Nail", is_active=False))
        await catalog_store.create_product(Product(code="SAW-1", name="Saw"))

        assert [p.code for p in await catalog_store.list_products(search="ham")] == ["HAM-1"]
        assert [p.code for p in await catalog_store.list_products(search="nail-")] == ["NAIL-1"]
        assert [p.code for p in await catalog_store.list_products(category_id=tools.id)] == ["HAM-1"]
        active = await catalog_store.list_products(active_only=True)
        assert [p.code for p in active] == ["HAM-1", "SAW-1"]
        assert len(await catalog_store.list_products(limit=None)) == 3
        assert [p.code for p in await catalog_store.list_products(limit=1, offset=1)] == ["NAIL-1"]


class TestWarehouses:
    async def test_duplicate_code(self, catalog_store):
        await catalog_store.create_warehouse(Warehouse(code="WH-1", name="Main"))
        with pytest.raises(DuplicateCodeError):
            await catalog_store.create_warehouse(Warehouse(code="WH-1", name="Other"))

    async def test_list_active_only(self, catalog_store):
        await catalog_store.create_warehouse(Warehouse(code="WH-1", name="Main"))
        await catalog_store.create_warehouse(Warehouse(code="WH-2", name="Old", is_active=False))
        assert [w.code for w in await catalog_store.list_warehouses(active_only=True)] == ["WH-1"]
        assert len(await catalog_store.list_warehouses()) == 2


class TestDependentsAndCascade:
    @pytest.fixture
    async def seeded(self, catalog_store, ledger_store):
        tools = await catalog_store.create_category(Category(name="Tools"))
        warehouse = await catalog_store.create_warehouse(Warehouse(code="WH-1", name="Main"))
        linked = await catalog_store.create_product(
            Product(code="P-1", name="Linked", category_id=tools.id)
        )
        legacy = await catalog_store.create_product(
            Product(code="P-2", name="Legacy", category_name="Tools")
        )
        other = await catalog_store.create_product(Product(code="P-3", name="Other"))
        await add_movement(ledger_store, linked.id, warehouse.id)
        await add_movement(ledger_store, legacy.id, warehouse.id)
        await add_movement(ledger_store, other.id, warehouse.id)
        return {"category": tools, "warehouse": warehouse, "linked": linked,
                "legacy": legacy, "other": other}

    async def test_category_counts_legacy_members(self, catalog_store, seeded):
        counts = await catalog_store.count_category_dependents(seeded["category"].id)
        assert counts == {"products": 2, "stock_movements": 2}

    async def test_category_cascade(self, catalog_store, ledger_store, seeded):
        await catalog_store.delete_category(seeded["category"].id)

        assert await catalog_store.get_category(seeded["category"].id) is None
        assert await catalog_store.get_product(seeded["linked"].id) is None
        assert await catalog_store.get_product(seeded["legacy"].id) is None
        assert await catalog_store.get_product(seeded["other"].id) is not None
        assert await ledger_store.count_movements() == 1

    async def test_product_cascade(self, catalog_store, ledger_store, seeded):
        assert await catalog_store.count_product_dependents(seeded["linked"].id) == {
            "stock_movements": 1
        }
        await catalog_store.delete_product(seeded["linked"].id)
        assert await ledger_store.count_movements(product_id=seeded["linked"].id) == 0
        assert await ledger_store.count_movements() == 2

    async def test_warehouse_cascade(self, catalog_store, ledger_store, seeded):
        assert await catalog_store.count_warehouse_dependents(seeded["warehouse"].id) == {
            "stock_movements": 3
        }
        await catalog_store.delete_warehouse(seeded["warehouse"].id)
        assert await catalog_store.get_warehouse(seeded["warehouse"].id) is None
        assert await ledger_store.count_movements() == 0

    async def test_failed_step_rolls_back_everything(
        self, catalog_store, ledger_store, seeded, sqlite_db
    ):
        async with aiosqlite.connect(sqlite_db) as conn:
            await conn.execute(
                """
                CREATE TRIGGER block_product_delete BEFORE DELETE ON products
                BEGIN SELECT RAISE(ABORT, 'blocked'); END
                """
            )
            await conn.commit()

        with pytest.raises(CascadeDeleteError) as exc_info:
            await catalog_store.delete_product(seeded["linked"].id)

        assert exc_info.value.details["step"] == "product"
        assert await catalog_store.get_product(seeded["linked"].id) is not None
        assert await ledger_store.count_movements(product_id=seeded["linked"].id) == 1
