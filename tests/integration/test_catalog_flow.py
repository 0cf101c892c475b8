"""Catalog provisioning and guarded deletes against a real SQLite database."""

import pytest

from stockledger.application.dto.requests import ProvisionProductRequest
from stockledger.application.services import get_catalog_service, get_inventory_service
from stockledger.application.use_cases.provision_product import ProvisionProductUseCase
from stockledger.core.exceptions import (
    DuplicateCodeError,
    HasDependentsError,
    ImmutableFieldError,
    ProductNotFoundError,
)


class TestProvisioning:
    async def test_repeat_provisioning_reuses_unit_and_category(self, catalog, sqlite_db):
        use_case = ProvisionProductUseCase(catalog_service=catalog)

        first = await use_case.execute(ProvisionProductRequest(product_name="Widget", unit_name="kg"))
        second = await use_case.execute(ProvisionProductRequest(product_name="Widget", unit_name="kg"))

        assert first.unit.id == second.unit.id
        assert first.category.id == second.category.id
        assert first.category.name == "General"
        assert first.product.code != second.product.code
        assert len(await catalog.list_units()) == 1
        assert len(await catalog.list_categories()) == 1

    async def test_provisioned_product_can_move_stock(self, catalog, inventory, sqlite_db):
        warehouse = await catalog.create_warehouse({"code": "WH-1", "name": "Main"})
        result = await ProvisionProductUseCase(catalog_service=catalog).execute(
            ProvisionProductRequest(product_name="Bolt", unit_name="box", code="BOLT-1")
        )

        movement = await inventory.stock_in(result.product.id, warehouse.id, 3)

        assert movement.unit_id == result.unit.id
        assert (await inventory.get_product_detail(result.product.id)).unit_symbol == "box"


class TestCatalogRules:
    async def test_duplicate_product_code(self, catalog, stocked):
        with pytest.raises(DuplicateCodeError):
            await catalog.create_product({"code": "P-001", "name": "Clone"})

    async def test_code_is_immutable(self, catalog, stocked):
        with pytest.raises(ImmutableFieldError):
            await catalog.update_product(stocked["product"].id, {"code": "P-999"})
        assert (await catalog.get_product(stocked["product"].id)).code == "P-001"

    async def test_delete_refused_then_cascaded(self, catalog, inventory, stocked):
        product_id = stocked["product"].id
        await inventory.stock_in(product_id, stocked["warehouse"].id, 4)

        with pytest.raises(HasDependentsError) as exc_info:
            await catalog.delete_product(product_id)
        assert exc_info.value.details["dependents"] == {"stock_movements": 1}
        assert await inventory.get_balance(product_id) == 4

        await catalog.delete_product(product_id, cascade=True)

        with pytest.raises(ProductNotFoundError):
            await inventory.get_balance(product_id)
        assert await inventory.movement_history() == []


class TestServiceWiring:
    async def test_cascade_drops_cached_balances(self, stocked):
        catalog = get_catalog_service()
        inventory = get_inventory_service()
        warehouse_id = stocked["warehouse"].id
        product_id = stocked["product"].id

        await inventory.stock_in(product_id, warehouse_id, 6)
        assert await inventory.get_balance(product_id, warehouse_id) == 6
        assert inventory.projector is get_inventory_service().projector

        await catalog.delete_warehouse(warehouse_id, cascade=True)

        assert await inventory.get_balance(product_id) == 0
