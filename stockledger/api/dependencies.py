"""
Dependency injection container for FastAPI.

Provides service instances to route handlers. Tests replace these through
app.dependency_overrides.
"""

from functools import lru_cache

from fastapi import Depends

from stockledger.application.services import (
    get_catalog_service,
    get_inventory_service,
)
from stockledger.application.use_cases import (
    IssueStockUseCase,
    ProvisionProductUseCase,
    ReceiveStockUseCase,
)
from stockledger.config import Settings, get_settings
from stockledger.core.services import CatalogService, InventoryService


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


# Service dependencies
def get_catalog() -> CatalogService:
    return get_catalog_service()


def get_inventory() -> InventoryService:
    return get_inventory_service()


# Use case dependencies
def get_receive_stock_use_case(
    service: InventoryService = Depends(get_inventory),
) -> ReceiveStockUseCase:
    return ReceiveStockUseCase(inventory_service=service)


def get_issue_stock_use_case(
    service: InventoryService = Depends(get_inventory),
) -> IssueStockUseCase:
    return IssueStockUseCase(inventory_service=service)


def get_provision_product_use_case(
    catalog: CatalogService = Depends(get_catalog),
) -> ProvisionProductUseCase:
    return ProvisionProductUseCase(catalog_service=catalog)
