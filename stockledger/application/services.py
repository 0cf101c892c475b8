"""
Service factory functions for dependency injection.

Wires the SQLite stores into the core services. Use cases and routes import
from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from typing import TYPE_CHECKING

from stockledger.config import get_settings
from stockledger.core.services import (
    BalanceProjector,
    CatalogService,
    InventoryService,
)

if TYPE_CHECKING:
    from stockledger.core.interfaces import ICatalogStore, ILedgerStore


# Singleton service instances
_balance_projector: BalanceProjector | None = None
_catalog_service: CatalogService | None = None
_inventory_service: InventoryService | None = None


def _default_stores(
    catalog_store: "ICatalogStore | None",
    ledger_store: "ILedgerStore | None",
) -> tuple["ICatalogStore", "ILedgerStore"]:
    # Lazy import infrastructure to avoid circular imports
    from stockledger.infrastructure.storage.sqlite import (
        get_catalog_store,
        get_ledger_store,
    )

    return catalog_store or get_catalog_store(), ledger_store or get_ledger_store()


def get_balance_projector(
    catalog_store: "ICatalogStore | None" = None,
    ledger_store: "ILedgerStore | None" = None,
) -> BalanceProjector:
    """
    Get or create the BalanceProjector.

    The singleton is shared by the inventory and catalog services so that
    both movements and cascade deletes invalidate the same cache.
    """
    global _balance_projector

    overridden = catalog_store is not None or ledger_store is not None
    if _balance_projector is not None and not overridden:
        return _balance_projector

    catalog, ledger = _default_stores(catalog_store, ledger_store)
    settings = get_settings().inventory
    projector = BalanceProjector(
        ledger,
        catalog,
        default_threshold=settings.low_stock_threshold,
        cache_enabled=settings.projection_cache_enabled,
    )

    if not overridden:
        _balance_projector = projector

    return projector


def get_catalog_service(catalog_store: "ICatalogStore | None" = None) -> CatalogService:
    """Get or create CatalogService. Cascade deletes drop every cached balance."""
    global _catalog_service

    if _catalog_service is not None and catalog_store is None:
        return _catalog_service

    catalog, _ = _default_stores(catalog_store, None)
    service = CatalogService(catalog, on_cascade=get_balance_projector().invalidate)

    if catalog_store is None:
        _catalog_service = service

    return service


def get_inventory_service(
    catalog_store: "ICatalogStore | None" = None,
    ledger_store: "ILedgerStore | None" = None,
) -> InventoryService:
    """
    Get or create InventoryService.

    Args:
        catalog_store: Optional catalog store override
        ledger_store: Optional ledger store override

    Returns:
        Configured InventoryService
    """
    global _inventory_service

    overridden = catalog_store is not None or ledger_store is not None
    if _inventory_service is not None and not overridden:
        return _inventory_service

    catalog, ledger = _default_stores(catalog_store, ledger_store)
    settings = get_settings().inventory
    service = InventoryService(
        catalog,
        ledger,
        projector=get_balance_projector(catalog_store, ledger_store),
        lock_timeout=settings.lock_timeout,
    )

    if not overridden:
        _inventory_service = service

    return service


def reset_services() -> None:
    """
    Reset all singleton service instances.

    Useful for testing or when configuration changes.
    """
    global _balance_projector
    global _catalog_service
    global _inventory_service

    _balance_projector = None
    _catalog_service = None
    _inventory_service = None


__all__ = [
    "get_balance_projector",
    "get_catalog_service",
    "get_inventory_service",
    "reset_services",
]
