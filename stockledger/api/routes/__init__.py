"""API route modules."""

from stockledger.api.routes.catalog import router as catalog_router
from stockledger.api.routes.health import router as health_router
from stockledger.api.routes.inventory import router as inventory_router

__all__ = [
    "health_router",
    "catalog_router",
    "inventory_router",
]
