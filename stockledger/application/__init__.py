"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate core services
3. Providing factory functions for dependency injection
"""

from stockledger.application.services import (
    get_balance_projector,
    get_catalog_service,
    get_inventory_service,
    reset_services,
)
from stockledger.application.use_cases import (
    IssueStockUseCase,
    ProvisionProductUseCase,
    ReceiveStockUseCase,
)

__all__ = [
    # Use Cases
    "ReceiveStockUseCase",
    "IssueStockUseCase",
    "ProvisionProductUseCase",
    # Service factories
    "get_balance_projector",
    "get_catalog_service",
    "get_inventory_service",
    "reset_services",
]
