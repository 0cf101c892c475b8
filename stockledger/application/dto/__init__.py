"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from stockledger.application.dto.requests import (
    CreateCategoryRequest,
    CreateProductRequest,
    CreateUnitRequest,
    CreateWarehouseRequest,
    IssueStockRequest,
    ProvisionProductRequest,
    ReceiveStockRequest,
    UpdateCategoryRequest,
    UpdateProductRequest,
    UpdateUnitRequest,
    UpdateWarehouseRequest,
)
from stockledger.application.dto.responses import (
    BalanceResponse,
    CategoryResponse,
    ErrorResponse,
    HealthResponse,
    InventoryOverviewResponse,
    MovementListResponse,
    ProductDetailResponse,
    ProductListResponse,
    ProductResponse,
    ProvisionProductResponse,
    StockAlertListResponse,
    StockAlertResponse,
    StockMovementResponse,
    UnitResponse,
    WarehouseResponse,
    WarehouseStockResponse,
    WarehouseSummaryResponse,
)

__all__ = [
    # Requests
    "CreateProductRequest",
    "UpdateProductRequest",
    "CreateCategoryRequest",
    "UpdateCategoryRequest",
    "CreateWarehouseRequest",
    "UpdateWarehouseRequest",
    "CreateUnitRequest",
    "UpdateUnitRequest",
    "ProvisionProductRequest",
    "ReceiveStockRequest",
    "IssueStockRequest",
    # Responses
    "ProductResponse",
    "ProductListResponse",
    "CategoryResponse",
    "WarehouseResponse",
    "UnitResponse",
    "ProvisionProductResponse",
    "StockMovementResponse",
    "MovementListResponse",
    "BalanceResponse",
    "WarehouseStockResponse",
    "ProductDetailResponse",
    "StockAlertResponse",
    "StockAlertListResponse",
    "WarehouseSummaryResponse",
    "InventoryOverviewResponse",
    "HealthResponse",
    "ErrorResponse",
]
