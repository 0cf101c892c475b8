"""
Error handling middleware.

Standardizes all API error responses to include:
- error_code: machine-readable identifier
- message: human-readable description
- hint: suggested recovery action
- details: structured context from the raised error
"""

from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from stockledger.application.dto.responses import ErrorResponse
from stockledger.config import get_logger
from stockledger.core.exceptions import (
    ConcurrencyError,
    ConfigurationError,
    ConflictError,
    DependencyError,
    InventoryError,
    NotFoundError,
    PreconditionError,
    StorageError,
    ValidationError,
)

logger = get_logger(__name__)


# Map exceptions to HTTP status codes
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    DependencyError: status.HTTP_409_CONFLICT,
    PreconditionError: 422,
    ConcurrencyError: status.HTTP_503_SERVICE_UNAVAILABLE,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ValueError: status.HTTP_400_BAD_REQUEST,
}

# Hint messages per error code
HINT_MAP: dict[str, str] = {
    "PRODUCT_NOT_FOUND": "Check the product ID and try GET /api/catalog/products to list products.",
    "WAREHOUSE_NOT_FOUND": "Check the warehouse ID and try GET /api/catalog/warehouses.",
    "CATEGORY_NOT_FOUND": "Check the category ID and try GET /api/catalog/categories.",
    "UNIT_OF_MEASURE_NOT_FOUND": "Check the unit ID and try GET /api/catalog/units.",
    "STOCK_MOVEMENT_NOT_FOUND": "Check the movement ID and try GET /api/inventory/movements.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
    "INVALID_QUANTITY": "Quantities are whole numbers greater than zero.",
    "DUPLICATE_CODE": "Codes are unique. Choose another code or update the existing record.",
    "DUPLICATE_NAME": "Names are unique. Reuse the existing record or choose another name.",
    "IMMUTABLE_FIELD": "Codes cannot change after creation. Omit the code from the update.",
    "UNIT_REQUIRED": "Assign a unit of measure to the product before moving stock.",
    "WAREHOUSE_INACTIVE": "Reactivate the warehouse or receive into another one.",
    "INSUFFICIENT_STOCK": "Reduce the quantity to at most the available amount in details.",
    "HAS_DEPENDENTS": "Repeat the delete with ?cascade=true to remove dependent records.",
    "CASCADE_DELETE_FAILED": "Nothing was deleted. Check server logs and retry.",
    "LEDGER_BUSY": "Another movement for this product and warehouse is in progress. Retry shortly.",
    "DATABASE_ERROR": "A database operation failed. Check server logs.",
}

# Default hints by HTTP status code
STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    404: "The requested resource was not found. Verify the ID.",
    409: "The request conflicts with existing data.",
    422: "The request could not be processed in the current state.",
    500: "An internal error occurred. Check server logs.",
    503: "The service is temporarily unavailable. Retry later.",
}


def _get_hint(error_code: str, status_code: int) -> str:
    """Resolve hint from error code, falling back to status-based hint."""
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def status_for(exc: Exception) -> int:
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(request: Request, exc: Exception) -> JSONResponse:
    """Convert an exception to the standardized JSON response."""
    status_code = status_for(exc)

    if isinstance(exc, InventoryError):
        error_code = exc.code
        message = exc.message
        details = exc.details or None
    else:
        error_code = exc.__class__.__name__
        message = str(exc)
        details = None

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_error",
        path=request.url.path,
        error_code=error_code,
        error=message,
        status=status_code,
        exc_info=exc if status_code >= 500 else None,
    )

    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error_code=error_code,
            message=message,
            hint=_get_hint(error_code, status_code),
            details=details,
            path=request.url.path,
        ).model_dump(mode="json"),
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Catches anything the registered exception handlers did not.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException

    @app.exception_handler(InventoryError)
    async def inventory_exception_handler(
        request: Request,
        exc: InventoryError,
    ) -> JSONResponse:
        return error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle request body/query parsing errors."""
        errors = [
            {"loc": " -> ".join(str(part) for part in error["loc"]), "msg": error["msg"]}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error_code="VALIDATION_ERROR",
                message="Request validation failed",
                hint=HINT_MAP["VALIDATION_ERROR"],
                details={"errors": errors},
                path=request.url.path,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request,
        exc: HTTPException,
    ) -> JSONResponse:
        error_code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error_code=error_code,
                message=str(exc.detail) if exc.detail else "An error occurred",
                hint=_get_hint(error_code, exc.status_code),
                path=request.url.path,
            ).model_dump(mode="json"),
        )
