"""
Domain exceptions for the stock ledger service.

Every public operation either returns a value or raises exactly one of
these. Each carries a machine-readable code and enough details for a
caller to render an actionable message without another request.
"""

from typing import Any


class InventoryError(Exception):
    """Base exception for all stock ledger errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Validation Exceptions
class ValidationError(InventoryError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


class InvalidQuantityError(ValidationError):
    """Movement quantity is not a positive integer."""

    def __init__(self, quantity: Any):
        super().__init__(
            field="quantity",
            message="Quantity must be a positive integer",
            value=quantity,
        )
        self.code = "INVALID_QUANTITY"


# Not Found Exceptions
class NotFoundError(InventoryError):
    """Base exception for unresolved identifiers."""

    entity: str = "Entity"

    def __init__(self, entity_id: Any):
        code = self.entity.upper().replace(" ", "_") + "_NOT_FOUND"
        super().__init__(
            f"{self.entity} not found: {entity_id}",
            code=code,
            details={"id": entity_id},
        )


class ProductNotFoundError(NotFoundError):
    entity = "Product"


class WarehouseNotFoundError(NotFoundError):
    entity = "Warehouse"


class CategoryNotFoundError(NotFoundError):
    entity = "Category"


class UnitNotFoundError(NotFoundError):
    entity = "Unit of measure"


class MovementNotFoundError(NotFoundError):
    entity = "Stock movement"


# Conflict Exceptions
class ConflictError(InventoryError):
    """Write conflicts with existing state."""

    pass


class DuplicateCodeError(ConflictError):
    """A product or warehouse with this code already exists."""

    def __init__(self, entity: str, code: str):
        super().__init__(
            f"{entity} code already exists: {code}",
            code="DUPLICATE_CODE",
            details={"entity": entity, "code": code},
        )


class DuplicateNameError(ConflictError):
    """A unit or category with this name already exists."""

    def __init__(self, entity: str, name: str):
        super().__init__(
            f"{entity} name already exists: {name}",
            code="DUPLICATE_NAME",
            details={"entity": entity, "name": name},
        )


class ImmutableFieldError(ConflictError):
    """Attempt to change a field that is fixed after creation."""

    def __init__(self, entity: str, field: str, current: Any, attempted: Any):
        super().__init__(
            f"{entity} field '{field}' cannot be changed "
            f"(current: {current!r}, attempted: {attempted!r})",
            code="IMMUTABLE_FIELD",
            details={
                "entity": entity,
                "field": field,
                "current": current,
                "attempted": attempted,
            },
        )


# Precondition Exceptions
class PreconditionError(InventoryError):
    """Command is well-formed but the current state does not allow it."""

    pass


class UnitRequiredError(PreconditionError):
    """Product has no resolvable unit of measure."""

    def __init__(
        self,
        product_id: int | None,
        missing_field: str = "unit_of_measure_id",
        reason: str = "missing",
        stale_value: Any = None,
    ):
        if reason == "stale":
            message = (
                f"Product {product_id} references unit {stale_value!r} "
                f"via '{missing_field}', which does not exist"
            )
        else:
            message = f"Product {product_id} must have a unit of measure assigned"
        super().__init__(
            message,
            code="UNIT_REQUIRED",
            details={
                "product_id": product_id,
                "missing_field": missing_field,
                "reason": reason,
                "stale_value": stale_value,
            },
        )


class WarehouseInactiveError(PreconditionError):
    """Inactive warehouses accept no new stock."""

    def __init__(self, warehouse_id: int):
        super().__init__(
            f"Warehouse {warehouse_id} is inactive and cannot receive stock",
            code="WAREHOUSE_INACTIVE",
            details={"warehouse_id": warehouse_id},
        )


class InsufficientStockError(PreconditionError):
    """Stock-out exceeds the quantity on hand."""

    def __init__(
        self,
        product_id: int,
        warehouse_id: int,
        requested: int,
        available: int,
        unit_symbol: str = "units",
    ):
        super().__init__(
            f"Cannot remove {requested} {unit_symbol}. "
            f"Only {available} {unit_symbol} available in this warehouse.",
            code="INSUFFICIENT_STOCK",
            details={
                "product_id": product_id,
                "warehouse_id": warehouse_id,
                "requested": requested,
                "available": available,
                "unit_symbol": unit_symbol,
            },
        )
        self.available = available
        self.requested = requested


# Dependency Exceptions
class DependencyError(InventoryError):
    """Delete blocked or aborted because of dependent records."""

    pass


class HasDependentsError(DependencyError):
    """Entity still has dependents and cascade was not confirmed."""

    def __init__(self, entity: str, entity_id: int, dependents: dict[str, int]):
        summary = ", ".join(f"{count} {name}" for name, count in dependents.items())
        super().__init__(
            f"{entity} {entity_id} has dependent records ({summary}); "
            "confirm cascade to delete them",
            code="HAS_DEPENDENTS",
            details={
                "entity": entity,
                "id": entity_id,
                "dependents": dependents,
            },
        )


class CascadeDeleteError(DependencyError):
    """A cascade step failed; the whole delete was rolled back."""

    def __init__(self, entity: str, entity_id: int, step: str, reason: str):
        super().__init__(
            f"Cascade delete of {entity} {entity_id} failed at step "
            f"'{step}': {reason}",
            code="CASCADE_DELETE_FAILED",
            details={
                "entity": entity,
                "id": entity_id,
                "step": step,
                "reason": reason,
            },
        )


# Concurrency Exceptions
class ConcurrencyError(InventoryError):
    """Base exception for contention on shared ledger state."""

    pass


class LedgerBusyError(ConcurrencyError):
    """Write lock for a (product, warehouse) key was not acquired in time."""

    def __init__(self, product_id: int, warehouse_id: int, timeout: float):
        super().__init__(
            f"Ledger busy for product {product_id} in warehouse {warehouse_id}, "
            f"retry later (waited {timeout}s)",
            code="LEDGER_BUSY",
            details={
                "product_id": product_id,
                "warehouse_id": warehouse_id,
                "timeout": timeout,
            },
        )


# Storage Exceptions
class StorageError(InventoryError):
    """Base exception for storage operations."""

    pass


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


class ConfigurationError(InventoryError):
    """Configuration error."""

    pass
