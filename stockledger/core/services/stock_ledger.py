"""
Stock Ledger.

The only write path for stock. Movements are appended, never updated or
deleted. Preconditions are checked in a fixed order and the first failure
is raised before anything is written:

1. product exists and its unit resolves
2. warehouse exists (and is active, for IN)
3. quantity is a positive integer
4. for OUT, quantity does not exceed the balance folded from the ledger

Writers for the same (product, warehouse) key are serialized; the OUT
balance check and the insert happen in one store transaction.
"""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal

from stockledger.config import get_logger
from stockledger.core.entities.inventory import (
    MovementCommand,
    MovementDirection,
    StockMovement,
)
from stockledger.core.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    LedgerBusyError,
    MovementNotFoundError,
    ProductNotFoundError,
    ValidationError,
    WarehouseInactiveError,
    WarehouseNotFoundError,
)
from stockledger.core.interfaces.catalog_store import ICatalogStore
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.core.services.unit_resolver import require_unit
from stockledger.core.services.write_locks import KeyedLockRegistry, LockTimeout

logger = get_logger(__name__)


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class StockLedger:
    """Append-only movement ledger with precondition checks."""

    def __init__(
        self,
        ledger_store: ILedgerStore,
        catalog_store: ICatalogStore,
        locks: KeyedLockRegistry | None = None,
        on_recorded: Callable[[StockMovement], None] | None = None,
    ) -> None:
        self._ledger = ledger_store
        self._catalog = catalog_store
        self._locks = locks or KeyedLockRegistry()
        self._on_recorded = on_recorded

    async def record_movement(self, command: MovementCommand) -> StockMovement:
        """Validate and append one movement. Returns it with its id."""
        logger.info(
            "record_movement_started",
            product_id=command.product_id,
            warehouse_id=command.warehouse_id,
            direction=command.direction.value,
            quantity=command.quantity,
        )

        # 1. Product and unit
        product = await self._catalog.get_product(command.product_id)
        if product is None:
            raise ProductNotFoundError(command.product_id)
        unit = require_unit(product, await self._catalog.list_units())

        # 2. Warehouse
        warehouse = await self._catalog.get_warehouse(command.warehouse_id)
        if warehouse is None:
            raise WarehouseNotFoundError(command.warehouse_id)
        if command.direction is MovementDirection.IN and not warehouse.is_active:
            raise WarehouseInactiveError(command.warehouse_id)

        # 3. Quantity and cost
        if not _is_positive_int(command.quantity):
            raise InvalidQuantityError(command.quantity)
        unit_cost = self._check_unit_cost(command)

        movement = StockMovement(
            product_id=command.product_id,
            warehouse_id=command.warehouse_id,
            direction=command.direction,
            quantity=command.quantity,
            unit_id=unit.id,
            unit_cost=unit_cost,
            source_type=command.source_type,
            notes=command.notes,
        )

        # 4. Serialized append, with the balance guard for OUT
        key = (command.product_id, command.warehouse_id)
        try:
            async with self._locks.hold(key):
                recorded = await self._ledger.append_movement(
                    movement,
                    require_available=command.direction is MovementDirection.OUT,
                )
        except LockTimeout as e:
            raise LedgerBusyError(
                command.product_id, command.warehouse_id, self._locks.timeout
            ) from e
        except InsufficientStockError as e:
            logger.info(
                "insufficient_stock_rejected",
                product_id=command.product_id,
                warehouse_id=command.warehouse_id,
                requested=command.quantity,
                available=e.available,
            )
            raise InsufficientStockError(
                command.product_id,
                command.warehouse_id,
                requested=command.quantity,
                available=e.available,
                unit_symbol=unit.symbol,
            ) from e

        if self._on_recorded is not None:
            self._on_recorded(recorded)

        logger.info(
            "stock_movement_recorded",
            movement_id=recorded.id,
            product_id=recorded.product_id,
            warehouse_id=recorded.warehouse_id,
            direction=recorded.direction.value,
            quantity=recorded.quantity,
        )
        return recorded

    @staticmethod
    def _check_unit_cost(command: MovementCommand) -> Decimal | None:
        if command.unit_cost is None:
            return None
        if command.direction is MovementDirection.OUT:
            raise ValidationError(
                "unit_cost", "Unit cost is only recorded on stock-in", command.unit_cost
            )
        cost = Decimal(str(command.unit_cost))
        if cost < 0:
            raise ValidationError("unit_cost", "Unit cost cannot be negative", cost)
        return cost

    async def get_movement(self, movement_id: int) -> StockMovement:
        movement = await self._ledger.get_movement(movement_id)
        if movement is None:
            raise MovementNotFoundError(movement_id)
        return movement

    async def list_movements(
        self,
        product_id: int | None = None,
        warehouse_id: int | None = None,
        direction: MovementDirection | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[StockMovement]:
        return await self._ledger.list_movements(
            product_id=product_id,
            warehouse_id=warehouse_id,
            direction=direction,
            limit=limit,
            offset=offset,
        )
