"""Receive Stock Use Case: IN movement into a warehouse."""

from dataclasses import dataclass

from stockledger.application.dto.requests import ReceiveStockRequest
from stockledger.application.dto.responses import StockMovementResponse
from stockledger.config import get_logger
from stockledger.core.entities.inventory import StockMovement
from stockledger.core.services import InventoryService

logger = get_logger(__name__)


@dataclass
class ReceiveStockResult:
    """Result of receiving stock."""

    movement: StockMovement
    balance: int | None  # warehouse balance after the receipt, from the append


class ReceiveStockUseCase:
    """Receive stock (IN movement)."""

    def __init__(self, inventory_service: InventoryService | None = None):
        self._inventory_service = inventory_service

    def _get_inventory_service(self) -> InventoryService:
        if self._inventory_service is None:
            from stockledger.application.services import get_inventory_service

            self._inventory_service = get_inventory_service()
        return self._inventory_service

    async def execute(self, request: ReceiveStockRequest) -> ReceiveStockResult:
        """Execute receive stock use case."""
        logger.info(
            "receive_stock_started",
            product_id=request.product_id,
            warehouse_id=request.warehouse_id,
            quantity=request.quantity,
        )

        service = self._get_inventory_service()
        movement = await service.stock_in(
            request.product_id,
            request.warehouse_id,
            request.quantity,
            unit_cost=request.unit_cost,
            notes=request.notes,
        )
        balance = movement.balance_after

        logger.info(
            "receive_stock_complete",
            movement_id=movement.id,
            balance=balance,
        )
        return ReceiveStockResult(movement=movement, balance=balance)

    def to_response(self, result: ReceiveStockResult) -> StockMovementResponse:
        """Convert result to API response."""
        return StockMovementResponse.from_entity(result.movement)
