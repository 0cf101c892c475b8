"""Issue Stock Use Case: OUT movement, refused when it would overdraw."""

from dataclasses import dataclass

from stockledger.application.dto.requests import IssueStockRequest
from stockledger.application.dto.responses import StockMovementResponse
from stockledger.config import get_logger
from stockledger.core.entities.inventory import StockMovement
from stockledger.core.services import InventoryService

logger = get_logger(__name__)


@dataclass
class IssueStockResult:
    """Result of issuing stock."""

    movement: StockMovement
    balance: int | None  # warehouse balance after the issue, from the append


class IssueStockUseCase:
    """Issue stock (OUT movement) with balance check."""

    def __init__(self, inventory_service: InventoryService | None = None):
        self._inventory_service = inventory_service

    def _get_inventory_service(self) -> InventoryService:
        if self._inventory_service is None:
            from stockledger.application.services import get_inventory_service

            self._inventory_service = get_inventory_service()
        return self._inventory_service

    async def execute(self, request: IssueStockRequest) -> IssueStockResult:
        """
        Execute issue stock use case.

        InsufficientStockError propagates with the available quantity.
        """
        logger.info(
            "issue_stock_started",
            product_id=request.product_id,
            warehouse_id=request.warehouse_id,
            quantity=request.quantity,
        )

        service = self._get_inventory_service()
        movement = await service.stock_out(
            request.product_id,
            request.warehouse_id,
            request.quantity,
            notes=request.notes,
        )
        balance = movement.balance_after

        logger.info(
            "issue_stock_complete",
            movement_id=movement.id,
            remaining=balance,
        )
        return IssueStockResult(movement=movement, balance=balance)

    def to_response(self, result: IssueStockResult) -> StockMovementResponse:
        """Convert result to API response."""
        return StockMovementResponse.from_entity(result.movement)
