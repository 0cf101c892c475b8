"""Abstract interface for the append-only stock movement ledger."""

from abc import ABC, abstractmethod

from stockledger.core.entities.inventory import (
    MovementDirection,
    StockBalance,
    StockMovement,
)


class ILedgerStore(ABC):
    """Interface for stock movement persistence and balance folds."""

    @abstractmethod
    async def append_movement(
        self,
        movement: StockMovement,
        require_available: bool = False,
    ) -> StockMovement:
        """
        Append a movement and return it with its assigned id and
        balance_after, the (product, warehouse) balance including it.

        With require_available, the balance for the movement's
        (product, warehouse) key is folded from the ledger in the same
        write transaction as the insert, and InsufficientStockError is
        raised without writing if the quantity exceeds it.
        """
        pass

    @abstractmethod
    async def get_movement(self, movement_id: int) -> StockMovement | None:
        """Get a movement by ID."""
        pass

    @abstractmethod
    async def list_movements(
        self,
        product_id: int | None = None,
        warehouse_id: int | None = None,
        direction: MovementDirection | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[StockMovement]:
        """List movements, newest first."""
        pass

    @abstractmethod
    async def count_movements(
        self,
        product_id: int | None = None,
        warehouse_id: int | None = None,
    ) -> int:
        """Count movements matching the filters."""
        pass

    @abstractmethod
    async def balance(self, product_id: int, warehouse_id: int | None = None) -> int:
        """Sum of signed quantities for the product, in one warehouse or all."""
        pass

    @abstractmethod
    async def product_version(self, product_id: int) -> tuple[int, int]:
        """
        (movement count, highest movement id) for one product.

        Changes whenever a movement for the product is appended or deleted,
        in this process or any other sharing the database.
        """
        pass

    @abstractmethod
    async def balances_for_product(self, product_id: int) -> dict[int, int]:
        """Map of warehouse_id -> quantity on hand for one product."""
        pass

    @abstractmethod
    async def balances_for_warehouse(self, warehouse_id: int) -> dict[int, int]:
        """Map of product_id -> quantity on hand within one warehouse."""
        pass

    @abstractmethod
    async def all_balances(self) -> list[StockBalance]:
        """Every (product, warehouse) key that has movements."""
        pass
