"""SQLite implementation of the stock movement ledger."""

from datetime import UTC, datetime
from decimal import Decimal

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.inventory import (
    MovementDirection,
    StockBalance,
    StockMovement,
)
from stockledger.core.exceptions import (
    DatabaseError,
    InsufficientStockError,
    LedgerBusyError,
)
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_pool,
    get_write_transaction,
    is_locked_error,
)

logger = get_logger(__name__)

SIGNED_QUANTITY = "CASE direction WHEN 'IN' THEN quantity ELSE -quantity END"


class SQLiteLedgerStore(ILedgerStore):
    """Append-only stock_movements table with balance folds."""

    async def append_movement(
        self,
        movement: StockMovement,
        require_available: bool = False,
    ) -> StockMovement:
        try:
            async with get_write_transaction() as conn:
                if require_available:
                    available = await self._fold(
                        conn, movement.product_id, movement.warehouse_id
                    )
                    if movement.quantity > available:
                        raise InsufficientStockError(
                            movement.product_id,
                            movement.warehouse_id,
                            requested=movement.quantity,
                            available=available,
                        )

                cursor = await conn.execute(
                    """
                    INSERT INTO stock_movements (
                        product_id, warehouse_id, direction, quantity, unit_id,
                        unit_cost, source_type, notes, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        movement.product_id,
                        movement.warehouse_id,
                        movement.direction.value,
                        movement.quantity,
                        movement.unit_id,
                        str(movement.unit_cost) if movement.unit_cost is not None else None,
                        movement.source_type,
                        movement.notes,
                        movement.timestamp.isoformat(),
                    ),
                )
                movement_id = cursor.lastrowid
                balance_after = await self._fold(
                    conn, movement.product_id, movement.warehouse_id
                )
        except aiosqlite.OperationalError as e:
            if is_locked_error(e):
                pool = await get_pool()
                raise LedgerBusyError(
                    movement.product_id, movement.warehouse_id, pool.busy_timeout / 1000
                ) from e
            raise DatabaseError("append_movement", str(e)) from e
        except aiosqlite.IntegrityError as e:
            raise DatabaseError("append_movement", str(e)) from e

        logger.debug("movement_appended", movement_id=movement_id, balance_after=balance_after)
        return movement.model_copy(update={"id": movement_id, "balance_after": balance_after})

    async def get_movement(self, movement_id: int) -> StockMovement | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM stock_movements WHERE id = ?", (movement_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_movement(row) if row else None

    async def list_movements(
        self,
        product_id: int | None = None,
        warehouse_id: int | None = None,
        direction: MovementDirection | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[StockMovement]:
        where, params = self._filters(product_id, warehouse_id, direction)
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM stock_movements {where}
                ORDER BY created_at DESC, id DESC
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            )
            return [self._row_to_movement(row) for row in await cursor.fetchall()]

    async def count_movements(
        self,
        product_id: int | None = None,
        warehouse_id: int | None = None,
    ) -> int:
        where, params = self._filters(product_id, warehouse_id, None)
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT COUNT(*) FROM stock_movements {where}", params
            )
            return (await cursor.fetchone())[0]

    async def balance(self, product_id: int, warehouse_id: int | None = None) -> int:
        async with get_connection() as conn:
            return await self._fold(conn, product_id, warehouse_id)

    async def product_version(self, product_id: int) -> tuple[int, int]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT COUNT(*), COALESCE(MAX(id), 0) FROM stock_movements WHERE product_id = ?",
                (product_id,),
            )
            count, last_id = await cursor.fetchone()
            return count, last_id

    async def balances_for_product(self, product_id: int) -> dict[int, int]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT warehouse_id, SUM({SIGNED_QUANTITY}) AS qty
                FROM stock_movements
                WHERE product_id = ?
                GROUP BY warehouse_id
                """,
                (product_id,),
            )
            return {row["warehouse_id"]: row["qty"] for row in await cursor.fetchall()}

    async def balances_for_warehouse(self, warehouse_id: int) -> dict[int, int]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT product_id, SUM({SIGNED_QUANTITY}) AS qty
                FROM stock_movements
                WHERE warehouse_id = ?
                GROUP BY product_id
                """,
                (warehouse_id,),
            )
            return {row["product_id"]: row["qty"] for row in await cursor.fetchall()}

    async def all_balances(self) -> list[StockBalance]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT product_id, warehouse_id, SUM({SIGNED_QUANTITY}) AS qty
                FROM stock_movements
                GROUP BY product_id, warehouse_id
                ORDER BY product_id, warehouse_id
                """
            )
            return [
                StockBalance(
                    product_id=row["product_id"],
                    warehouse_id=row["warehouse_id"],
                    quantity_on_hand=row["qty"],
                )
                for row in await cursor.fetchall()
            ]

    @staticmethod
    async def _fold(
        conn: aiosqlite.Connection, product_id: int, warehouse_id: int | None
    ) -> int:
        """ΣIN − ΣOUT for the product, optionally within one warehouse."""
        query = f"SELECT COALESCE(SUM({SIGNED_QUANTITY}), 0) FROM stock_movements WHERE product_id = ?"
        params: tuple = (product_id,)
        if warehouse_id is not None:
            query += " AND warehouse_id = ?"
            params = (product_id, warehouse_id)
        cursor = await conn.execute(query, params)
        return (await cursor.fetchone())[0]

    @staticmethod
    def _filters(
        product_id: int | None,
        warehouse_id: int | None,
        direction: MovementDirection | None,
    ) -> tuple[str, tuple]:
        clauses: list[str] = []
        params: list = []
        if product_id is not None:
            clauses.append("product_id = ?")
            params.append(product_id)
        if warehouse_id is not None:
            clauses.append("warehouse_id = ?")
            params.append(warehouse_id)
        if direction is not None:
            clauses.append("direction = ?")
            params.append(direction.value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, tuple(params)

    @staticmethod
    def _row_to_movement(row: aiosqlite.Row) -> StockMovement:
        try:
            timestamp = datetime.fromisoformat(row["created_at"])
        except (ValueError, TypeError) as e:
            logger.error(
                "movement_timestamp_unreadable",
                movement_id=row["id"],
                created_at=row["created_at"],
            )
            raise DatabaseError(
                "read_movement",
                f"movement {row['id']} has unreadable created_at {row['created_at']!r}",
            ) from e
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=UTC)

        return StockMovement(
            id=row["id"],
            product_id=row["product_id"],
            warehouse_id=row["warehouse_id"],
            direction=MovementDirection(row["direction"]),
            quantity=row["quantity"],
            unit_id=row["unit_id"],
            unit_cost=Decimal(str(row["unit_cost"])) if row["unit_cost"] is not None else None,
            timestamp=timestamp,
            source_type=row["source_type"],
            notes=row["notes"],
        )
