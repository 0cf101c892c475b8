"""SQLite implementation of catalog storage."""

from datetime import UTC, datetime
from decimal import Decimal

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.catalog import (
    Category,
    Product,
    UnitOfMeasure,
    Warehouse,
)
from stockledger.core.exceptions import (
    CascadeDeleteError,
    CategoryNotFoundError,
    DatabaseError,
    DuplicateCodeError,
    DuplicateNameError,
)
from stockledger.core.interfaces.catalog_store import ICatalogStore
from stockledger.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)


def _parse_datetime(value: str | None) -> datetime:
    if value:
        try:
            parsed = datetime.fromisoformat(value)
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
        except (ValueError, TypeError):
            logger.warning("catalog_timestamp_unreadable", value=value)
    return datetime.now(UTC)


def _unique_violation(error: aiosqlite.IntegrityError, column: str) -> bool:
    return "UNIQUE" in str(error) and column in str(error)


def _foreign_key_violation(error: aiosqlite.IntegrityError) -> bool:
    return "FOREIGN KEY" in str(error)


# Products belonging to a category by id, or by legacy name when unlinked
CATEGORY_MEMBERS = """
    SELECT id FROM products
    WHERE category_id = :category_id
       OR (category_id IS NULL
           AND category_name = (SELECT name FROM categories WHERE id = :category_id))
"""


class SQLiteCatalogStore(ICatalogStore):
    """SQLite storage for units, categories, warehouses and products."""

    # Units of measure

    async def create_unit(self, unit: UnitOfMeasure) -> UnitOfMeasure:
        try:
            async with get_transaction() as conn:
                cursor = await conn.execute(
                    "INSERT INTO units_of_measure (name, symbol) VALUES (?, ?)",
                    (unit.name, unit.symbol),
                )
                unit.id = cursor.lastrowid
        except aiosqlite.IntegrityError as e:
            raise DuplicateNameError("Unit of measure", unit.name) from e
        logger.debug("unit_stored", unit_id=unit.id)
        return unit

    async def insert_unit_if_absent(self, unit: UnitOfMeasure) -> UnitOfMeasure:
        async with get_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO units_of_measure (name, symbol) VALUES (?, ?)
                ON CONFLICT(name) DO NOTHING
                """,
                (unit.name, unit.symbol),
            )
            cursor = await conn.execute(
                "SELECT * FROM units_of_measure WHERE name = ?", (unit.name,)
            )
            row = await cursor.fetchone()
        return self._row_to_unit(row)

    async def get_unit(self, unit_id: int) -> UnitOfMeasure | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM units_of_measure WHERE id = ?", (unit_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_unit(row) if row else None

    async def get_unit_by_name(self, name: str) -> UnitOfMeasure | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM units_of_measure WHERE name = ?", (name,)
            )
            row = await cursor.fetchone()
            return self._row_to_unit(row) if row else None

    async def list_units(self) -> list[UnitOfMeasure]:
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM units_of_measure ORDER BY name, id")
            return [self._row_to_unit(row) for row in await cursor.fetchall()]

    async def update_unit(self, unit: UnitOfMeasure) -> UnitOfMeasure:
        try:
            async with get_transaction() as conn:
                await conn.execute(
                    "UPDATE units_of_measure SET name = ?, symbol = ? WHERE id = ?",
                    (unit.name, unit.symbol, unit.id),
                )
        except aiosqlite.IntegrityError as e:
            raise DuplicateNameError("Unit of measure", unit.name) from e
        return unit

    async def delete_unit(self, unit_id: int) -> bool:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM units_of_measure WHERE id = ?", (unit_id,)
            )
            return cursor.rowcount > 0

    # Categories

    async def create_category(self, category: Category) -> Category:
        try:
            async with get_transaction() as conn:
                cursor = await conn.execute(
                    "INSERT INTO categories (name, description) VALUES (?, ?)",
                    (category.name, category.description),
                )
                category.id = cursor.lastrowid
        except aiosqlite.IntegrityError as e:
            raise DuplicateNameError("Category", category.name) from e
        return category

    async def insert_category_if_absent(self, category: Category) -> Category:
        async with get_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO categories (name, description) VALUES (?, ?)
                ON CONFLICT(name) DO NOTHING
                """,
                (category.name, category.description),
            )
            cursor = await conn.execute(
                "SELECT * FROM categories WHERE name = ?", (category.name,)
            )
            row = await cursor.fetchone()
        return self._row_to_category(row)

    async def get_category(self, category_id: int) -> Category | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM categories WHERE id = ?", (category_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_category(row) if row else None

    async def get_category_by_name(self, name: str) -> Category | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM categories WHERE name = ?", (name,)
            )
            row = await cursor.fetchone()
            return self._row_to_category(row) if row else None

    async def list_categories(self) -> list[Category]:
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM categories ORDER BY name, id")
            return [self._row_to_category(row) for row in await cursor.fetchall()]

    async def update_category(self, category: Category) -> Category:
        try:
            async with get_transaction() as conn:
                await conn.execute(
                    "UPDATE categories SET name = ?, description = ? WHERE id = ?",
                    (category.name, category.description, category.id),
                )
        except aiosqlite.IntegrityError as e:
            raise DuplicateNameError("Category", category.name) from e
        return category

    async def count_category_dependents(self, category_id: int) -> dict[str, int]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT COUNT(*) FROM ({CATEGORY_MEMBERS})", {"category_id": category_id}
            )
            products = (await cursor.fetchone())[0]
            cursor = await conn.execute(
                f"SELECT COUNT(*) FROM stock_movements WHERE product_id IN ({CATEGORY_MEMBERS})",
                {"category_id": category_id},
            )
            movements = (await cursor.fetchone())[0]
        return {"products": products, "stock_movements": movements}

    async def delete_category(self, category_id: int) -> None:
        async with get_transaction() as conn:
            step = "stock_movements"
            try:
                await conn.execute(
                    f"DELETE FROM stock_movements WHERE product_id IN ({CATEGORY_MEMBERS})",
                    {"category_id": category_id},
                )
                step = "products"
                await conn.execute(
                    f"DELETE FROM products WHERE id IN ({CATEGORY_MEMBERS})",
                    {"category_id": category_id},
                )
                step = "category"
                await conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
            except aiosqlite.Error as e:
                logger.error(
                    "cascade_delete_failed", entity="category", id=category_id, step=step
                )
                raise CascadeDeleteError("Category", category_id, step, str(e)) from e

    # Products

    async def create_product(self, product: Product) -> Product:
        now = datetime.now(UTC)
        product.created_at = now
        product.updated_at = now
        try:
            async with get_transaction() as conn:
                cursor = await conn.execute(
                    """
                    INSERT INTO products (
                        code, name, description, category_id, category_name,
                        unit_of_measure_id, unit_of_measure_name, default_price,
                        min_quantity, barcode, is_active, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        product.code,
                        product.name,
                        product.description,
                        product.category_id,
                        product.category_name,
                        product.unit_of_measure_id,
                        product.unit_of_measure_name,
                        str(product.default_price),
                        product.min_quantity,
                        product.barcode,
                        int(product.is_active),
                        product.created_at.isoformat(),
                        product.updated_at.isoformat(),
                    ),
                )
                product.id = cursor.lastrowid
        except aiosqlite.IntegrityError as e:
            if _unique_violation(e, "products.code"):
                raise DuplicateCodeError("Product", product.code) from e
            if _foreign_key_violation(e):
                raise CategoryNotFoundError(product.category_id) from e
            raise DatabaseError("create_product", str(e)) from e
        logger.debug("product_stored", product_id=product.id, code=product.code)
        return product

    async def get_product(self, product_id: int) -> Product | None:
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM products WHERE id = ?", (product_id,))
            row = await cursor.fetchone()
            return self._row_to_product(row) if row else None

    async def get_product_by_code(self, code: str) -> Product | None:
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM products WHERE code = ?", (code,))
            row = await cursor.fetchone()
            return self._row_to_product(row) if row else None

    async def list_products(
        self,
        search: str | None = None,
        category_id: int | None = None,
        active_only: bool = False,
        limit: int | None = 100,
        offset: int = 0,
    ) -> list[Product]:
        clauses: list[str] = []
        params: list = []
        if search:
            pattern = f"%{search.lower()}%"
            clauses.append("(LOWER(name) LIKE ? OR LOWER(code) LIKE ?)")
            params.extend([pattern, pattern])
        if category_id is not None:
            clauses.append("category_id = ?")
            params.append(category_id)
        if active_only:
            clauses.append("is_active = 1")

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        # LIMIT -1 is unbounded in SQLite
        params.extend([limit if limit is not None else -1, offset])

        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT * FROM products {where} ORDER BY code LIMIT ? OFFSET ?",
                params,
            )
            return [self._row_to_product(row) for row in await cursor.fetchall()]

    async def update_product(self, product: Product) -> Product:
        product.updated_at = datetime.now(UTC)
        try:
            async with get_transaction() as conn:
                await conn.execute(
                    """
                    UPDATE products SET
                        name = ?,
                        description = ?,
                        category_id = ?,
                        category_name = ?,
                        unit_of_measure_id = ?,
                        unit_of_measure_name = ?,
                        default_price = ?,
                        min_quantity = ?,
                        barcode = ?,
                        is_active = ?,
                        updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        product.name,
                        product.description,
                        product.category_id,
                        product.category_name,
                        product.unit_of_measure_id,
                        product.unit_of_measure_name,
                        str(product.default_price),
                        product.min_quantity,
                        product.barcode,
                        int(product.is_active),
                        product.updated_at.isoformat(),
                        product.id,
                    ),
                )
        except aiosqlite.IntegrityError as e:
            if _foreign_key_violation(e):
                raise CategoryNotFoundError(product.category_id) from e
            raise DatabaseError("update_product", str(e)) from e
        return product

    async def count_product_dependents(self, product_id: int) -> dict[str, int]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT COUNT(*) FROM stock_movements WHERE product_id = ?", (product_id,)
            )
            return {"stock_movements": (await cursor.fetchone())[0]}

    async def delete_product(self, product_id: int) -> None:
        async with get_transaction() as conn:
            step = "stock_movements"
            try:
                await conn.execute(
                    "DELETE FROM stock_movements WHERE product_id = ?", (product_id,)
                )
                step = "product"
                await conn.execute("DELETE FROM products WHERE id = ?", (product_id,))
            except aiosqlite.Error as e:
                logger.error(
                    "cascade_delete_failed", entity="product", id=product_id, step=step
                )
                raise CascadeDeleteError("Product", product_id, step, str(e)) from e

    # Warehouses

    async def create_warehouse(self, warehouse: Warehouse) -> Warehouse:
        now = datetime.now(UTC)
        warehouse.created_at = now
        warehouse.updated_at = now
        try:
            async with get_transaction() as conn:
                cursor = await conn.execute(
                    """
                    INSERT INTO warehouses (code, name, address, is_active, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        warehouse.code,
                        warehouse.name,
                        warehouse.address,
                        int(warehouse.is_active),
                        warehouse.created_at.isoformat(),
                        warehouse.updated_at.isoformat(),
                    ),
                )
                warehouse.id = cursor.lastrowid
        except aiosqlite.IntegrityError as e:
            raise DuplicateCodeError("Warehouse", warehouse.code) from e
        return warehouse

    async def get_warehouse(self, warehouse_id: int) -> Warehouse | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM warehouses WHERE id = ?", (warehouse_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_warehouse(row) if row else None

    async def list_warehouses(self, active_only: bool = False) -> list[Warehouse]:
        query = "SELECT * FROM warehouses"
        if active_only:
            query += " WHERE is_active = 1"
        async with get_connection() as conn:
            cursor = await conn.execute(query + " ORDER BY code")
            return [self._row_to_warehouse(row) for row in await cursor.fetchall()]

    async def update_warehouse(self, warehouse: Warehouse) -> Warehouse:
        warehouse.updated_at = datetime.now(UTC)
        async with get_transaction() as conn:
            await conn.execute(
                """
                UPDATE warehouses SET name = ?, address = ?, is_active = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    warehouse.name,
                    warehouse.address,
                    int(warehouse.is_active),
                    warehouse.updated_at.isoformat(),
                    warehouse.id,
                ),
            )
        return warehouse

    async def count_warehouse_dependents(self, warehouse_id: int) -> dict[str, int]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT COUNT(*) FROM stock_movements WHERE warehouse_id = ?",
                (warehouse_id,),
            )
            return {"stock_movements": (await cursor.fetchone())[0]}

    async def delete_warehouse(self, warehouse_id: int) -> None:
        async with get_transaction() as conn:
            step = "stock_movements"
            try:
                await conn.execute(
                    "DELETE FROM stock_movements WHERE warehouse_id = ?", (warehouse_id,)
                )
                step = "warehouse"
                await conn.execute("DELETE FROM warehouses WHERE id = ?", (warehouse_id,))
            except aiosqlite.Error as e:
                logger.error(
                    "cascade_delete_failed", entity="warehouse", id=warehouse_id, step=step
                )
                raise CascadeDeleteError("Warehouse", warehouse_id, step, str(e)) from e

    # Row mapping

    @staticmethod
    def _row_to_unit(row: aiosqlite.Row) -> UnitOfMeasure:
        return UnitOfMeasure(id=row["id"], name=row["name"], symbol=row["symbol"])

    @staticmethod
    def _row_to_category(row: aiosqlite.Row) -> Category:
        return Category(id=row["id"], name=row["name"], description=row["description"])

    @staticmethod
    def _row_to_warehouse(row: aiosqlite.Row) -> Warehouse:
        return Warehouse(
            id=row["id"],
            code=row["code"],
            name=row["name"],
            address=row["address"],
            is_active=bool(row["is_active"]),
            created_at=_parse_datetime(row["created_at"]),
            updated_at=_parse_datetime(row["updated_at"]),
        )

    @staticmethod
    def _row_to_product(row: aiosqlite.Row) -> Product:
        return Product(
            id=row["id"],
            code=row["code"],
            name=row["name"],
            description=row["description"],
            category_id=row["category_id"],
            category_name=row["category_name"],
            unit_of_measure_id=row["unit_of_measure_id"],
            unit_of_measure_name=row["unit_of_measure_name"],
            default_price=Decimal(str(row["default_price"] or "0")),
            min_quantity=row["min_quantity"],
            barcode=row["barcode"],
            is_active=bool(row["is_active"]),
            created_at=_parse_datetime(row["created_at"]),
            updated_at=_parse_datetime(row["updated_at"]),
        )
