"""Abstract interface for catalog reference data storage."""

from abc import ABC, abstractmethod

from stockledger.core.entities.catalog import (
    Category,
    Product,
    UnitOfMeasure,
    Warehouse,
)


class ICatalogStore(ABC):
    """
    Interface for product, category, warehouse and unit persistence.

    Implementations raise DuplicateCodeError / DuplicateNameError on unique
    violations. The delete_* methods remove dependents first and the parent
    last inside one transaction; any failed step rolls the whole delete back
    and raises CascadeDeleteError.
    """

    # Units of measure

    @abstractmethod
    async def create_unit(self, unit: UnitOfMeasure) -> UnitOfMeasure:
        """Create a unit. Raises DuplicateNameError if the name exists."""
        pass

    @abstractmethod
    async def insert_unit_if_absent(self, unit: UnitOfMeasure) -> UnitOfMeasure:
        """Insert a unit unless one with the same name exists; return the stored row."""
        pass

    @abstractmethod
    async def get_unit(self, unit_id: int) -> UnitOfMeasure | None:
        """Get unit by ID."""
        pass

    @abstractmethod
    async def get_unit_by_name(self, name: str) -> UnitOfMeasure | None:
        """Get unit by exact (case-sensitive) name."""
        pass

    @abstractmethod
    async def list_units(self) -> list[UnitOfMeasure]:
        """List all units ordered by name."""
        pass

    @abstractmethod
    async def update_unit(self, unit: UnitOfMeasure) -> UnitOfMeasure:
        """Update unit name and symbol."""
        pass

    @abstractmethod
    async def delete_unit(self, unit_id: int) -> bool:
        """Delete a unit. Products referencing it keep a stale id."""
        pass

    # Categories

    @abstractmethod
    async def create_category(self, category: Category) -> Category:
        """Create a category. Raises DuplicateNameError if the name exists."""
        pass

    @abstractmethod
    async def insert_category_if_absent(self, category: Category) -> Category:
        """Insert a category unless one with the same name exists; return the stored row."""
        pass

    @abstractmethod
    async def get_category(self, category_id: int) -> Category | None:
        """Get category by ID."""
        pass

    @abstractmethod
    async def get_category_by_name(self, name: str) -> Category | None:
        """Get category by exact name."""
        pass

    @abstractmethod
    async def list_categories(self) -> list[Category]:
        """List all categories ordered by name."""
        pass

    @abstractmethod
    async def update_category(self, category: Category) -> Category:
        """Update category name and description."""
        pass

    @abstractmethod
    async def count_category_dependents(self, category_id: int) -> dict[str, int]:
        """Count products in the category and movements of those products."""
        pass

    @abstractmethod
    async def delete_category(self, category_id: int) -> None:
        """Delete movements of member products, the products, then the category."""
        pass

    # Products

    @abstractmethod
    async def create_product(self, product: Product) -> Product:
        """Create a product. Raises DuplicateCodeError if the code exists."""
        pass

    @abstractmethod
    async def get_product(self, product_id: int) -> Product | None:
        """Get product by ID."""
        pass

    @abstractmethod
    async def get_product_by_code(self, code: str) -> Product | None:
        """Get product by its unique code."""
        pass

    @abstractmethod
    async def list_products(
        self,
        search: str | None = None,
        category_id: int | None = None,
        active_only: bool = False,
        limit: int | None = 100,
        offset: int = 0,
    ) -> list[Product]:
        """
        List products ordered by code.

        search matches name or code case-insensitively; limit=None returns
        every matching row.
        """
        pass

    @abstractmethod
    async def update_product(self, product: Product) -> Product:
        """Update every mutable product field. The code column is never written."""
        pass

    @abstractmethod
    async def count_product_dependents(self, product_id: int) -> dict[str, int]:
        """Count movements referencing the product."""
        pass

    @abstractmethod
    async def delete_product(self, product_id: int) -> None:
        """Delete the product's movements, then the product."""
        pass

    # Warehouses

    @abstractmethod
    async def create_warehouse(self, warehouse: Warehouse) -> Warehouse:
        """Create a warehouse. Raises DuplicateCodeError if the code exists."""
        pass

    @abstractmethod
    async def get_warehouse(self, warehouse_id: int) -> Warehouse | None:
        """Get warehouse by ID."""
        pass

    @abstractmethod
    async def list_warehouses(self, active_only: bool = False) -> list[Warehouse]:
        """List warehouses ordered by code."""
        pass

    @abstractmethod
    async def update_warehouse(self, warehouse: Warehouse) -> Warehouse:
        """Update name, address and active flag. The code column is never written."""
        pass

    @abstractmethod
    async def count_warehouse_dependents(self, warehouse_id: int) -> dict[str, int]:
        """Count movements referencing the warehouse."""
        pass

    @abstractmethod
    async def delete_warehouse(self, warehouse_id: int) -> None:
        """Delete the warehouse's movements, then the warehouse."""
        pass
