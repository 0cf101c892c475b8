"""
Provision Product Use Case.

Creates a product for a manual entry that has no catalog selection:
find-or-create the unit, find-or-create the category, then create the
product referencing both. Repeating the call with the same unit and
category names reuses their rows.
"""

import time
from dataclasses import dataclass

from stockledger.application.dto.requests import ProvisionProductRequest
from stockledger.application.dto.responses import (
    CategoryResponse,
    ProductResponse,
    ProvisionProductResponse,
    UnitResponse,
)
from stockledger.config import get_logger, get_settings
from stockledger.core.entities.catalog import Category, Product, UnitOfMeasure
from stockledger.core.exceptions import DuplicateCodeError
from stockledger.core.services import CatalogService

logger = get_logger(__name__)

AUTO_CODE_PREFIX = "AUTO-"
MAX_CODE_ATTEMPTS = 5


def generate_product_code(now_ms: int | None = None) -> str:
    """AUTO-<epoch millis>."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{AUTO_CODE_PREFIX}{now_ms}"


@dataclass
class ProvisionProductResult:
    """Result of provisioning a product."""

    product: Product
    unit: UnitOfMeasure
    category: Category


class ProvisionProductUseCase:
    """Find-or-create unit and category, then create the product."""

    def __init__(self, catalog_service: CatalogService | None = None):
        self._catalog_service = catalog_service

    def _get_catalog_service(self) -> CatalogService:
        if self._catalog_service is None:
            from stockledger.application.services import get_catalog_service

            self._catalog_service = get_catalog_service()
        return self._catalog_service

    async def execute(self, request: ProvisionProductRequest) -> ProvisionProductResult:
        """Execute provisioning."""
        defaults = get_settings().inventory
        unit_name = request.unit_name or defaults.default_unit_name
        category_name = request.category_name or defaults.default_category_name

        logger.info(
            "provision_product_started",
            product_name=request.product_name,
            unit_name=unit_name,
            category_name=category_name,
        )

        catalog = self._get_catalog_service()
        unit = await catalog.find_or_create_unit(unit_name)
        category = await catalog.find_or_create_category(category_name)

        data = {
            "name": request.product_name,
            "description": request.description,
            "category_id": category.id,
            "unit_of_measure_id": unit.id,
            "default_price": request.default_price,
            "min_quantity": request.min_quantity,
        }

        if request.code:
            product = await catalog.create_product({**data, "code": request.code})
        else:
            product = await self._create_with_generated_code(catalog, data)

        logger.info(
            "provision_product_complete",
            product_id=product.id,
            code=product.code,
            unit_id=unit.id,
            category_id=category.id,
        )
        return ProvisionProductResult(product=product, unit=unit, category=category)

    @staticmethod
    async def _create_with_generated_code(catalog: CatalogService, data: dict) -> Product:
        # Two provisions in the same millisecond would collide; step forward.
        now_ms = int(time.time() * 1000)
        for attempt in range(MAX_CODE_ATTEMPTS - 1):
            try:
                return await catalog.create_product(
                    {**data, "code": generate_product_code(now_ms + attempt)}
                )
            except DuplicateCodeError:
                continue
        return await catalog.create_product(
            {**data, "code": generate_product_code(now_ms + MAX_CODE_ATTEMPTS - 1)}
        )

    def to_response(self, result: ProvisionProductResult) -> ProvisionProductResponse:
        """Convert result to API response."""
        return ProvisionProductResponse(
            product=ProductResponse.from_entity(result.product),
            unit=UnitResponse.from_entity(result.unit),
            category=CategoryResponse.from_entity(result.category),
        )
