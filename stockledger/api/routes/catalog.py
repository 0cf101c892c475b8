"""
Catalog endpoints: products, categories, warehouses, units of measure.
"""

from fastapi import APIRouter, Depends, Query, Response, status

from stockledger.api.dependencies import get_catalog, get_provision_product_use_case
from stockledger.application.dto.requests import (
    CreateCategoryRequest,
    CreateProductRequest,
    CreateUnitRequest,
    CreateWarehouseRequest,
    ProvisionProductRequest,
    UpdateCategoryRequest,
    UpdateProductRequest,
    UpdateUnitRequest,
    UpdateWarehouseRequest,
)
from stockledger.application.dto.responses import (
    CategoryResponse,
    ErrorResponse,
    ProductListResponse,
    ProductResponse,
    ProvisionProductResponse,
    UnitResponse,
    WarehouseResponse,
)
from stockledger.application.use_cases.provision_product import ProvisionProductUseCase
from stockledger.core.services import CatalogService

router = APIRouter(prefix="/api/catalog", tags=["catalog"])

DELETE_RESPONSES = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse, "description": "Has dependents, or cascade failed"},
}


# --- Products ---


@router.post(
    "/products",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def create_product(
    request: CreateProductRequest,
    catalog: CatalogService = Depends(get_catalog),
) -> ProductResponse:
    product = await catalog.create_product(request.model_dump())
    return ProductResponse.from_entity(product)


@router.get("/products", response_model=ProductListResponse)
async def list_products(
    search: str | None = Query(default=None, description="Name or code contains"),
    category_id: int | None = Query(default=None),
    active_only: bool = Query(default=False),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    catalog: CatalogService = Depends(get_catalog),
) -> ProductListResponse:
    products = await catalog.list_products(
        search=search,
        category_id=category_id,
        active_only=active_only,
        limit=limit,
        offset=offset,
    )
    return ProductListResponse(
        items=[ProductResponse.from_entity(p) for p in products],
        total=len(products),
    )


@router.get(
    "/products/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_product(
    product_id: int,
    catalog: CatalogService = Depends(get_catalog),
) -> ProductResponse:
    return ProductResponse.from_entity(await catalog.get_product(product_id))


@router.patch(
    "/products/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_product(
    product_id: int,
    request: UpdateProductRequest,
    catalog: CatalogService = Depends(get_catalog),
) -> ProductResponse:
    """Partial update. Sending a different code is rejected with 409."""
    product = await catalog.update_product(product_id, request.model_dump(exclude_unset=True))
    return ProductResponse.from_entity(product)


@router.delete(
    "/products/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=DELETE_RESPONSES,
)
async def delete_product(
    product_id: int,
    cascade: bool = Query(default=False, description="Also delete stock movements"),
    catalog: CatalogService = Depends(get_catalog),
) -> Response:
    await catalog.delete_product(product_id, cascade=cascade)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/provision",
    response_model=ProvisionProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def provision_product(
    request: ProvisionProductRequest,
    use_case: ProvisionProductUseCase = Depends(get_provision_product_use_case),
) -> ProvisionProductResponse:
    """Create a product, finding or creating its unit and category by name."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


# --- Categories ---


@router.post(
    "/categories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
)
async def create_category(
    request: CreateCategoryRequest,
    catalog: CatalogService = Depends(get_catalog),
) -> CategoryResponse:
    category = await catalog.create_category(request.name, request.description)
    return CategoryResponse.from_entity(category)


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(
    catalog: CatalogService = Depends(get_catalog),
) -> list[CategoryResponse]:
    return [CategoryResponse.from_entity(c) for c in await catalog.list_categories()]


@router.get(
    "/categories/{category_id}",
    response_model=CategoryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_category(
    category_id: int,
    catalog: CatalogService = Depends(get_catalog),
) -> CategoryResponse:
    return CategoryResponse.from_entity(await catalog.get_category(category_id))


@router.patch(
    "/categories/{category_id}",
    response_model=CategoryResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_category(
    category_id: int,
    request: UpdateCategoryRequest,
    catalog: CatalogService = Depends(get_catalog),
) -> CategoryResponse:
    category = await catalog.update_category(
        category_id, name=request.name, description=request.description
    )
    return CategoryResponse.from_entity(category)


@router.delete(
    "/categories/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=DELETE_RESPONSES,
)
async def delete_category(
    category_id: int,
    cascade: bool = Query(default=False, description="Also delete member products and their movements"),
    catalog: CatalogService = Depends(get_catalog),
) -> Response:
    await catalog.delete_category(category_id, cascade=cascade)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Warehouses ---


@router.post(
    "/warehouses",
    response_model=WarehouseResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_warehouse(
    request: CreateWarehouseRequest,
    catalog: CatalogService = Depends(get_catalog),
) -> WarehouseResponse:
    warehouse = await catalog.create_warehouse(request.model_dump())
    return WarehouseResponse.from_entity(warehouse)


@router.get("/warehouses", response_model=list[WarehouseResponse])
async def list_warehouses(
    active_only: bool = Query(default=False),
    catalog: CatalogService = Depends(get_catalog),
) -> list[WarehouseResponse]:
    warehouses = await catalog.list_warehouses(active_only=active_only)
    return [WarehouseResponse.from_entity(w) for w in warehouses]


@router.get(
    "/warehouses/{warehouse_id}",
    response_model=WarehouseResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_warehouse(
    warehouse_id: int,
    catalog: CatalogService = Depends(get_catalog),
) -> WarehouseResponse:
    return WarehouseResponse.from_entity(await catalog.get_warehouse(warehouse_id))


@router.patch(
    "/warehouses/{warehouse_id}",
    response_model=WarehouseResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_warehouse(
    warehouse_id: int,
    request: UpdateWarehouseRequest,
    catalog: CatalogService = Depends(get_catalog),
) -> WarehouseResponse:
    warehouse = await catalog.update_warehouse(
        warehouse_id, request.model_dump(exclude_unset=True)
    )
    return WarehouseResponse.from_entity(warehouse)


@router.delete(
    "/warehouses/{warehouse_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=DELETE_RESPONSES,
)
async def delete_warehouse(
    warehouse_id: int,
    cascade: bool = Query(default=False, description="Also delete stock movements"),
    catalog: CatalogService = Depends(get_catalog),
) -> Response:
    await catalog.delete_warehouse(warehouse_id, cascade=cascade)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Units of measure ---


@router.post(
    "/units",
    response_model=UnitResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
)
async def create_unit(
    request: CreateUnitRequest,
    catalog: CatalogService = Depends(get_catalog),
) -> UnitResponse:
    return UnitResponse.from_entity(await catalog.create_unit(request.name, request.symbol))


@router.get("/units", response_model=list[UnitResponse])
async def list_units(catalog: CatalogService = Depends(get_catalog)) -> list[UnitResponse]:
    return [UnitResponse.from_entity(u) for u in await catalog.list_units()]


@router.patch(
    "/units/{unit_id}",
    response_model=UnitResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_unit(
    unit_id: int,
    request: UpdateUnitRequest,
    catalog: CatalogService = Depends(get_catalog),
) -> UnitResponse:
    unit = await catalog.update_unit(unit_id, name=request.name, symbol=request.symbol)
    return UnitResponse.from_entity(unit)


@router.delete(
    "/units/{unit_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_unit(
    unit_id: int,
    catalog: CatalogService = Depends(get_catalog),
) -> Response:
    """Products referencing the unit keep a stale reference until reassigned."""
    await catalog.delete_unit(unit_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
