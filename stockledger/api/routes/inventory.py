"""Inventory endpoints: stock movements, balances and reorder reports."""

from fastapi import APIRouter, Depends, Query, status

from stockledger.api.dependencies import (
    get_inventory,
    get_issue_stock_use_case,
    get_receive_stock_use_case,
)
from stockledger.application.dto.requests import IssueStockRequest, ReceiveStockRequest
from stockledger.application.dto.responses import (
    BalanceResponse,
    ErrorResponse,
    InventoryOverviewResponse,
    MovementListResponse,
    ProductDetailResponse,
    StockAlertListResponse,
    StockAlertResponse,
    StockMovementResponse,
    WarehouseSummaryResponse,
)
from stockledger.application.use_cases.issue_stock import IssueStockUseCase
from stockledger.application.use_cases.receive_stock import ReceiveStockUseCase
from stockledger.core.entities.inventory import MovementDirection
from stockledger.core.services import InventoryService

router = APIRouter(prefix="/api/inventory", tags=["inventory"])

MOVEMENT_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid quantity or unit cost"},
    404: {"model": ErrorResponse, "description": "Product or warehouse not found"},
    422: {"model": ErrorResponse, "description": "Unit missing, warehouse inactive, or insufficient stock"},
    503: {"model": ErrorResponse, "description": "Ledger busy, retry"},
}


@router.post(
    "/stock-in",
    response_model=StockMovementResponse,
    status_code=status.HTTP_201_CREATED,
    responses=MOVEMENT_RESPONSES,
)
async def stock_in(
    request: ReceiveStockRequest,
    use_case: ReceiveStockUseCase = Depends(get_receive_stock_use_case),
) -> StockMovementResponse:
    """Receive stock (IN movement)."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post(
    "/stock-out",
    response_model=StockMovementResponse,
    status_code=status.HTTP_201_CREATED,
    responses=MOVEMENT_RESPONSES,
)
async def stock_out(
    request: IssueStockRequest,
    use_case: IssueStockUseCase = Depends(get_issue_stock_use_case),
) -> StockMovementResponse:
    """Issue stock (OUT movement). Overdrawing returns 422 with the available quantity."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.get(
    "/products/{product_id}",
    response_model=ProductDetailResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_product_detail(
    product_id: int,
    inventory: InventoryService = Depends(get_inventory),
) -> ProductDetailResponse:
    return ProductDetailResponse.from_entity(await inventory.get_product_detail(product_id))


@router.get(
    "/products/{product_id}/balance",
    response_model=BalanceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_balance(
    product_id: int,
    warehouse_id: int | None = Query(default=None, description="Omit for all warehouses"),
    inventory: InventoryService = Depends(get_inventory),
) -> BalanceResponse:
    quantity = await inventory.get_balance(product_id, warehouse_id)
    return BalanceResponse(
        product_id=product_id,
        warehouse_id=warehouse_id,
        quantity_on_hand=quantity,
    )


@router.get("/movements", response_model=MovementListResponse)
async def list_movements(
    product_id: int | None = Query(default=None),
    warehouse_id: int | None = Query(default=None),
    direction: MovementDirection | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    inventory: InventoryService = Depends(get_inventory),
) -> MovementListResponse:
    """Movement history, newest first."""
    movements = await inventory.movement_history(
        product_id=product_id,
        warehouse_id=warehouse_id,
        direction=direction,
        limit=limit,
        offset=offset,
    )
    return MovementListResponse(
        items=[StockMovementResponse.from_entity(m) for m in movements],
        total=len(movements),
        limit=limit,
        offset=offset,
    )


@router.get("/low-stock", response_model=StockAlertListResponse)
async def low_stock(
    inventory: InventoryService = Depends(get_inventory),
) -> StockAlertListResponse:
    """Active products at or below their reorder threshold, excluding zero stock."""
    entries = await inventory.get_low_stock()
    return StockAlertListResponse(
        items=[StockAlertResponse.from_entity(e) for e in entries],
        total=len(entries),
    )


@router.get("/out-of-stock", response_model=StockAlertListResponse)
async def out_of_stock(
    inventory: InventoryService = Depends(get_inventory),
) -> StockAlertListResponse:
    entries = await inventory.get_out_of_stock()
    return StockAlertListResponse(
        items=[StockAlertResponse.from_entity(e) for e in entries],
        total=len(entries),
    )


@router.get("/warehouses/summary", response_model=list[WarehouseSummaryResponse])
async def list_warehouse_summaries(
    inventory: InventoryService = Depends(get_inventory),
) -> list[WarehouseSummaryResponse]:
    return [
        WarehouseSummaryResponse.from_entity(s)
        for s in await inventory.list_warehouse_summaries()
    ]


@router.get(
    "/warehouses/{warehouse_id}/summary",
    response_model=WarehouseSummaryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def warehouse_summary(
    warehouse_id: int,
    inventory: InventoryService = Depends(get_inventory),
) -> WarehouseSummaryResponse:
    return WarehouseSummaryResponse.from_entity(await inventory.warehouse_summary(warehouse_id))


@router.get("/overview", response_model=InventoryOverviewResponse)
async def overview(
    inventory: InventoryService = Depends(get_inventory),
) -> InventoryOverviewResponse:
    return InventoryOverviewResponse.from_entity(await inventory.get_overview())
