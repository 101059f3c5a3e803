"""FastAPI routes for the Inventory domain — stock levels and the reservation lifecycle.

Stock entities are addressed by their ledger id: ``product:<id>`` or
``variant_combination:<id>``.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from inventory.api.schemas import (
    AdjustTotalRequest,
    AvailabilityResponse,
    LowStockResponse,
    QuantityRequest,
    SetTrackingRequest,
    StockLevelsResponse,
    StockOperationResponse,
    TrackStockRequest,
)
from inventory.stock.adjustment import AdjustStockTotal
from inventory.stock.engine import StockOutcome, stock_engine
from inventory.stock.initialization import SetStockTracking, TrackStock
from inventory.stock.ledger import StockableRef
from inventory.stock.reservation import CommitStock, ReleaseStock, ReserveStock

_FAILURE_STATUS = {
    StockOutcome.INSUFFICIENT_STOCK: 409,
    StockOutcome.NOT_FOUND: 404,
    StockOutcome.UNAVAILABLE: 503,
}


def _entity_id(entity_id):
    """The path's ledger id, or a 400 when it is not ``<kind>:<id>``."""
    try:
        return StockableRef.parse(entity_id).entity_id
    except ValueError:
        raise ValidationError({"entity_id": [f"Invalid stock entity id '{entity_id}'"]}) from None


def _levels(entity):
    if entity is None:
        return None
    return StockLevelsResponse(**entity.to_dict())


def _failure(outcome, message, **extra):
    content = {"error": outcome.value, "message": message, **extra}
    return JSONResponse(status_code=_FAILURE_STATUS[outcome], content=content)


def _operation_response(result):
    """200 with the new levels, or the failure status with a structured body."""
    if result.success:
        return StockOperationResponse(
            entity_id=result.entity_id,
            operation=result.operation,
            quantity=result.quantity,
            outcome=result.outcome.value,
            success=True,
            levels=_levels(result.entity),
        )

    if result.outcome == StockOutcome.INSUFFICIENT_STOCK:
        return _failure(result.outcome, result.message, available=result.available)
    return _failure(result.outcome, result.message)


inventory_router = APIRouter(prefix="/inventory", tags=["inventory"])


@inventory_router.post("", status_code=201, response_model=StockLevelsResponse)
async def track_stock(body: TrackStockRequest) -> StockLevelsResponse:
    ref = StockableRef.for_item(body.product_id, body.variant_combination_id)
    command = TrackStock(
        entity_id=ref.entity_id,
        kind=ref.kind.value,
        quantity=body.quantity,
        inventory_tracked=body.inventory_tracked,
        low_stock_threshold=body.low_stock_threshold,
        seller_id=body.seller_id,
        product_id=body.product_id,
    )
    entity = current_domain.process(command, asynchronous=False)
    return _levels(entity)


@inventory_router.get("/low-stock", response_model=LowStockResponse)
async def low_stock(seller_id: str | None = None, limit: int | None = None) -> LowStockResponse:
    """Low stock across the marketplace, or for one seller with ``?seller_id=``."""
    entities = stock_engine().ledger.low_stock(seller_id=seller_id, limit=limit)
    return LowStockResponse(items=[_levels(entity) for entity in entities])


@inventory_router.get("/{entity_id}", response_model=StockLevelsResponse)
async def get_stock(entity_id: str) -> StockLevelsResponse:
    return _levels(stock_engine().ledger.get(_entity_id(entity_id)))


@inventory_router.put("/{entity_id}/tracking", response_model=StockLevelsResponse)
async def set_tracking(entity_id: str, body: SetTrackingRequest) -> StockLevelsResponse:
    command = SetStockTracking(entity_id=_entity_id(entity_id), enabled=body.enabled, quantity=body.quantity)
    return _levels(current_domain.process(command, asynchronous=False))


@inventory_router.post("/{entity_id}/check", response_model=AvailabilityResponse)
async def check_availability(entity_id: str, body: QuantityRequest):
    check = stock_engine().check_availability(_entity_id(entity_id), body.quantity)
    if not check.reachable:
        return _failure(StockOutcome.UNAVAILABLE, "Stock service is temporarily unavailable")
    return AvailabilityResponse(
        entity_id=check.entity_id,
        requested=check.requested,
        available=check.available,
        quantity=check.quantity,
        tracked=check.tracked,
        reachable=check.reachable,
    )


@inventory_router.post("/{entity_id}/reserve", response_model=StockOperationResponse)
async def reserve_stock(entity_id: str, body: QuantityRequest):
    command = ReserveStock(entity_id=_entity_id(entity_id), quantity=body.quantity, reference=body.reference)
    return _operation_response(current_domain.process(command, asynchronous=False))


@inventory_router.post("/{entity_id}/commit", response_model=StockOperationResponse)
async def commit_stock(entity_id: str, body: QuantityRequest):
    command = CommitStock(entity_id=_entity_id(entity_id), quantity=body.quantity, reference=body.reference)
    return _operation_response(current_domain.process(command, asynchronous=False))


@inventory_router.post("/{entity_id}/release", response_model=StockOperationResponse)
async def release_stock(entity_id: str, body: QuantityRequest):
    command = ReleaseStock(entity_id=_entity_id(entity_id), quantity=body.quantity, reference=body.reference)
    return _operation_response(current_domain.process(command, asynchronous=False))


@inventory_router.put("/{entity_id}/total", response_model=StockOperationResponse)
async def adjust_total(entity_id: str, body: AdjustTotalRequest):
    command = AdjustStockTotal(
        entity_id=_entity_id(entity_id),
        new_quantity=body.new_quantity,
        reference=body.reference,
    )
    return _operation_response(current_domain.process(command, asynchronous=False))
