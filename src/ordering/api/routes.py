"""FastAPI routes for the Ordering domain — carts and checkout reservation."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    AddToCartRequest,
    CartIdResponse,
    CartItemIdResponse,
    CartItemResponse,
    CartReservationResponse,
    CartResponse,
    CreateCartRequest,
    ReservedLineResponse,
    ReserveCartStockRequest,
    StatusResponse,
    UpdateCartQuantityRequest,
)
from ordering.cart.cart import ShoppingCart
from ordering.cart.items import AddToCart, RemoveFromCart, UpdateCartQuantity
from ordering.cart.management import AbandonCart, ClearCart, CreateCart
from ordering.checkout.reservation import ReserveCartStock

_FAILURE_STATUS = {
    "insufficient_stock": 409,
    "not_found": 404,
    "unavailable": 503,
}

# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.post("", status_code=201, response_model=CartIdResponse)
async def create_cart(body: CreateCartRequest) -> CartIdResponse:
    command = CreateCart(
        customer_id=body.customer_id,
        session_id=body.session_id,
    )
    result = current_domain.process(command, asynchronous=False)
    return CartIdResponse(cart_id=result)


@cart_router.get("/{cart_id}", response_model=CartResponse)
async def get_cart(cart_id: str) -> CartResponse:
    cart = current_domain.repository_for(ShoppingCart).get(cart_id)
    return CartResponse(
        cart_id=str(cart.id),
        customer_id=str(cart.customer_id) if cart.customer_id else None,
        seller_id=str(cart.seller_id) if cart.seller_id else None,
        status=cart.status,
        items=[
            CartItemResponse(
                item_id=str(item.id),
                product_id=str(item.product_id),
                variant_combination_id=str(item.variant_combination_id) if item.variant_combination_id else None,
                stock_entity_id=item.stock_entity_id,
                quantity=item.quantity,
            )
            for item in cart.items
        ],
    )


@cart_router.post("/{cart_id}/items", status_code=201, response_model=CartItemIdResponse)
async def add_cart_item(cart_id: str, body: AddToCartRequest) -> CartItemIdResponse:
    command = AddToCart(
        cart_id=cart_id,
        seller_id=body.seller_id,
        product_id=body.product_id,
        variant_combination_id=body.variant_combination_id,
        quantity=body.quantity,
    )
    item_id = current_domain.process(command, asynchronous=False)
    return CartItemIdResponse(item_id=item_id)


@cart_router.put("/{cart_id}/items/{item_id}", response_model=StatusResponse)
async def update_cart_item_quantity(cart_id: str, item_id: str, body: UpdateCartQuantityRequest) -> StatusResponse:
    command = UpdateCartQuantity(
        cart_id=cart_id,
        item_id=item_id,
        new_quantity=body.new_quantity,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}/items/{item_id}", response_model=StatusResponse)
async def remove_cart_item(cart_id: str, item_id: str) -> StatusResponse:
    command = RemoveFromCart(
        cart_id=cart_id,
        item_id=item_id,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}/items", response_model=StatusResponse)
async def clear_cart(cart_id: str) -> StatusResponse:
    current_domain.process(ClearCart(cart_id=cart_id), asynchronous=False)
    return StatusResponse()


@cart_router.put("/{cart_id}/abandon", response_model=StatusResponse)
async def abandon_cart(cart_id: str) -> StatusResponse:
    current_domain.process(AbandonCart(cart_id=cart_id), asynchronous=False)
    return StatusResponse()


@cart_router.post("/{cart_id}/reserve", response_model=CartReservationResponse)
async def reserve_cart_stock(cart_id: str, body: ReserveCartStockRequest):
    """Hold stock for every line. On failure, lines that could not be released are listed in ``unreleased``."""
    result = current_domain.process(
        ReserveCartStock(cart_id=cart_id, reference=body.reference),
        asynchronous=False,
    )
    if not result.success:
        return JSONResponse(
            status_code=_FAILURE_STATUS.get(result.outcome, 409),
            content={
                "error": result.outcome,
                "message": result.message,
                "item_id": result.failed_item_id,
                "stock_entity_id": result.failed_entity_id,
                "requested": result.requested,
                "available": result.available,
                "unreleased": result.unreleased,
            },
        )
    return CartReservationResponse(
        cart_id=result.cart_id,
        reserved=[
            ReservedLineResponse(stock_entity_id=line.entity_id, quantity=line.quantity, outcome=line.outcome.value)
            for line in result.reserved
        ],
    )
