"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class CreateCartRequest(BaseModel):
    customer_id: str | None = None
    session_id: str | None = None


class AddToCartRequest(BaseModel):
    seller_id: str
    product_id: str
    variant_combination_id: str | None = None
    quantity: int = Field(ge=1)


class UpdateCartQuantityRequest(BaseModel):
    new_quantity: int = Field(ge=1)


class ReserveCartStockRequest(BaseModel):
    reference: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CartIdResponse(BaseModel):
    cart_id: str


class CartItemIdResponse(BaseModel):
    item_id: str


class CartItemResponse(BaseModel):
    item_id: str
    product_id: str
    variant_combination_id: str | None = None
    stock_entity_id: str
    quantity: int


class CartResponse(BaseModel):
    cart_id: str
    customer_id: str | None = None
    seller_id: str | None = None
    status: str
    items: list[CartItemResponse]


class ReservedLineResponse(BaseModel):
    stock_entity_id: str
    quantity: int
    outcome: str


class CartReservationResponse(BaseModel):
    cart_id: str
    reserved: list[ReservedLineResponse]


class StatusResponse(BaseModel):
    status: str = "ok"
