"""Pydantic request/response schemas for the Inventory API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class TrackStockRequest(BaseModel):
    product_id: str
    seller_id: str | None = None
    variant_combination_id: str | None = None
    quantity: int = Field(ge=0, default=0)
    inventory_tracked: bool = True
    low_stock_threshold: int | None = Field(default=None, ge=0)


class SetTrackingRequest(BaseModel):
    enabled: bool
    quantity: int | None = Field(default=None, ge=0)


class QuantityRequest(BaseModel):
    quantity: int = Field(ge=1)
    reference: str | None = None


class AdjustTotalRequest(BaseModel):
    new_quantity: int = Field(ge=0)
    reference: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class StockLevelsResponse(BaseModel):
    entity_id: str
    kind: str
    quantity: int
    quantity_available: int
    quantity_on_hold: int
    quantity_committed: int
    inventory_tracked: bool
    low_stock_threshold: int | None = None
    seller_id: str | None = None
    product_id: str | None = None


class AvailabilityResponse(BaseModel):
    entity_id: str
    requested: int
    available: bool
    quantity: int
    tracked: bool
    reachable: bool = True


class StockOperationResponse(BaseModel):
    entity_id: str
    operation: str
    quantity: int
    outcome: str
    success: bool
    levels: StockLevelsResponse | None = None


class LowStockResponse(BaseModel):
    items: list[StockLevelsResponse]
