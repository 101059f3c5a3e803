"""Pydantic request/response schemas for the Catalogue API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class OptionValueSchema(BaseModel):
    value: str
    display_name: str | None = None
    hex_color: str | None = None
    image_url: str | None = None


class OptionGroupSchema(BaseModel):
    type: str
    values: list[OptionValueSchema] = Field(min_length=1)


class CombinationUpdatesSchema(BaseModel):
    """Fields a vendor may edit on a combination. Only the fields sent are applied."""

    price: float | None = Field(default=None, ge=0)
    compare_at_price: float | None = Field(default=None, ge=0)
    quantity: int | None = Field(default=None, ge=0)
    available: bool | None = None
    sku: str | None = None
    image_url: str | None = None
    low_stock_threshold: int | None = Field(default=None, ge=0)


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class ConfigureVariantsRequest(BaseModel):
    seller_id: str | None = None
    options: list[OptionGroupSchema] = Field(min_length=1)
    generate_combinations: bool = True
    default_price: float | None = Field(default=None, ge=0)
    default_quantity: int = Field(default=0, ge=0)
    default_sku: str | None = None
    inventory_tracked: bool = True


class BulkUpdateCombinationsRequest(BaseModel):
    updates: CombinationUpdatesSchema
    combination_keys: list[str] | None = None
    option_type: str | None = None
    option_value: str | None = None
    apply_to_all: bool = False


class UpdateCombinationRequest(BaseModel):
    updates: CombinationUpdatesSchema


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CreatedCombinationSchema(BaseModel):
    combination_id: str
    combination_key: str
    sku: str | None = None


class ConfigureVariantsResponse(BaseModel):
    product_id: str
    options_created: int
    combinations_created: list[CreatedCombinationSchema]


class VariantOptionResponse(BaseModel):
    option_id: str
    value: str
    display_name: str | None = None
    hex_color: str | None = None
    image_url: str | None = None
    sort_order: int


class VariantCombinationResponse(BaseModel):
    combination_id: str
    combination_key: str
    option_values: dict[str, str]
    sku: str | None = None
    price: float | None = None
    compare_at_price: float | None = None
    quantity: int
    inventory_tracked: bool
    available: bool
    in_stock: bool
    image_url: str | None = None
    sort_order: int


class ProductVariantsResponse(BaseModel):
    product_id: str
    variant_types: list[str]
    options: dict[str, list[VariantOptionResponse]]
    combinations: list[VariantCombinationResponse]


class UpdatedCountResponse(BaseModel):
    updated: int


class StatusResponse(BaseModel):
    status: str = "ok"
