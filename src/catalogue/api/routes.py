"""FastAPI endpoints for the Catalogue domain — product variant configuration."""

import json

from fastapi import APIRouter
from protean.utils.globals import current_domain

from catalogue.api.schemas import (
    BulkUpdateCombinationsRequest,
    ConfigureVariantsRequest,
    ConfigureVariantsResponse,
    ProductVariantsResponse,
    StatusResponse,
    UpdateCombinationRequest,
    UpdatedCountResponse,
    VariantCombinationResponse,
    VariantOptionResponse,
)
from catalogue.variants.configuration import ConfigureVariants
from catalogue.variants.editing import BulkUpdateVariantCombinations, UpdateVariantCombination
from catalogue.variants.product_variants import ProductVariants

product_router = APIRouter(prefix="/products", tags=["products"])


# --- Variant endpoints ---


@product_router.post("/{product_id}/variants", status_code=201, response_model=ConfigureVariantsResponse)
async def configure_variants(product_id: str, body: ConfigureVariantsRequest) -> ConfigureVariantsResponse:
    command = ConfigureVariants(
        product_id=product_id,
        seller_id=body.seller_id,
        options=json.dumps([option.model_dump(exclude_none=True) for option in body.options]),
        generate_combinations=body.generate_combinations,
        default_price=body.default_price,
        default_quantity=body.default_quantity,
        default_sku=body.default_sku,
        inventory_tracked=body.inventory_tracked,
    )
    result = current_domain.process(command, asynchronous=False)
    return ConfigureVariantsResponse(**result)


@product_router.get("/{product_id}/variants/combinations", response_model=ProductVariantsResponse)
async def get_variant_combinations(product_id: str) -> ProductVariantsResponse:
    product_variants = current_domain.repository_for(ProductVariants).get(product_id)
    return ProductVariantsResponse(
        product_id=str(product_variants.product_id),
        variant_types=product_variants.types,
        options={
            option_type: [
                VariantOptionResponse(
                    option_id=str(option.id),
                    value=option.value,
                    display_name=option.display_name,
                    hex_color=option.hex_color,
                    image_url=option.image_url,
                    sort_order=option.sort_order,
                )
                for option in options
            ]
            for option_type, options in product_variants.options_by_type().items()
        },
        combinations=[
            VariantCombinationResponse(
                combination_id=str(c.id),
                combination_key=c.combination_key,
                option_values=c.option_map,
                sku=c.sku,
                price=c.price,
                compare_at_price=c.compare_at_price,
                quantity=c.quantity,
                inventory_tracked=c.inventory_tracked,
                available=c.available,
                in_stock=c.in_stock,
                image_url=c.image_url,
                sort_order=c.sort_order,
            )
            for c in sorted(product_variants.combinations, key=lambda c: c.sort_order)
        ],
    )


@product_router.patch("/{product_id}/variants/bulk", response_model=UpdatedCountResponse)
async def bulk_update_combinations(product_id: str, body: BulkUpdateCombinationsRequest) -> UpdatedCountResponse:
    command = BulkUpdateVariantCombinations(
        product_id=product_id,
        updates=json.dumps(body.updates.model_dump(exclude_unset=True)),
        combination_keys=json.dumps(body.combination_keys) if body.combination_keys else None,
        option_type=body.option_type,
        option_value=body.option_value,
        apply_to_all=body.apply_to_all,
    )
    updated = current_domain.process(command, asynchronous=False)
    return UpdatedCountResponse(updated=updated)


@product_router.patch("/{product_id}/variants/{combination_id}", response_model=StatusResponse)
async def update_combination(product_id: str, combination_id: str, body: UpdateCombinationRequest) -> StatusResponse:
    command = UpdateVariantCombination(
        product_id=product_id,
        combination_id=combination_id,
        updates=json.dumps(body.updates.model_dump(exclude_unset=True)),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()
