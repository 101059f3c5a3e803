"""Variant configuration — command and handler.

Persists the option values a vendor defines for a product and the variant
combinations generated from them. Running the command again with the same
options is a no-op: existing options and combination keys are skipped.
"""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from catalogue.domain import catalogue
from catalogue.variants.product_variants import ProductVariants


@catalogue.command(part_of="ProductVariants")
class ConfigureVariants:
    product_id: Identifier(required=True)
    seller_id: Identifier()
    options: Text(required=True)  # JSON: [{"type": "SIZE", "values": [{"value": "M", ...}]}]
    generate_combinations: Boolean(default=True)
    default_price: Float(min_value=0.0)
    default_quantity: Integer(min_value=0, default=0)
    default_sku: String(max_length=80)
    inventory_tracked: Boolean(default=True)


@catalogue.command_handler(part_of=ProductVariants)
class ConfigureVariantsHandler:
    @handle(ConfigureVariants)
    def configure_variants(self, command):
        repo = current_domain.repository_for(ProductVariants)
        try:
            product_variants = repo.get(command.product_id)
        except ObjectNotFoundError:
            product_variants = ProductVariants.create(
                product_id=command.product_id,
                seller_id=command.seller_id,
            )

        options = json.loads(command.options) if isinstance(command.options, str) else command.options

        created_options, created_combinations = product_variants.configure(
            options,
            generate=command.generate_combinations is not False,
            default_price=command.default_price,
            default_quantity=command.default_quantity or 0,
            default_sku=command.default_sku,
            inventory_tracked=command.inventory_tracked is not False,
        )
        repo.add(product_variants)

        return {
            "product_id": str(product_variants.product_id),
            "options_created": len(created_options),
            "combinations_created": [
                {
                    "combination_id": str(c.id),
                    "combination_key": c.combination_key,
                    "sku": c.sku,
                }
                for c in created_combinations
            ],
        }
