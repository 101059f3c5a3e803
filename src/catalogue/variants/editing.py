"""Variant combination edits — bulk and single-combination commands and handler."""

import json

from protean import handle
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from catalogue.domain import catalogue
from catalogue.variants.product_variants import ProductVariants


@catalogue.command(part_of="ProductVariants")
class BulkUpdateVariantCombinations:
    """Apply the same edits to every combination selected by the filter."""

    product_id: Identifier(required=True)
    updates: Text(required=True)  # JSON object of field -> value
    combination_keys: Text()  # JSON list
    option_type: String(max_length=50)
    option_value: String(max_length=100)
    apply_to_all: Boolean(default=False)


@catalogue.command(part_of="ProductVariants")
class UpdateVariantCombination:
    product_id: Identifier(required=True)
    combination_id: Identifier(required=True)
    updates: Text(required=True)  # JSON object of field -> value


def _load(value):
    return json.loads(value) if isinstance(value, str) else value


@catalogue.command_handler(part_of=ProductVariants)
class EditVariantCombinationsHandler:
    @handle(BulkUpdateVariantCombinations)
    def bulk_update(self, command):
        repo = current_domain.repository_for(ProductVariants)
        product_variants = repo.get(command.product_id)
        updated = product_variants.bulk_update(
            _load(command.updates),
            combination_keys=_load(command.combination_keys) if command.combination_keys else None,
            option_type=command.option_type,
            option_value=command.option_value,
            apply_to_all=bool(command.apply_to_all),
        )
        repo.add(product_variants)
        return updated

    @handle(UpdateVariantCombination)
    def update_combination(self, command):
        repo = current_domain.repository_for(ProductVariants)
        product_variants = repo.get(command.product_id)
        combination = product_variants.update_combination(command.combination_id, _load(command.updates))
        repo.add(product_variants)
        return str(combination.id)
