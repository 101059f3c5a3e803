"""ProductVariants aggregate root with VariantOption and VariantCombination entities.

One ProductVariants aggregate exists per product that uses multi-dimensional
variants. It owns the option values of every dimension and the combinations
generated from them. Combinations are identified by their canonical
``combination_key`` and are unique within the product.
"""

import json
from datetime import UTC, datetime

import structlog
from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text

from catalogue.domain import catalogue
from catalogue.variants.exceptions import DuplicateCombinationKey
from catalogue.variants.generator import (
    MAX_VARIANT_DIMENSIONS,
    OptionGroup,
    combination_key,
    generate_combinations,
    validate_option_groups,
)
from shared.config import settings

logger = structlog.get_logger(__name__)

# Fields a vendor may edit on an existing combination
EDITABLE_FIELDS = (
    "price",
    "compare_at_price",
    "quantity",
    "available",
    "sku",
    "image_url",
    "low_stock_threshold",
)


@catalogue.entity(part_of="ProductVariants")
class VariantOption:
    """One value of one variant dimension, e.g. SIZE = "M"."""

    option_type: String(required=True, max_length=50)
    value: String(required=True, max_length=100)
    display_name: String(max_length=100)
    hex_color: String(max_length=7)
    image_url: String(max_length=500)
    sort_order: Integer(default=0)
    is_active: Boolean(default=True)


@catalogue.entity(part_of="ProductVariants")
class VariantCombination:
    """One purchasable cell of the product's variant cartesian product."""

    combination_key: String(required=True, max_length=500)
    option_values: Text(required=True)  # JSON object: type -> value
    sku: String(max_length=100)
    price: Float(min_value=0.0)  # None means the product base price applies
    compare_at_price: Float(min_value=0.0)
    quantity: Integer(default=0, min_value=0)
    inventory_tracked: Boolean(default=True)
    low_stock_threshold: Integer(min_value=0)
    available: Boolean(default=True)
    in_stock: Boolean(default=False)
    image_url: String(max_length=500)
    sort_order: Integer(default=0)

    @property
    def option_map(self):
        return json.loads(self.option_values) if self.option_values else {}


@catalogue.aggregate
class ProductVariants:
    """Variant configuration of a single product."""

    product_id: Identifier(identifier=True, required=True)
    seller_id: Identifier()
    variant_types: Text()  # JSON list, in the order the vendor declared them
    options: HasMany(VariantOption)
    combinations: HasMany(VariantCombination)
    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def variant_types_cannot_exceed_maximum(self):
        if len(self.types) > MAX_VARIANT_DIMENSIONS:
            raise ValidationError(
                {"variant_types": [f"A product can have at most {MAX_VARIANT_DIMENSIONS} variant types"]}
            )

    @invariant.post
    def combination_keys_must_be_unique(self):
        keys = [c.combination_key for c in self.combinations]
        if len(keys) != len(set(keys)):
            raise ValidationError({"combinations": ["Combination keys must be unique within a product"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, product_id, seller_id=None):
        now = datetime.now(UTC)
        return cls(
            product_id=product_id,
            seller_id=seller_id,
            variant_types=json.dumps([]),
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def types(self):
        return json.loads(self.variant_types) if self.variant_types else []

    def options_by_type(self):
        """Active options grouped by variant type, each list in sort order."""
        grouped = {}
        for option in sorted(self.options, key=lambda o: o.sort_order):
            if option.is_active:
                grouped.setdefault(option.option_type, []).append(option)
        return grouped

    def find_combination(self, combination_key_or_id):
        return next(
            (
                c
                for c in self.combinations
                if c.combination_key == combination_key_or_id or str(c.id) == str(combination_key_or_id)
            ),
            None,
        )

    def matching_combinations(self, combination_keys=None, option_type=None, option_value=None):
        """Combinations selected by key list, by (type, value), or by type alone.

        With no filter at all every combination matches.
        """
        if combination_keys:
            wanted = set(combination_keys)
            return [c for c in self.combinations if c.combination_key in wanted]
        if option_type and option_value is not None:
            return [c for c in self.combinations if c.option_map.get(option_type) == option_value]
        if option_type:
            return [c for c in self.combinations if option_type in c.option_map]
        return list(self.combinations)

    # -------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------
    def configure(
        self,
        options,
        generate=True,
        default_price=None,
        default_quantity=0,
        default_sku=None,
        inventory_tracked=True,
        max_combinations=None,
    ):
        """Register option values and generate the missing combinations.

        ``options`` is a list of ``{"type": ..., "values": [{"value": ...,
        "display_name": ..., "hex_color": ..., "image_url": ...}]}``. Values
        may also be given as plain strings. Options and combinations that
        already exist are kept as they are, so configuring twice with the
        same input creates nothing the second time.

        Returns a ``(created_options, created_combinations)`` tuple.
        """
        from catalogue.variants.events import VariantCombinationsGenerated, VariantOptionsConfigured

        groups = [_option_group(option) for option in options]
        validate_option_groups(
            groups,
            max_combinations=max_combinations if max_combinations is not None else settings.max_variant_combinations,
        )

        requested_types = [group.type for group in groups]
        if self.combinations and sorted(requested_types) != sorted(self.types):
            raise ValidationError(
                {"options": [f"Variant types are fixed once combinations exist: expected {sorted(self.types)}"]}
            )

        now = datetime.now(UTC)
        created_options = []
        for option in options:
            option_type = option["type"]
            for position, spec in enumerate(option["values"]):
                spec = _value_spec(spec)
                if self._find_option(option_type, spec["value"]) is not None:
                    continue
                variant_option = VariantOption(
                    option_type=option_type,
                    value=spec["value"],
                    display_name=spec.get("display_name") or spec["value"],
                    hex_color=spec.get("hex_color"),
                    image_url=spec.get("image_url"),
                    sort_order=position,
                    is_active=True,
                )
                self.add_options(variant_option)
                created_options.append(variant_option)

        if not self.combinations:
            self.variant_types = json.dumps(requested_types)

        created_combinations = []
        if generate:
            for position, option_values in enumerate(generate_combinations(groups)):
                try:
                    combination = self.add_combination(
                        option_values,
                        sku=f"{default_sku}-{position + 1}" if default_sku else None,
                        price=default_price,
                        quantity=default_quantity or 0,
                        inventory_tracked=inventory_tracked,
                        sort_order=position,
                    )
                except DuplicateCombinationKey as exc:
                    logger.debug(
                        "Skipping existing variant combination",
                        product_id=str(self.product_id),
                        combination_key=exc.combination_key,
                    )
                    continue
                created_combinations.append(combination)

        self.updated_at = now

        if created_options:
            self.raise_(
                VariantOptionsConfigured(
                    product_id=str(self.product_id),
                    variant_types=json.dumps(requested_types),
                    options_created=len(created_options),
                    configured_at=now,
                )
            )
        if created_combinations:
            self.raise_(
                VariantCombinationsGenerated(
                    product_id=str(self.product_id),
                    seller_id=str(self.seller_id) if self.seller_id else None,
                    combinations=json.dumps(
                        [
                            {
                                "combination_id": str(c.id),
                                "combination_key": c.combination_key,
                                "quantity": c.quantity,
                                "inventory_tracked": c.inventory_tracked,
                                "low_stock_threshold": c.low_stock_threshold,
                            }
                            for c in created_combinations
                        ]
                    ),
                    generated_at=now,
                )
            )

        return created_options, created_combinations

    def add_combination(
        self,
        option_values,
        sku=None,
        price=None,
        quantity=0,
        inventory_tracked=True,
        sort_order=0,
    ):
        """Add a single combination; raises DuplicateCombinationKey if its key exists."""
        key = combination_key(option_values)
        if self.find_combination(key) is not None:
            raise DuplicateCombinationKey(str(self.product_id), key)

        combination = VariantCombination(
            combination_key=key,
            option_values=json.dumps(option_values, sort_keys=True),
            sku=sku,
            price=price,
            quantity=quantity,
            inventory_tracked=inventory_tracked,
            available=True,
            in_stock=quantity > 0,
            sort_order=sort_order,
        )
        self.add_combinations(combination)
        return combination

    # -------------------------------------------------------------------
    # Edits
    # -------------------------------------------------------------------
    def bulk_update(self, updates, combination_keys=None, option_type=None, option_value=None, apply_to_all=False):
        """Apply the same edits to every matching combination. Returns the count."""
        if apply_to_all:
            targets = list(self.combinations)
        else:
            targets = self.matching_combinations(
                combination_keys=combination_keys,
                option_type=option_type,
                option_value=option_value,
            )
        self._apply_updates(targets, updates)
        return len(targets)

    def update_combination(self, combination_id, updates):
        combination = next((c for c in self.combinations if str(c.id) == str(combination_id)), None)
        if combination is None:
            raise ValidationError({"combinations": [f"Combination {combination_id} not found"]})
        self._apply_updates([combination], updates)
        return combination

    def sync_stock_levels(self, combination_id, total, available_units):
        """Follow the stock ledger after a total was adjusted.

        ``in_stock`` reflects the total the seller owns and ``available``
        whether any unit can still be sold. Returns the combination, or
        ``None`` when it is not part of this product.
        """
        combination = next((c for c in self.combinations if str(c.id) == str(combination_id)), None)
        if combination is None:
            return None
        combination.in_stock = total > 0
        combination.available = available_units > 0
        self.updated_at = datetime.now(UTC)
        return combination

    def _apply_updates(self, targets, updates):
        from catalogue.variants.events import VariantCombinationsUpdated, VariantQuantitiesChanged

        unknown = sorted(set(updates) - set(EDITABLE_FIELDS))
        if unknown:
            raise ValidationError({"updates": [f"Fields cannot be edited: {', '.join(unknown)}"]})
        if "quantity" in updates and (updates["quantity"] is None or updates["quantity"] < 0):
            raise ValidationError({"quantity": ["Quantity must be zero or more"]})

        if not targets or not updates:
            return

        for combination in targets:
            for field_name, value in updates.items():
                setattr(combination, field_name, value)
            if "quantity" in updates:
                combination.in_stock = updates["quantity"] > 0

        now = datetime.now(UTC)
        self.updated_at = now

        other_fields = sorted(name for name in updates if name != "quantity")
        if other_fields:
            self.raise_(
                VariantCombinationsUpdated(
                    product_id=str(self.product_id),
                    combination_ids=json.dumps([str(c.id) for c in targets]),
                    changed_fields=json.dumps(other_fields),
                    updated_at=now,
                )
            )
        if "quantity" in updates:
            self.raise_(
                VariantQuantitiesChanged(
                    product_id=str(self.product_id),
                    quantities=json.dumps({str(c.id): c.quantity for c in targets}),
                    changed_at=now,
                )
            )

    def _find_option(self, option_type, value):
        return next((o for o in self.options if o.option_type == option_type and o.value == value), None)


def _value_spec(spec):
    return {"value": spec} if isinstance(spec, str) else spec


def _option_group(option):
    return OptionGroup(option["type"], [_value_spec(spec)["value"] for spec in option.get("values", [])])
