"""Domain events for the ProductVariants aggregate."""

from protean.fields import DateTime, Identifier, Integer, Text

from catalogue.domain import catalogue


@catalogue.event(part_of="ProductVariants")
class VariantOptionsConfigured:
    """New option values were registered for one or more variant types."""

    __version__ = 1

    product_id: Identifier(required=True)
    variant_types: Text(required=True)  # JSON list of type names
    options_created: Integer(required=True)
    configured_at: DateTime(required=True)


@catalogue.event(part_of="ProductVariants")
class VariantCombinationsGenerated:
    """New variant combinations were created from the product's option values.

    ``combinations`` is a JSON list of objects with ``combination_id``,
    ``combination_key``, ``quantity``, ``inventory_tracked`` and
    ``low_stock_threshold``. Only combinations created by this generation
    run are listed; keys that already existed are not repeated.
    """

    __version__ = 1

    product_id: Identifier(required=True)
    seller_id: Identifier()
    combinations: Text(required=True)
    generated_at: DateTime(required=True)


@catalogue.event(part_of="ProductVariants")
class VariantCombinationsUpdated:
    """Price, availability or presentation details changed on combinations."""

    __version__ = 1

    product_id: Identifier(required=True)
    combination_ids: Text(required=True)  # JSON list
    changed_fields: Text(required=True)  # JSON list
    updated_at: DateTime(required=True)


@catalogue.event(part_of="ProductVariants")
class VariantQuantitiesChanged:
    """A vendor set new total quantities on combinations (restock or correction)."""

    __version__ = 1

    product_id: Identifier(required=True)
    quantities: Text(required=True)  # JSON object: combination_id -> new total quantity
    changed_at: DateTime(required=True)
