"""Cross-domain event contracts for Catalogue domain events.

These classes define the event shape for consumption by other domains (the
Inventory domain creates and adjusts stock ledger rows from them). They are
registered as external events via domain.register_external_event() with
matching __type__ strings so Protean's stream deserialization works correctly.

The source-of-truth events are in src/catalogue/variants/events.py.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Identifier, Text


class VariantCombinationsGenerated(BaseEvent):
    """New variant combinations were created for a product.

    ``combinations`` is a JSON list of objects with ``combination_id``,
    ``combination_key``, ``quantity``, ``inventory_tracked`` and
    ``low_stock_threshold``.
    """

    __version__ = 1

    product_id = Identifier(required=True)
    seller_id = Identifier()
    combinations = Text(required=True)
    generated_at = DateTime(required=True)


class VariantQuantitiesChanged(BaseEvent):
    """A vendor set new total quantities on variant combinations."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantities = Text(required=True)  # JSON object: combination_id -> new total quantity
    changed_at = DateTime(required=True)
