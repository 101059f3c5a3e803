"""Cross-domain event contracts for Inventory domain events.

The Catalogue domain consumes these to keep a combination's storefront
flags in line with the ledger. They are registered as external events via
domain.register_external_event() with matching __type__ strings.

The source-of-truth events are in src/inventory/stock/events.py.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Identifier, Integer, String


class StockTotalAdjusted(BaseEvent):
    """A seller set a new total for a stock entity (restock or correction)."""

    __version__ = 1

    movement_id = Identifier(required=True)
    entity_id = String(required=True)  # "<kind>:<id>"
    product_id = Identifier()
    previous_quantity = Integer()
    new_quantity = Integer(required=True)
    available_after = Integer(required=True)
    reference = String()
    adjusted_at = DateTime(required=True)
