"""Domain events for the StockMovement aggregate.

One event is raised per applied stock movement. Each carries the counters as
they were right after the movement, so consumers never need to read the
ledger to rebuild availability.
"""

from protean.fields import DateTime, Identifier, Integer, String

from inventory.domain import inventory


@inventory.event(part_of="StockMovement")
class StockTracked:
    """A ledger row was created or inventory tracking was switched on."""

    __version__ = 1

    movement_id = Identifier(required=True)
    entity_id = String(required=True)
    quantity = Integer(required=True)
    tracked_at = DateTime(required=True)


@inventory.event(part_of="StockMovement")
class StockReserved:
    """Units moved from available to on hold for an order."""

    __version__ = 1

    movement_id = Identifier(required=True)
    entity_id = String(required=True)
    quantity = Integer(required=True)
    reference = String()  # Order or cart the units are held for
    available_after = Integer(required=True)
    on_hold_after = Integer(required=True)
    reserved_at = DateTime(required=True)


@inventory.event(part_of="StockMovement")
class StockCommitted:
    """Reserved units were fulfilled and shipped."""

    __version__ = 1

    movement_id = Identifier(required=True)
    entity_id = String(required=True)
    quantity = Integer(required=True)
    reference = String()
    on_hold_after = Integer(required=True)
    committed_after = Integer(required=True)
    committed_at = DateTime(required=True)


@inventory.event(part_of="StockMovement")
class StockReleased:
    """Reserved units went back to available (cancellation or refund)."""

    __version__ = 1

    movement_id = Identifier(required=True)
    entity_id = String(required=True)
    quantity = Integer(required=True)
    reference = String()
    available_after = Integer(required=True)
    on_hold_after = Integer(required=True)
    released_at = DateTime(required=True)


@inventory.event(part_of="StockMovement")
class StockTotalAdjusted:
    """The seller set a new total quantity (restock or correction)."""

    __version__ = 1

    movement_id = Identifier(required=True)
    entity_id = String(required=True)
    product_id = Identifier()
    previous_quantity = Integer()
    new_quantity = Integer(required=True)
    available_after = Integer(required=True)
    reference = String()
    adjusted_at = DateTime(required=True)


@inventory.event(part_of="StockMovement")
class LowStockDetected:
    """Available units fell to or below the entity's low-stock threshold."""

    __version__ = 1

    entity_id = String(required=True)
    current_available = Integer(required=True)
    threshold = Integer(required=True)
    detected_at = DateTime(required=True)
