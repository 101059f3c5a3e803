"""Stock reservation lifecycle — reserve, commit and release commands and handler.

Handlers return the engine's ``StockOperationResult``. Only applied movements
are recorded in the StockMovement log.
"""

from protean import handle
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from inventory.domain import inventory
from inventory.stock.engine import StockOutcome, stock_engine
from inventory.stock.movement import MovementType, StockMovement


@inventory.command(part_of="StockMovement")
class ReserveStock:
    """Hold units for an order at creation time."""

    entity_id = String(required=True, max_length=120)
    quantity = Integer(required=True, min_value=1)
    reference = String(max_length=120)  # Order or cart id


@inventory.command(part_of="StockMovement")
class CommitStock:
    """Mark held units as fulfilled when the order ships."""

    entity_id = String(required=True, max_length=120)
    quantity = Integer(required=True, min_value=1)
    reference = String(max_length=120)


@inventory.command(part_of="StockMovement")
class ReleaseStock:
    """Return held units to available when an order is cancelled before fulfilment."""

    entity_id = String(required=True, max_length=120)
    quantity = Integer(required=True, min_value=1)
    reference = String(max_length=120)


def record_movement(movement_type, result, reference=None, previous_quantity=None):
    """Append the movement for an applied result to the log. Other outcomes record nothing."""
    if result.outcome != StockOutcome.APPLIED:
        return None
    movement = StockMovement.record(
        movement_type,
        result.entity,
        result.quantity,
        reference=reference,
        previous_quantity=previous_quantity,
    )
    current_domain.repository_for(StockMovement).add(movement)
    return movement


@inventory.command_handler(part_of=StockMovement)
class StockReservationHandler:
    @handle(ReserveStock)
    def reserve_stock(self, command):
        result = stock_engine().reserve(command.entity_id, command.quantity)
        record_movement(MovementType.RESERVE, result, reference=command.reference)
        return result

    @handle(CommitStock)
    def commit_stock(self, command):
        result = stock_engine().commit(command.entity_id, command.quantity)
        record_movement(MovementType.COMMIT, result, reference=command.reference)
        return result

    @handle(ReleaseStock)
    def release_stock(self, command):
        result = stock_engine().release(command.entity_id, command.quantity)
        record_movement(MovementType.RELEASE, result, reference=command.reference)
        return result
