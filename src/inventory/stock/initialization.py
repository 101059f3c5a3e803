"""Stock tracking — commands and handler that create and toggle ledger rows."""

from protean import handle
from protean.fields import Boolean, Identifier, Integer, String

from inventory.domain import inventory
from inventory.stock.engine import StockOutcome, StockOperationResult, stock_engine
from inventory.stock.ledger import StockKind
from inventory.stock.movement import MovementType, StockMovement
from inventory.stock.reservation import record_movement


@inventory.command(part_of="StockMovement")
class TrackStock:
    """Create the ledger row for a product or variant combination."""

    entity_id = String(required=True, max_length=120)
    kind = String(required=True, choices=StockKind)
    quantity = Integer(default=0, min_value=0)
    inventory_tracked = Boolean(default=True)
    low_stock_threshold = Integer(min_value=0)
    seller_id = Identifier()
    product_id = Identifier()


@inventory.command(part_of="StockMovement")
class SetStockTracking:
    """Switch inventory tracking on or off; switching on re-initialises the counters."""

    entity_id = String(required=True, max_length=120)
    enabled = Boolean(required=True)
    quantity = Integer(min_value=0)


@inventory.command_handler(part_of=StockMovement)
class StockTrackingHandler:
    @handle(TrackStock)
    def track_stock(self, command):
        ledger = stock_engine().ledger
        existing = ledger.find(command.entity_id)
        if existing is not None:
            return existing

        entity = ledger.track(
            command.entity_id,
            command.kind,
            quantity=command.quantity or 0,
            inventory_tracked=command.inventory_tracked is not False,
            low_stock_threshold=command.low_stock_threshold,
            seller_id=command.seller_id,
            product_id=command.product_id,
        )
        if entity.inventory_tracked:
            record_movement(
                MovementType.TRACK,
                StockOperationResult(entity.entity_id, "track", entity.quantity, StockOutcome.APPLIED, entity),
            )
        return entity

    @handle(SetStockTracking)
    def set_stock_tracking(self, command):
        ledger = stock_engine().ledger
        before = ledger.find(command.entity_id)
        entity = ledger.set_tracking(command.entity_id, command.enabled, quantity=command.quantity)
        if command.enabled and before is not None and not before.inventory_tracked:
            record_movement(
                MovementType.TRACK,
                StockOperationResult(entity.entity_id, "track", entity.quantity, StockOutcome.APPLIED, entity),
            )
        return entity
