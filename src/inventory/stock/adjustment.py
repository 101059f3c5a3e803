"""Stock total adjustment — command and handler."""

from protean import handle
from protean.fields import Integer, String

from inventory.domain import inventory
from inventory.stock.engine import stock_engine
from inventory.stock.movement import MovementType, StockMovement
from inventory.stock.reservation import record_movement


@inventory.command(part_of="StockMovement")
class AdjustStockTotal:
    """Set the total units a seller owns (restock or correction)."""

    entity_id = String(required=True, max_length=120)
    new_quantity = Integer(required=True, min_value=0)
    reference = String(max_length=120)


@inventory.command_handler(part_of=StockMovement)
class StockAdjustmentHandler:
    @handle(AdjustStockTotal)
    def adjust_stock_total(self, command):
        result = stock_engine().adjust_total(command.entity_id, command.new_quantity)
        record_movement(
            MovementType.ADJUST,
            result,
            reference=command.reference,
            previous_quantity=result.previous.quantity if result.previous else None,
        )
        return result
