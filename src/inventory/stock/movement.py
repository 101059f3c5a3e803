"""StockMovement aggregate — append-only audit trail of applied stock movements.

The ledger holds the live counters; a StockMovement records one applied
transition and the counters right after it. Movements are never modified
once recorded.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Identifier, Integer, String

from inventory.domain import inventory
from inventory.stock.events import (
    LowStockDetected,
    StockCommitted,
    StockReleased,
    StockReserved,
    StockTotalAdjusted,
    StockTracked,
)
from shared.config import settings


class MovementType(Enum):
    TRACK = "Track"
    RESERVE = "Reserve"
    COMMIT = "Commit"
    RELEASE = "Release"
    ADJUST = "Adjust"


@inventory.aggregate
class StockMovement:
    entity_id = String(required=True, max_length=120)
    product_id = Identifier()
    movement_type = String(required=True, choices=MovementType)
    quantity = Integer(required=True, min_value=0)
    reference = String(max_length=120)
    quantity_after = Integer(required=True)
    available_after = Integer(required=True)
    on_hold_after = Integer(required=True)
    committed_after = Integer(required=True)
    recorded_at = DateTime(required=True)

    @classmethod
    def record(cls, movement_type, entity, quantity, reference=None, previous_quantity=None):
        """Record an applied movement from the ledger row ``entity`` left behind."""
        movement_type = MovementType(movement_type)
        now = datetime.now(UTC)
        movement = cls(
            entity_id=entity.entity_id,
            product_id=entity.product_id,
            movement_type=movement_type.value,
            quantity=quantity,
            reference=reference,
            quantity_after=entity.quantity,
            available_after=entity.quantity_available,
            on_hold_after=entity.quantity_on_hold,
            committed_after=entity.quantity_committed,
            recorded_at=now,
        )
        movement._raise_movement_event(movement_type, previous_quantity)
        if movement_type in (MovementType.RESERVE, MovementType.ADJUST):
            movement._check_low_stock(entity)
        return movement

    def _raise_movement_event(self, movement_type, previous_quantity):
        common = {
            "movement_id": str(self.id),
            "entity_id": self.entity_id,
        }
        if movement_type == MovementType.TRACK:
            event = StockTracked(**common, quantity=self.quantity_after, tracked_at=self.recorded_at)
        elif movement_type == MovementType.RESERVE:
            event = StockReserved(
                **common,
                quantity=self.quantity,
                reference=self.reference,
                available_after=self.available_after,
                on_hold_after=self.on_hold_after,
                reserved_at=self.recorded_at,
            )
        elif movement_type == MovementType.COMMIT:
            event = StockCommitted(
                **common,
                quantity=self.quantity,
                reference=self.reference,
                on_hold_after=self.on_hold_after,
                committed_after=self.committed_after,
                committed_at=self.recorded_at,
            )
        elif movement_type == MovementType.RELEASE:
            event = StockReleased(
                **common,
                quantity=self.quantity,
                reference=self.reference,
                available_after=self.available_after,
                on_hold_after=self.on_hold_after,
                released_at=self.recorded_at,
            )
        else:
            event = StockTotalAdjusted(
                **common,
                product_id=self.product_id,
                previous_quantity=previous_quantity,
                new_quantity=self.quantity_after,
                available_after=self.available_after,
                reference=self.reference,
                adjusted_at=self.recorded_at,
            )
        self.raise_(event)

    def _check_low_stock(self, entity):
        if entity.is_low_stock:
            threshold = entity.low_stock_threshold
            self.raise_(
                LowStockDetected(
                    entity_id=self.entity_id,
                    current_available=entity.quantity_available,
                    threshold=threshold if threshold is not None else settings.low_stock_threshold,
                    detected_at=self.recorded_at,
                )
            )
