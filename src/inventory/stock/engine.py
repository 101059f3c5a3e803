"""StockReservationEngine — the stock lifecycle over the ledger's counters.

A reserved unit moves AVAILABLE -> ON_HOLD (reserve) -> COMMITTED (commit), or
back from ON_HOLD to AVAILABLE (release). ``adjust_total`` sets the total a
seller owns without touching in-flight units.

Expected failures (not enough stock, unknown entity, store unavailable) come
back as structured results. Only ``InvariantViolation`` is raised.
"""

from dataclasses import dataclass, replace
from enum import Enum

import structlog
from protean.exceptions import ValidationError

from inventory.stock.exceptions import (
    InsufficientStock,
    InvariantViolation,
    StockLedgerUnavailable,
    StockNotFound,
)
from inventory.stock.ledger import StockDelta, StockLedger
from shared.config import settings

logger = structlog.get_logger(__name__)


class StockOutcome(Enum):
    APPLIED = "applied"
    UNTRACKED = "untracked"
    NOT_FOUND = "not_found"
    INSUFFICIENT_STOCK = "insufficient_stock"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class AvailabilityCheck:
    entity_id: str
    requested: int
    available: bool
    quantity: int  # units that can be sold right now (the requested amount when untracked)
    tracked: bool = True
    reachable: bool = True  # False when the ledger could not be read

    def __bool__(self):
        return self.available


@dataclass(frozen=True)
class StockOperationResult:
    entity_id: str
    operation: str
    quantity: int
    outcome: StockOutcome
    entity: object = None  # StockableEntity after the operation, when there is a row
    available: int | None = None  # current available units when stock was insufficient
    previous: object = None  # StockableEntity before an adjust_total

    @property
    def success(self):
        return self.outcome in (StockOutcome.APPLIED, StockOutcome.UNTRACKED)

    @property
    def message(self):
        if self.outcome == StockOutcome.INSUFFICIENT_STOCK:
            return f"Only {self.available} available"
        if self.outcome == StockOutcome.NOT_FOUND:
            return f"No stock record for {self.entity_id}"
        if self.outcome == StockOutcome.UNAVAILABLE:
            return "Stock service is temporarily unavailable"
        return None

    def __bool__(self):
        return self.success


def _validate_quantity(quantity, field="quantity", minimum=1):
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < minimum:
        qualifier = "a positive" if minimum == 1 else "a non-negative"
        raise ValidationError({field: [f"{field} must be {qualifier} integer"]})


class StockReservationEngine:
    def __init__(self, ledger):
        self.ledger = ledger

    def check_availability(self, entity_id, quantity):
        """Whether ``quantity`` units could be reserved right now.

        Read-only: the answer can be stale by the time the caller reserves.
        """
        _validate_quantity(quantity)

        try:
            entity = self.ledger.find(entity_id)
        except StockLedgerUnavailable:
            return AvailabilityCheck(entity_id, quantity, available=False, quantity=0, reachable=False)

        if entity is None:
            logger.warning("Availability check for entity without stock record", entity_id=entity_id)
            return AvailabilityCheck(entity_id, quantity, available=True, quantity=quantity, tracked=False)
        if not entity.inventory_tracked:
            return AvailabilityCheck(entity_id, quantity, available=True, quantity=quantity, tracked=False)

        return AvailabilityCheck(
            entity_id,
            quantity,
            available=quantity <= entity.quantity_available,
            quantity=entity.quantity_available,
        )

    def reserve(self, entity_id, quantity):
        """Move ``quantity`` units from available to on hold.

        Not enough stock is a normal outcome: the result is falsy and carries
        the units that are available.
        """
        _validate_quantity(quantity)

        try:
            entity = self.ledger.apply_delta(entity_id, StockDelta.reserve(quantity))
        except StockNotFound:
            logger.warning("Reserving stock for entity without stock record", entity_id=entity_id)
            return StockOperationResult(entity_id, "reserve", quantity, StockOutcome.UNTRACKED)
        except InsufficientStock as exc:
            logger.info(
                "Insufficient stock to reserve",
                entity_id=entity_id,
                requested=quantity,
                available=exc.available,
            )
            return StockOperationResult(
                entity_id,
                "reserve",
                quantity,
                StockOutcome.INSUFFICIENT_STOCK,
                available=exc.available,
            )
        except StockLedgerUnavailable:
            return StockOperationResult(entity_id, "reserve", quantity, StockOutcome.UNAVAILABLE)

        return self._applied(entity, "reserve", quantity)

    def commit(self, entity_id, quantity):
        """Move ``quantity`` reserved units to committed (order fulfilled)."""
        return self._move_reserved(entity_id, "commit", quantity, StockDelta.commit)

    def release(self, entity_id, quantity):
        """Return ``quantity`` reserved units to available (order cancelled)."""
        return self._move_reserved(entity_id, "release", quantity, StockDelta.release)

    def adjust_total(self, entity_id, new_quantity):
        """Set the total units owned; available is recomputed and floored at zero."""
        _validate_quantity(new_quantity, field="new_quantity", minimum=0)

        try:
            entity = self.ledger.find(entity_id)
            if entity is None:
                return StockOperationResult(entity_id, "adjust_total", new_quantity, StockOutcome.NOT_FOUND)
            if not entity.inventory_tracked:
                return StockOperationResult(entity_id, "adjust_total", new_quantity, StockOutcome.UNTRACKED, entity)

            previous = entity
            entity = self.ledger.set_total(entity_id, new_quantity)
        except StockNotFound:
            return StockOperationResult(entity_id, "adjust_total", new_quantity, StockOutcome.NOT_FOUND)
        except StockLedgerUnavailable:
            return StockOperationResult(entity_id, "adjust_total", new_quantity, StockOutcome.UNAVAILABLE)

        if not entity.inventory_tracked:
            # Tracking was switched off after the read
            return StockOperationResult(entity_id, "adjust_total", new_quantity, StockOutcome.UNTRACKED, entity)

        if entity.quantity < entity.quantity_on_hold + entity.quantity_committed:
            logger.warning(
                "Total set below units in flight; available floored at zero",
                entity_id=entity_id,
                quantity=entity.quantity,
                on_hold=entity.quantity_on_hold,
                committed=entity.quantity_committed,
            )
        result = self._applied(entity, "adjust_total", new_quantity)
        return replace(result, previous=previous)

    def _move_reserved(self, entity_id, operation, quantity, make_delta):
        _validate_quantity(quantity)

        try:
            entity = self.ledger.apply_delta(entity_id, make_delta(quantity))
        except StockNotFound:
            logger.warning(f"Cannot {operation} stock for unknown entity", entity_id=entity_id, quantity=quantity)
            return StockOperationResult(entity_id, operation, quantity, StockOutcome.NOT_FOUND)
        except InsufficientStock as exc:
            logger.error(
                f"Cannot {operation} more units than are on hold",
                entity_id=entity_id,
                requested=quantity,
                on_hold=exc.available,
            )
            raise InvariantViolation(
                entity_id, f"{operation} of {quantity} exceeds {exc.available} units on hold"
            ) from exc
        except StockLedgerUnavailable:
            return StockOperationResult(entity_id, operation, quantity, StockOutcome.UNAVAILABLE)

        return self._applied(entity, operation, quantity)

    @staticmethod
    def _applied(entity, operation, quantity):
        outcome = StockOutcome.APPLIED if entity.inventory_tracked else StockOutcome.UNTRACKED
        if outcome == StockOutcome.APPLIED:
            logger.debug(
                "Stock operation applied",
                entity_id=entity.entity_id,
                operation=operation,
                quantity=quantity,
                available=entity.quantity_available,
                on_hold=entity.quantity_on_hold,
                committed=entity.quantity_committed,
            )
        return StockOperationResult(entity.entity_id, operation, quantity, outcome, entity)


# ---------------------------------------------------------------------------
# Process-wide engine
# ---------------------------------------------------------------------------
_engine = None


def stock_engine():
    """The engine used by command handlers, built from settings on first use."""
    global _engine
    if _engine is None:
        ledger = StockLedger.from_url(
            settings.stock_database_url,
            echo=settings.stock_database_echo,
            lock_timeout=settings.stock_lock_timeout,
        )
        ledger.create_schema()
        _engine = StockReservationEngine(ledger)
    return _engine


def configure_stock_engine(engine):
    """Replace the process-wide engine (tests, alternative stores). Returns the previous one."""
    global _engine
    previous, _engine = _engine, engine
    return previous
