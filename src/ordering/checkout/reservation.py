"""Checkout stock reservation — command and handler.

Reserves stock for every line of a cart when the order is created. Lines are
reserved one by one through the reservation engine; on the first line that
cannot be reserved every unit already held for this cart is released again.
A release that fails (store unavailable) is logged and reported on the
result, so the caller can retry it. A successful reservation converts the
cart.
"""

from dataclasses import dataclass, field

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from inventory.stock.engine import StockOutcome, stock_engine
from inventory.stock.exceptions import InvariantViolation
from ordering.cart.cart import ShoppingCart
from ordering.domain import ordering

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CheckoutReservation:
    """Outcome of reserving a whole cart."""

    cart_id: str
    success: bool
    reserved: list = field(default_factory=list)  # StockOperationResult per line
    failed_item_id: str | None = None
    failed_entity_id: str | None = None
    outcome: str | None = None
    requested: int | None = None
    available: int | None = None
    message: str | None = None
    unreleased: list = field(default_factory=list)  # lines still on hold after a failed release

    def __bool__(self):
        return self.success


@ordering.command(part_of="ShoppingCart")
class ReserveCartStock:
    cart_id = Identifier(required=True)
    reference = String(max_length=120)  # Order number the stock is held for


@ordering.command_handler(part_of=ShoppingCart)
class CheckoutReservationHandler:
    @handle(ReserveCartStock)
    def reserve_cart_stock(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.ensure_ready_for_checkout()

        engine = stock_engine()
        reserved = []
        try:
            for item in cart.items:
                result = engine.reserve(item.stock_entity_id, item.quantity)
                if result:
                    reserved.append(result)
                    continue

                unreleased = self._release(engine, reserved, cart_id=str(cart.id))
                cart.record_stock_reservation_failed(item, result)
                repo.add(cart)
                return CheckoutReservation(
                    cart_id=str(cart.id),
                    success=False,
                    failed_item_id=str(item.id),
                    failed_entity_id=item.stock_entity_id,
                    outcome=result.outcome.value,
                    requested=item.quantity,
                    available=result.available,
                    message=result.message,
                    unreleased=unreleased,
                )
        except InvariantViolation:
            self._release(engine, reserved, cart_id=str(cart.id))
            raise

        cart.record_stock_reserved(reference=command.reference)
        cart.convert_to_order()
        repo.add(cart)

        logger.info("Cart stock reserved", cart_id=str(cart.id), lines=len(reserved))
        return CheckoutReservation(cart_id=str(cart.id), success=True, reserved=reserved)

    @staticmethod
    def _release(engine, reserved, cart_id):
        """Give back every unit this checkout put on hold.

        Returns ``{"entity_id", "quantity"}`` for each line whose units are
        still on hold, so the caller can retry the release.
        """
        unreleased = []
        for result in reversed(reserved):
            if result.outcome != StockOutcome.APPLIED:
                continue
            try:
                released = engine.release(result.entity_id, result.quantity)
            except InvariantViolation:
                released = None
            if not released:
                logger.error(
                    "Could not release units held for failed checkout",
                    cart_id=cart_id,
                    entity_id=result.entity_id,
                    quantity=result.quantity,
                    outcome=released.outcome.value if released is not None else "invariant_violation",
                )
                unreleased.append({"entity_id": result.entity_id, "quantity": result.quantity})

        if reserved:
            logger.info(
                "Released partial cart reservation",
                cart_id=cart_id,
                lines=len(reserved) - len(unreleased),
                unreleased=len(unreleased),
            )
        return unreleased
