"""Cart consistency guard.

Decides whether a line may be admitted to a cart before any stock is
checked: a cart holds items from one seller only, and a single line never
exceeds the per-line quantity cap. The cap is checked first so no
availability lookup is spent on a request that would be refused anyway.
"""

from dataclasses import asdict, dataclass
from enum import Enum

from protean.exceptions import ValidationError

from shared.config import settings


class RejectionReason(Enum):
    QUANTITY_CAP = "quantity_cap"
    DIFFERENT_SELLER = "different_seller"


@dataclass(frozen=True)
class CartRejection:
    """Why a line was refused, with enough context to offer the shopper a choice."""

    reason: str
    message: str
    current_seller_id: str | None = None
    attempted_seller_id: str | None = None
    item_count: int = 0
    max_quantity: int | None = None
    requested_quantity: int | None = None

    def to_dict(self):
        return asdict(self)


class CartRejected(ValidationError):
    """Raised when the guard refuses a line. Carries the structured rejection."""

    def __init__(self, rejection: CartRejection):
        self.rejection = rejection
        field = "quantity" if rejection.reason == RejectionReason.QUANTITY_CAP.value else "seller_id"
        super().__init__({field: [rejection.message]})


class CartConsistencyGuard:
    def __init__(self, max_line_quantity=None):
        self.max_line_quantity = max_line_quantity if max_line_quantity is not None else settings.cart_max_line_quantity

    def check(self, cart_seller_id, item_count, seller_id, line_quantity):
        """Return a ``CartRejection`` or ``None`` when the line is admissible.

        ``line_quantity`` is the quantity the line would hold after the
        change, i.e. the existing quantity plus what is being added.
        """
        if line_quantity > self.max_line_quantity:
            return CartRejection(
                reason=RejectionReason.QUANTITY_CAP.value,
                message=f"At most {self.max_line_quantity} units of an item per order",
                current_seller_id=_str_or_none(cart_seller_id),
                attempted_seller_id=_str_or_none(seller_id),
                item_count=item_count,
                max_quantity=self.max_line_quantity,
                requested_quantity=line_quantity,
            )

        if item_count and cart_seller_id and seller_id and str(cart_seller_id) != str(seller_id):
            return CartRejection(
                reason=RejectionReason.DIFFERENT_SELLER.value,
                message="Your cart contains items from another store. Keep your current cart or start a new one.",
                current_seller_id=str(cart_seller_id),
                attempted_seller_id=str(seller_id),
                item_count=item_count,
            )

        return None

    def ensure(self, cart_seller_id, item_count, seller_id, line_quantity):
        rejection = self.check(cart_seller_id, item_count, seller_id, line_quantity)
        if rejection is not None:
            raise CartRejected(rejection)


def _str_or_none(value):
    return str(value) if value is not None else None
