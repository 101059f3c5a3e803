"""Shopping Cart aggregate (CQRS) — single-seller cart that converts to an order at checkout.

The cart is a standard CQRS aggregate (not event sourced). Its seller is set
by the first item and cleared again when the last item leaves, so a cart
only ever holds items from one store. Every line respects the per-line
quantity cap enforced by the CartConsistencyGuard.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from ordering.cart.events import (
    CartAbandoned,
    CartCleared,
    CartConverted,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
    CartStockReservationFailed,
    CartStockReserved,
)
from ordering.cart.guard import CartConsistencyGuard, CartRejected
from ordering.domain import ordering


class CartStatus(Enum):
    ACTIVE = "Active"
    CONVERTED = "Converted"
    ABANDONED = "Abandoned"


@ordering.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    variant_combination_id = Identifier()  # None for simple products
    stock_entity_id = String(required=True, max_length=120)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


@ordering.aggregate
class ShoppingCart:
    customer_id = Identifier()  # Nullable for guest carts
    session_id = String(max_length=255)  # For guest cart identification
    seller_id = Identifier()  # Set by the first item, cleared when the cart empties
    items = HasMany(CartItem)
    status = String(choices=CartStatus, default=CartStatus.ACTIVE.value)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def cart_must_have_items_to_convert(self):
        if self.status == CartStatus.CONVERTED.value and not self.items:
            raise ValidationError({"cart": ["Cannot convert an empty cart to an order"]})

    @invariant.post
    def items_with_a_seller(self):
        if self.items and not self.seller_id:
            raise ValidationError({"seller_id": ["A cart with items must belong to a seller"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, customer_id=None, session_id=None):
        now = datetime.now(UTC)
        return cls(
            customer_id=customer_id,
            session_id=session_id,
            status=CartStatus.ACTIVE.value,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def find_item(self, product_id, variant_combination_id=None):
        return next(
            (
                i
                for i in self.items
                if str(i.product_id) == str(product_id)
                and (str(i.variant_combination_id) if i.variant_combination_id else None)
                == (str(variant_combination_id) if variant_combination_id else None)
            ),
            None,
        )

    def check_admission(self, seller_id, product_id, variant_combination_id, quantity, guard=None):
        """Return the guard's ``CartRejection`` for adding this line, or ``None``."""
        guard = guard or CartConsistencyGuard()
        existing = self.find_item(product_id, variant_combination_id)
        line_quantity = quantity + (existing.quantity if existing else 0)
        return guard.check(self.seller_id, len(self.items), seller_id, line_quantity)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, seller_id, product_id, stock_entity_id, quantity, variant_combination_id=None, guard=None):
        """Add an item to the cart (or increase quantity if already present).

        Raises ``CartRejected`` when the guard refuses the line.
        """
        self._ensure_active("Items can only be added to an active cart")

        rejection = self.check_admission(seller_id, product_id, variant_combination_id, quantity, guard=guard)
        if rejection is not None:
            raise CartRejected(rejection)

        existing = self.find_item(product_id, variant_combination_id)
        now = datetime.now(UTC)
        if not self.seller_id:
            self.seller_id = seller_id

        if existing:
            existing.quantity += quantity
            item_id = str(existing.id)
        else:
            item = CartItem(
                product_id=product_id,
                variant_combination_id=variant_combination_id,
                stock_entity_id=stock_entity_id,
                quantity=quantity,
                added_at=now,
            )
            self.add_items(item)
            item_id = str(item.id)

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=item_id,
                seller_id=str(self.seller_id),
                product_id=str(product_id),
                variant_combination_id=str(variant_combination_id) if variant_combination_id else None,
                stock_entity_id=stock_entity_id,
                quantity=quantity,
            )
        )
        return item_id

    def update_item_quantity(self, item_id, new_quantity, guard=None):
        """Update the quantity of an existing cart item."""
        self._ensure_active("Item quantities can only be updated in an active cart")

        item = self._item(item_id)
        guard = guard or CartConsistencyGuard()
        guard.ensure(self.seller_id, len(self.items), self.seller_id, new_quantity)

        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, item_id):
        """Remove an item from the cart. Removing the last item frees the cart's seller."""
        self._ensure_active("Items can only be removed from an active cart")

        item = self._item(item_id)
        self.remove_items(item)
        if not self.items:
            self.seller_id = None
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                item_id=str(item_id),
            )
        )

    def clear(self):
        """Empty the cart, e.g. to start a new cart with another seller."""
        self._ensure_active("Only an active cart can be cleared")

        previous_seller_id = self.seller_id
        items_removed = len(self.items)
        for item in list(self.items):
            self.remove_items(item)
        self.seller_id = None
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                previous_seller_id=str(previous_seller_id) if previous_seller_id else None,
                items_removed=items_removed,
                cleared_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def ensure_ready_for_checkout(self):
        self._ensure_active("Only active carts can be checked out")
        if not self.items:
            raise ValidationError({"cart": ["Cannot check out an empty cart"]})

    def record_stock_reserved(self, reference=None):
        now = datetime.now(UTC)
        self.raise_(
            CartStockReserved(
                cart_id=str(self.id),
                reference=reference,
                items=json.dumps(
                    [{"stock_entity_id": item.stock_entity_id, "quantity": item.quantity} for item in self.items]
                ),
                reserved_at=now,
            )
        )

    def record_stock_reservation_failed(self, item, result):
        self.raise_(
            CartStockReservationFailed(
                cart_id=str(self.id),
                item_id=str(item.id),
                stock_entity_id=item.stock_entity_id,
                requested=item.quantity,
                available=result.available,
                outcome=result.outcome.value,
                failed_at=datetime.now(UTC),
            )
        )

    # -------------------------------------------------------------------
    # Cart lifecycle
    # -------------------------------------------------------------------
    def convert_to_order(self):
        """Mark cart as converted to an order."""
        self._ensure_active("Only active carts can be converted")
        if not self.items:
            raise ValidationError({"cart": ["Cannot convert an empty cart"]})

        # Capture items before marking as converted
        items_snapshot = [
            {
                "product_id": str(item.product_id),
                "variant_combination_id": str(item.variant_combination_id) if item.variant_combination_id else None,
                "stock_entity_id": item.stock_entity_id,
                "quantity": item.quantity,
            }
            for item in self.items
        ]

        self.status = CartStatus.CONVERTED.value
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartConverted(
                cart_id=str(self.id),
                customer_id=str(self.customer_id) if self.customer_id else None,
                seller_id=str(self.seller_id) if self.seller_id else None,
                items=json.dumps(items_snapshot),
            )
        )

    def abandon(self):
        """Mark cart as abandoned."""
        self._ensure_active("Only active carts can be abandoned")

        self.status = CartStatus.ABANDONED.value
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            CartAbandoned(
                cart_id=str(self.id),
                abandoned_at=now,
            )
        )

    def _ensure_active(self, message):
        if CartStatus(self.status) != CartStatus.ACTIVE:
            raise ValidationError({"status": [message]})

    def _item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})
        return item
