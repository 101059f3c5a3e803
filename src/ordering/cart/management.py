"""Cart lifecycle commands: create, clear and abandon.

Clearing is how a shopper switches seller: the cart keeps its identity but
drops every item, which frees it for another seller's products.
"""

from contextlib import contextmanager

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.domain import ordering


@ordering.command(part_of="ShoppingCart")
class CreateCart:
    """Create a new shopping cart for a registered customer or guest session."""

    customer_id = Identifier()  # Optional for guest carts
    session_id = String(max_length=255)


@ordering.command(part_of="ShoppingCart")
class ClearCart:
    cart_id = Identifier(required=True)


@ordering.command(part_of="ShoppingCart")
class AbandonCart:
    cart_id = Identifier(required=True)


@ordering.command_handler(part_of=ShoppingCart)
class CartLifecycleHandler:
    @handle(CreateCart)
    def create_cart(self, command):
        cart = ShoppingCart.create(customer_id=command.customer_id, session_id=command.session_id)
        current_domain.repository_for(ShoppingCart).add(cart)
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        """Returns the number of items removed."""
        with _loaded_cart(command.cart_id) as cart:
            items_removed = len(cart.items)
            cart.clear()
        return items_removed

    @handle(AbandonCart)
    def abandon_cart(self, command):
        with _loaded_cart(command.cart_id) as cart:
            cart.abandon()


@contextmanager
def _loaded_cart(cart_id):
    """Yield the cart and persist it once the block completes without error."""
    repo = current_domain.repository_for(ShoppingCart)
    cart = repo.get(cart_id)
    yield cart
    repo.add(cart)
