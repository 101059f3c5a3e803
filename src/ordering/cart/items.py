"""Cart item management — commands and handler.

Adding an item runs the consistency guard first and only then asks the
reservation engine whether the resulting line quantity is available. The
availability answer is advisory: stock is only held at checkout.
"""

from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from inventory.stock.engine import stock_engine
from inventory.stock.exceptions import InsufficientStock, StockLedgerUnavailable
from inventory.stock.ledger import StockableRef
from ordering.cart.cart import ShoppingCart
from ordering.cart.guard import CartRejected
from ordering.domain import ordering


@ordering.command(part_of="ShoppingCart")
class AddToCart:
    cart_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_combination_id = Identifier()
    quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="ShoppingCart")
class UpdateCartQuantity:
    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    new_quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="ShoppingCart")
class RemoveFromCart:
    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)


def _ensure_available(stock_entity_id, quantity):
    check = stock_engine().check_availability(stock_entity_id, quantity)
    if not check.reachable:
        raise StockLedgerUnavailable(f"Could not check stock for {stock_entity_id}")
    if not check.available:
        raise InsufficientStock(stock_entity_id, quantity, check.quantity)


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)

        rejection = cart.check_admission(
            command.seller_id,
            command.product_id,
            command.variant_combination_id,
            command.quantity,
        )
        if rejection is not None:
            raise CartRejected(rejection)

        stock_entity_id = StockableRef.for_item(command.product_id, command.variant_combination_id).entity_id
        existing = cart.find_item(command.product_id, command.variant_combination_id)
        _ensure_available(stock_entity_id, command.quantity + (existing.quantity if existing else 0))

        item_id = cart.add_item(
            seller_id=command.seller_id,
            product_id=command.product_id,
            stock_entity_id=stock_entity_id,
            quantity=command.quantity,
            variant_combination_id=command.variant_combination_id,
        )
        repo.add(cart)
        return item_id

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        item = next((i for i in cart.items if str(i.id) == str(command.item_id)), None)
        previous_quantity = item.quantity if item is not None else 0

        # The guard inside update_item_quantity runs before the stock check
        cart.update_item_quantity(
            item_id=command.item_id,
            new_quantity=command.new_quantity,
        )
        if command.new_quantity > previous_quantity:
            _ensure_available(item.stock_entity_id, command.new_quantity)
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.remove_item(item_id=command.item_id)
        repo.add(cart)
