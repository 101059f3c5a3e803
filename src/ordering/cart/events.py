"""Domain events for the ShoppingCart aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="ShoppingCart")
class CartItemAdded:
    """A product or variant combination was added to the shopping cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_combination_id = Identifier()
    stock_entity_id = String(required=True)
    quantity = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartQuantityUpdated:
    """The quantity of a cart item was changed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartItemRemoved:
    """An item was removed from the shopping cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)


@ordering.event(part_of="ShoppingCart")
class CartCleared:
    """All items were removed so the shopper can start a cart with another seller."""

    __version__ = 1

    cart_id = Identifier(required=True)
    previous_seller_id = Identifier()
    items_removed = Integer(required=True)
    cleared_at = DateTime(required=True)


@ordering.event(part_of="ShoppingCart")
class CartStockReserved:
    """Stock for every cart line was reserved at checkout."""

    __version__ = 1

    cart_id = Identifier(required=True)
    reference = String()
    items = Text(required=True)  # JSON: list of {stock_entity_id, quantity}
    reserved_at = DateTime(required=True)


@ordering.event(part_of="ShoppingCart")
class CartStockReservationFailed:
    """A cart line could not be reserved; earlier lines were released again."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    stock_entity_id = String(required=True)
    requested = Integer(required=True)
    available = Integer()
    outcome = String(required=True)
    failed_at = DateTime(required=True)


@ordering.event(part_of="ShoppingCart")
class CartConverted:
    """A shopping cart was converted into an order at checkout."""

    __version__ = 1

    cart_id = Identifier(required=True)
    customer_id = Identifier()
    seller_id = Identifier()
    items = Text(required=True)  # JSON: list of {product_id, variant_combination_id, stock_entity_id, quantity}


@ordering.event(part_of="ShoppingCart")
class CartAbandoned:
    """A shopping cart was marked as abandoned due to inactivity."""

    __version__ = 1

    cart_id = Identifier(required=True)
    abandoned_at = DateTime(required=True)
