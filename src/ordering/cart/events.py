"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Decimal, Identifier, Integer

from ordering.domain import ordering


@ordering.event(part_of="ShoppingCart")
class CartCreated:
    """An empty cart was opened for a user (or an anonymous visitor)."""

    __version__ = 1

    cart_id = Integer(required=True)
    user_id = Identifier()


@ordering.event(part_of="ShoppingCart")
class CartItemAdded:
    """A product line was appended to the cart."""

    __version__ = 1

    cart_id = Integer(required=True)
    product_id = Integer(required=True)
    quantity = Integer(required=True)
    unit_price = Decimal(required=True)


@ordering.event(part_of="ShoppingCart")
class CartQuantityUpdated:
    """The quantity on every line for a product was overwritten."""

    __version__ = 1

    cart_id = Integer(required=True)
    product_id = Integer(required=True)
    new_quantity = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartItemRemoved:
    """All lines for a product were removed from the cart."""

    __version__ = 1

    cart_id = Integer(required=True)
    product_id = Integer(required=True)
    lines_removed = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartCheckedOut:
    """The cart was converted into an order and is no longer usable."""

    __version__ = 1

    cart_id = Integer(required=True)
    order_id = Integer(required=True)
