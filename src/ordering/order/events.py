"""Domain events for the Order aggregate."""

from protean.fields import Boolean, Decimal, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A cart was checked out into a new order."""

    __version__ = 1

    order_id = Integer(required=True)
    user_id = Identifier()
    total_amount = Decimal(required=True)
    total_items = Integer(required=True)
    is_priority = Boolean(default=False)


@ordering.event(part_of="Order")
class OrderViewed:
    """A pending order was read for the first time."""

    __version__ = 1

    order_id = Integer(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Integer(required=True)
    previous_status = String(required=True, max_length=20)
    new_status = String(required=True, max_length=20)


@ordering.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Integer(required=True)
    previous_status = String(required=True, max_length=20)


@ordering.event(part_of="Order")
class OrderExpired:
    """A pending order went unread past the expiry window."""

    __version__ = 1

    order_id = Integer(required=True)
