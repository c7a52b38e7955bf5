"""Error taxonomy shared by every storefront context.

Every error is a protean ``ValidationError`` and carries its ``messages`` dict
mapping a field name to a list of human-readable messages, so callers can tell
error kinds apart by type and still render something useful without parsing
strings. Lookups that miss are also protean ``ObjectNotFoundError``s.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


class StorefrontError(ValidationError):
    """Base class for all recoverable storefront errors."""

    def __str__(self):
        return "; ".join(f"{field}: {', '.join(msgs)}" for field, msgs in self.messages.items())


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------
class NotFoundError(StorefrontError, ObjectNotFoundError):
    """A cart, order or product does not exist."""

    entity = "object"

    def __init__(self, identifier):
        self.identifier = identifier
        super().__init__({self.entity: [f"{self.entity.capitalize()} {identifier} not found"]})


class CartNotFound(NotFoundError):
    entity = "cart"


class OrderNotFound(NotFoundError):
    entity = "order"


class ProductNotFound(NotFoundError):
    entity = "product"


# ---------------------------------------------------------------------------
# Cart and checkout
# ---------------------------------------------------------------------------
class EmptyCart(StorefrontError):
    def __init__(self, cart_id):
        self.cart_id = cart_id
        super().__init__({"cart": [f"Cart {cart_id} has no items to check out"]})


class InsufficientStock(StorefrontError):
    def __init__(self, product_id, requested, available):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            {"stock": [f"Insufficient stock for product {product_id}: {available} available, {requested} requested"]}
        )


class InvalidQuantity(StorefrontError):
    def __init__(self, quantity, reason="Quantity must be at least 1"):
        self.quantity = quantity
        super().__init__({"quantity": [f"{reason} (got {quantity!r})"]})


class LineNotFound(StorefrontError):
    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__({"product_id": [f"No cart line for product {product_id}"]})


# ---------------------------------------------------------------------------
# Order lifecycle
# ---------------------------------------------------------------------------
def _label(status):
    return getattr(status, "value", status)


class InvalidTransition(StorefrontError):
    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__({"status": [f"Cannot transition from {_label(current)} to {_label(target)}"]})


class InvalidStatus(StorefrontError):
    def __init__(self, label):
        self.label = label
        super().__init__({"status": [f"Unknown order status {label!r}"]})


class InvalidArgument(StorefrontError):
    def __init__(self, field, message):
        super().__init__({field: [message]})
