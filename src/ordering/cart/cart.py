"""Shopping Cart aggregate: accumulates product lines until checkout.

Each line captures the product's price and name at the moment it is added;
later catalog price changes never reach an existing line. The cart's total is
always computed live from its lines. Bulk discounts are a checkout concern and
are never applied here.
"""

import decimal
from enum import Enum

import structlog
from protean.fields import DateTime, Decimal, Identifier, Integer, List, String, ValueObject

from ordering.cart.events import (
    CartCheckedOut,
    CartCreated,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
)
from ordering.domain import ordering
from shared.clock import utcnow
from shared.exceptions import InvalidArgument, InvalidQuantity, LineNotFound
from shared.money import ZERO, to_money

logger = structlog.get_logger(__name__)

CART_LINE_ADVISORY_LIMIT = 10


class CartStatus(Enum):
    NEW = "NEW"
    CHECKED_OUT = "CHECKED_OUT"


def _is_quantity(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@ordering.value_object(part_of="ShoppingCart")
class CartItem:
    """One line of the cart. Lines are replaced, never edited in place."""

    product_id = Integer(required=True)
    product_name = String(required=True, max_length=255, sanitize=False)
    unit_price = Decimal(required=True, min_value=0)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()

    @property
    def subtotal(self) -> decimal.Decimal:
        return self.unit_price * self.quantity


@ordering.aggregate(limit=None)
class ShoppingCart:
    id = Integer(identifier=True)
    user_id = Identifier()  # None for anonymous carts
    items = List(content_type=ValueObject(CartItem))
    status = String(choices=CartStatus, default=CartStatus.NEW.value)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, cart_id, user_id=None, now=None):
        now = now or utcnow()
        cart = cls(id=cart_id, user_id=user_id, created_at=now, updated_at=now)
        cart.raise_(CartCreated(cart_id=cart_id, user_id=cart.user_id))
        return cart

    def _assert_new(self):
        if CartStatus(self.status) != CartStatus.NEW:
            raise InvalidArgument("cart", f"Cart {self.id} has already been checked out")

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def add_item(self, product, quantity, line_limit=CART_LINE_ADVISORY_LIMIT, now=None):
        """Append a line for ``product`` at its current price."""
        self._assert_new()
        if not _is_quantity(quantity) or quantity < 1:
            raise InvalidQuantity(quantity)

        now = now or utcnow()
        self.items = [
            *self.items,
            CartItem(
                product_id=product.id,
                product_name=product.name,
                unit_price=product.price,
                quantity=quantity,
                added_at=now,
            ),
        ]
        self.updated_at = now

        if len(self.items) > line_limit:
            logger.warning("Cart line count above advisory limit", cart_id=self.id, lines=len(self.items), limit=line_limit)

        self.raise_(
            CartItemAdded(
                cart_id=self.id,
                product_id=product.id,
                quantity=quantity,
                unit_price=product.price,
            )
        )

    def update_quantity(self, product_id, new_quantity, now=None):
        """Overwrite the quantity on every line for ``product_id``.

        A quantity of zero drops those lines; lines never hold zero.
        """
        self._assert_new()
        if not _is_quantity(new_quantity) or new_quantity < 0:
            raise InvalidQuantity(new_quantity, reason="Quantity must be zero or more")

        if not any(item.product_id == product_id for item in self.items):
            raise LineNotFound(product_id)

        if new_quantity == 0:
            self.items = [item for item in self.items if item.product_id != product_id]
        else:
            self.items = [
                item.replace(quantity=new_quantity) if item.product_id == product_id else item for item in self.items
            ]
        self.updated_at = now or utcnow()

        self.raise_(
            CartQuantityUpdated(
                cart_id=self.id,
                product_id=product_id,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, product_id, now=None) -> int:
        """Drop every line for ``product_id``. Returns how many lines went."""
        self._assert_new()

        remaining = [item for item in self.items if item.product_id != product_id]
        removed = len(self.items) - len(remaining)
        if not removed:
            return 0

        self.items = remaining
        self.updated_at = now or utcnow()

        self.raise_(
            CartItemRemoved(
                cart_id=self.id,
                product_id=product_id,
                lines_removed=removed,
            )
        )
        return removed

    # -------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------
    def get_total(self) -> decimal.Decimal:
        return to_money(sum((item.subtotal for item in self.items), ZERO))

    def total_item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def is_empty(self) -> bool:
        return self.total_item_count() == 0

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def mark_checked_out(self, order_id, now=None):
        self._assert_new()
        self.status = CartStatus.CHECKED_OUT.value
        self.updated_at = now or utcnow()
        self.raise_(CartCheckedOut(cart_id=self.id, order_id=order_id))
