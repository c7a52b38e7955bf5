"""Order aggregate: a frozen snapshot of a checked-out cart plus a status lifecycle.

Lines and pricing are captured once at checkout and never recomputed from the
catalog. Only the status (and the dates it stamps) changes afterwards.

State Machine:
    PENDING → VIEWED, SHIPPED, CANCELLED
    VIEWED  → SHIPPED, CANCELLED
    SHIPPED → DELIVERED
    DELIVERED, CANCELLED, EXPIRED are terminal.
    PENDING becomes EXPIRED when read after the expiry window has passed.
"""

import decimal
from datetime import timedelta
from enum import Enum

from protean.fields import Boolean, DateTime, Decimal, Identifier, Integer, List, String, Text, ValueObject

from ordering.domain import ordering
from ordering.order.events import (
    OrderCancelled,
    OrderExpired,
    OrderPlaced,
    OrderStatusChanged,
    OrderViewed,
)
from shared.clock import utcnow
from shared.exceptions import InvalidArgument, InvalidStatus, InvalidTransition
from shared.money import ZERO, to_money

PRIORITY_MARKER = " [PRIORITY]"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "PENDING"
    VIEWED = "VIEWED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.VIEWED, OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.VIEWED: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.EXPIRED: set(),  # Terminal
}

# States from which cancellation is allowed
_CANCELLABLE_STATES = {
    OrderStatus.PENDING,
    OrderStatus.VIEWED,
}

# Statuses that count as completed sales
SOLD_STATES = {
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
}


def parse_status(label) -> OrderStatus:
    """Resolve a status label (any casing) to an ``OrderStatus``."""
    if isinstance(label, OrderStatus):
        return label
    if not isinstance(label, str):
        raise InvalidStatus(label)
    try:
        return OrderStatus[label.strip().upper()]
    except KeyError:
        raise InvalidStatus(label) from None


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class OrderPricing:
    """Subtotal, bulk discount and total, locked at checkout."""

    subtotal = Decimal(default=ZERO)
    discount = Decimal(default=ZERO)
    total = Decimal(default=ZERO)


def price_order(subtotal, discount_threshold, discount_rate) -> OrderPricing:
    """Apply the bulk discount when ``subtotal`` is strictly above the threshold."""
    subtotal = to_money(subtotal)
    threshold = decimal.Decimal(str(discount_threshold))
    rate = decimal.Decimal(str(discount_rate))
    discount = to_money(subtotal * rate) if subtotal > threshold else ZERO
    return OrderPricing(subtotal=subtotal, discount=discount, total=subtotal - discount)


@ordering.value_object(part_of="Order")
class OrderItem:
    """One line of an order, captured from the cart at checkout."""

    product_id = Integer(required=True)
    product_name = String(required=True, max_length=255, sanitize=False)
    quantity = Integer(required=True, min_value=1)
    unit_price = Decimal(required=True, min_value=0)

    @property
    def subtotal(self) -> decimal.Decimal:
        return self.unit_price * self.quantity


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate(limit=None)
class Order:
    id = Integer(identifier=True)
    user_id = Identifier()
    items = List(content_type=ValueObject(OrderItem))
    shipping_address = Text(required=True)
    billing_address = Text()
    pricing = ValueObject(OrderPricing)
    total_items = Integer(default=0)
    is_priority = Boolean(default=False)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    order_date = DateTime()
    estimated_delivery = DateTime()
    delivery_date = DateTime()
    cancelled_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_id,
        user_id,
        lines,
        shipping_address,
        pricing: OrderPricing,
        billing_address=None,
        priority_threshold=decimal.Decimal("200"),
        estimated_delivery_days=5,
        now=None,
    ):
        """Create a new order from checked-out cart lines.

        Args:
            lines: Cart lines; each needs product_id, product_name,
                   quantity and unit_price.
            pricing: Totals already priced with ``price_order``.
        """
        if not shipping_address or not shipping_address.strip():
            raise InvalidArgument("shipping_address", "A shipping address is required")

        items = [
            OrderItem(
                product_id=line.product_id,
                product_name=line.product_name,
                quantity=line.quantity,
                unit_price=line.unit_price,
            )
            for line in lines
        ]
        if not items:
            raise InvalidArgument("items", "An order needs at least one line")

        is_priority = pricing.total > priority_threshold
        if is_priority:
            shipping_address = shipping_address + PRIORITY_MARKER

        now = now or utcnow()
        order = cls(
            id=order_id,
            user_id=user_id,
            items=items,
            shipping_address=shipping_address,
            billing_address=billing_address,
            pricing=pricing,
            total_items=sum(item.quantity for item in items),
            is_priority=is_priority,
            order_date=now,
            estimated_delivery=now + timedelta(days=estimated_delivery_days),
        )
        order.raise_(
            OrderPlaced(
                order_id=order_id,
                user_id=order.user_id,
                total_amount=pricing.total,
                total_items=order.total_items,
                is_priority=is_priority,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def total_amount(self) -> decimal.Decimal:
        return self.pricing.total

    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def can_be_cancelled(self) -> bool:
        return self.current_status in _CANCELLABLE_STATES

    @property
    def is_cancelled(self) -> bool:
        return self.current_status == OrderStatus.CANCELLED

    # -------------------------------------------------------------------
    # State transition helper
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        if target_status not in _VALID_TRANSITIONS[self.current_status]:
            raise InvalidTransition(self.current_status, target_status)

    # -------------------------------------------------------------------
    # Read-time transitions
    # -------------------------------------------------------------------
    def expire_if_stale(self, expiry_days, now=None) -> bool:
        """Flip a PENDING order to EXPIRED once it is older than ``expiry_days``."""
        now = now or utcnow()
        if self.current_status != OrderStatus.PENDING or now - self.order_date <= timedelta(days=expiry_days):
            return False

        self.status = OrderStatus.EXPIRED.value
        self.raise_(OrderExpired(order_id=self.id))
        return True

    def mark_viewed(self) -> bool:
        """First read of a PENDING order; later reads change nothing."""
        if self.current_status != OrderStatus.PENDING:
            return False

        self.status = OrderStatus.VIEWED.value
        self.raise_(OrderViewed(order_id=self.id))
        return True

    # -------------------------------------------------------------------
    # Order lifecycle transitions
    # -------------------------------------------------------------------
    def transition_to(self, target_status: OrderStatus, now=None):
        if target_status == OrderStatus.CANCELLED:
            self.cancel(now=now)
            return

        self._assert_can_transition(target_status)
        previous = self.current_status
        self.status = target_status.value
        if target_status in SOLD_STATES:
            self.delivery_date = now or utcnow()

        self.raise_(
            OrderStatusChanged(
                order_id=self.id,
                previous_status=previous.value,
                new_status=target_status.value,
            )
        )

    def cancel(self, now=None):
        """Cancel the order. Only PENDING and VIEWED orders can be cancelled."""
        if not self.can_be_cancelled:
            raise InvalidTransition(self.current_status, OrderStatus.CANCELLED)

        previous = self.current_status
        self.status = OrderStatus.CANCELLED.value
        self.cancelled_at = now or utcnow()

        self.raise_(
            OrderCancelled(
                order_id=self.id,
                previous_status=previous.value,
            )
        )
