"""Order Workflow Engine: owns the active carts and the placed orders.

The engine is an ordinary object: build one at startup and hand it to whoever
needs it. Carts and orders live in the ordering domain's repositories, and
every operation pushes an ordering domain context of its own, so the engine
works from any thread. All of its work sits behind a single re-entrant lock,
so every operation is observed either entirely or not at all. Checkout holds
the lock from reading the cart until the order is stored, and the stock
reservation takes the catalog lock inside it (always engine first, then
catalog).

Adding an aggregate back to its repository drains the events it raised into
the ordering event store.

Flow:
    1. create_cart → add/update/remove lines
    2. checkout → price once, reserve stock, drop cart, store order
    3. get_order / update_status / cancel
    4. total_revenue / total_sales over a consistent snapshot
"""

import itertools
import threading
from contextlib import contextmanager

import structlog

from catalogue.product.store import CatalogStore
from inventory.stock.reservation import StockReservation
from ordering.cart.cart import ShoppingCart
from ordering.domain import ordering
from ordering.order.order import SOLD_STATES, Order, OrderStatus, parse_status, price_order
from shared.clock import utcnow
from shared.config import Settings
from shared.exceptions import (
    CartNotFound,
    EmptyCart,
    InvalidArgument,
    OrderNotFound,
    ProductNotFound,
)
from shared.money import ZERO

logger = structlog.get_logger(__name__)


def _validate_id(value, field):
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidArgument(field, f"{field} must be a positive integer, got {value!r}")


class OrderWorkflow:
    def __init__(self, catalog: CatalogStore, settings: Settings | None = None, clock=utcnow):
        self.catalog = catalog
        self.settings = settings or Settings()
        self._clock = clock
        self._reservation = StockReservation(catalog)

        self._lock = threading.RLock()
        self._cart_ids = itertools.count(1)
        self._order_ids = itertools.count(1)

    @contextmanager
    def _locked(self):
        with self._lock, ordering.domain_context():
            yield

    # -------------------------------------------------------------------
    # Carts
    # -------------------------------------------------------------------
    def create_cart(self, user_id=None) -> ShoppingCart:
        with self._locked():
            cart = ShoppingCart.create(next(self._cart_ids), user_id=user_id, now=self._clock())
            self._carts().add(cart)

        logger.info("Cart created", cart_id=cart.id, user_id=cart.user_id)
        return cart

    def get_cart(self, cart_id) -> ShoppingCart:
        with self._locked():
            return self._require_cart(cart_id)

    def add_to_cart(self, cart_id, product_id, quantity) -> ShoppingCart:
        with self._locked():
            cart = self._require_cart(cart_id)
            product = self.catalog.get(product_id)
            if product is None:
                raise ProductNotFound(product_id)
            if not product.active:
                raise InvalidArgument("product_id", f"Product {product_id} is not available")

            cart.add_item(product, quantity, line_limit=self.settings.cart_line_advisory_limit, now=self._clock())
            if not product.has_stock(quantity):
                logger.warning(
                    "Cart quantity exceeds current stock",
                    cart_id=cart.id,
                    product_id=product_id,
                    requested=quantity,
                    available=product.stock,
                )
            return self._carts().add(cart)

    def update_cart_item(self, cart_id, product_id, quantity) -> ShoppingCart:
        with self._locked():
            cart = self._require_cart(cart_id)
            cart.update_quantity(product_id, quantity, now=self._clock())
            return self._carts().add(cart)

    def remove_from_cart(self, cart_id, product_id) -> ShoppingCart:
        with self._locked():
            cart = self._require_cart(cart_id)
            if cart.remove_item(product_id, now=self._clock()):
                self._carts().add(cart)
            return cart

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def checkout(self, cart_id, shipping_address, billing_address=None) -> Order:
        """Convert a cart into an order, reserving stock for every line.

        Any failure leaves the cart, the catalog and the order book exactly
        as they were.
        """
        with self._locked():
            cart = self._require_cart(cart_id)
            if cart.is_empty():
                raise EmptyCart(cart_id)
            if not isinstance(shipping_address, str) or not shipping_address.strip():
                raise InvalidArgument("shipping_address", "A shipping address is required")

            pricing = price_order(
                cart.get_total(),
                self.settings.bulk_discount_threshold,
                self.settings.bulk_discount_rate,
            )
            reservation = self._reservation.reserve(cart.items)

            try:
                order = Order.create(
                    order_id=next(self._order_ids),
                    user_id=cart.user_id,
                    lines=cart.items,
                    shipping_address=shipping_address,
                    billing_address=billing_address,
                    pricing=pricing,
                    priority_threshold=self.settings.priority_threshold,
                    estimated_delivery_days=self.settings.estimated_delivery_days,
                    now=self._clock(),
                )
                self._orders().add(order)
            except Exception:
                self._reservation.release(reservation.lines)
                raise

            cart.mark_checked_out(order.id, now=self._clock())
            carts = self._carts()
            carts.add(cart)
            carts._dao.delete(cart)

        logger.info(
            "Order placed",
            order_id=order.id,
            cart_id=cart_id,
            user_id=order.user_id,
            total_amount=str(order.total_amount),
            priority=order.is_priority,
        )
        return order

    # -------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------
    def get_order(self, order_id) -> Order:
        """Fetch an order. The first read of a PENDING order marks it VIEWED."""
        with self._locked():
            order = self._load_order(order_id)
            if order.mark_viewed():
                self._orders().add(order)
            return order

    def list_orders_by_user(self, user_id) -> list[Order]:
        """The user's orders, oldest first (ties keep placement order)."""
        if user_id is not None:
            user_id = str(user_id)
        with self._locked():
            orders = [order for order in self._all_orders() if order.user_id == user_id]
            for order in orders:
                self._expire(order)
            return sorted(orders, key=lambda o: o.order_date)

    def update_status(self, order_id, new_status) -> Order:
        target = parse_status(new_status)

        with self._locked():
            order = self._load_order(order_id)
            previous = order.current_status
            if target == OrderStatus.CANCELLED:
                self._cancel(order)
            else:
                order.transition_to(target, now=self._clock())
                self._orders().add(order)

            logger.info("Order status updated", order_id=order_id, previous=previous.value, status=target.value)
            return order

    def cancel(self, order_id) -> bool:
        """Cancel an order. ``False`` when its status no longer allows it."""
        with self._locked():
            order = self._load_order(order_id)
            if not order.can_be_cancelled:
                logger.warning("Order cannot be cancelled", order_id=order_id, status=order.status)
                return False
            self._cancel(order)

        logger.info("Order cancelled", order_id=order_id)
        return True

    def purge_cancelled(self) -> int:
        """Delete cancelled orders. The only way an order ever leaves the book."""
        with self._locked():
            repo = self._orders()
            cancelled = [order for order in self._all_orders() if order.is_cancelled]
            for order in cancelled:
                repo._dao.delete(order)

        logger.info("Cancelled orders purged", count=len(cancelled))
        return len(cancelled)

    # -------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------
    def total_revenue(self):
        """Total of every order that has not been cancelled."""
        with self._locked():
            return sum((order.total_amount for order in self._all_orders() if not order.is_cancelled), ZERO)

    def total_sales(self):
        """Total of orders that have shipped or been delivered."""
        with self._locked():
            return sum(
                (order.total_amount for order in self._all_orders() if order.current_status in SOLD_STATES), ZERO
            )

    # -------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------
    def reset_counters(self) -> None:
        """Forget every cart and order and restart id allocation. Tests and admin only."""
        with self._locked():
            self._carts()._dao.delete_all()
            self._orders()._dao.delete_all()
            self._cart_ids = itertools.count(1)
            self._order_ids = itertools.count(1)

        logger.warning("Workflow state reset")

    # -------------------------------------------------------------------
    # Helpers (callers hold the lock and the domain context)
    # -------------------------------------------------------------------
    @staticmethod
    def _carts():
        return ordering.repository_for(ShoppingCart)

    @staticmethod
    def _orders():
        return ordering.repository_for(Order)

    def _all_orders(self) -> list[Order]:
        return self._orders()._dao.query.order_by("id").all().items

    def _require_cart(self, cart_id) -> ShoppingCart:
        _validate_id(cart_id, "cart_id")
        cart = self._carts().get_or_none(cart_id)
        if cart is None:
            raise CartNotFound(cart_id)
        return cart

    def _load_order(self, order_id) -> Order:
        _validate_id(order_id, "order_id")
        order = self._orders().get_or_none(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        self._expire(order)
        return order

    def _expire(self, order: Order) -> None:
        if order.expire_if_stale(self.settings.pending_expiry_days, now=self._clock()):
            self._orders().add(order)
            logger.info("Order expired", order_id=order.id)

    def _cancel(self, order: Order) -> None:
        order.cancel(now=self._clock())
        self._orders().add(order)
        if self.settings.restock_on_cancel:
            self._reservation.release(order.items)
