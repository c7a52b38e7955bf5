"""All-or-nothing stock reservation performed at checkout.

Quantities are summed per product first, so a cart holding the same product
on several lines is checked against the combined demand. The availability
check and the decrements run under the catalog lock: nobody can take the
stock between the check passing and the decrement landing.
"""

from collections import Counter
from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

import structlog
from pydantic import BaseModel, ConfigDict, Field

from catalogue.product.store import CatalogStore
from shared.exceptions import InsufficientStock, ProductNotFound
from shared.clock import utcnow

logger = structlog.get_logger(__name__)


class StockLine(Protocol):
    product_id: int
    quantity: int


class ReservedLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: int
    quantity: int = Field(ge=1)


class Reservation(BaseModel):
    """Stock taken from the catalog for one checkout."""

    model_config = ConfigDict(frozen=True)

    lines: tuple[ReservedLine, ...]
    reserved_at: datetime = Field(default_factory=utcnow)

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)


def requested_quantities(lines: Iterable[StockLine]) -> Counter:
    requested = Counter()
    for line in lines:
        requested[line.product_id] += line.quantity
    return requested


class StockReservation:
    def __init__(self, catalog: CatalogStore):
        self._catalog = catalog

    def reserve(self, lines: Iterable[StockLine]) -> Reservation:
        """Decrement stock for every line, or raise and decrement nothing."""
        requested = requested_quantities(lines)

        with self._catalog.locked() as catalog:
            self._check_availability(catalog, requested)

            committed = []
            for product_id, quantity in requested.items():
                if not catalog.decrement_stock(product_id, quantity):
                    self._rollback(catalog, committed)
                    product = catalog.get(product_id)
                    raise InsufficientStock(product_id, quantity, product.stock if product else 0)
                committed.append(ReservedLine(product_id=product_id, quantity=quantity))

        reservation = Reservation(lines=tuple(committed))
        logger.info(
            "Stock reserved",
            products=len(reservation.lines),
            quantity=reservation.total_quantity,
        )
        return reservation

    def release(self, lines: Iterable[StockLine]) -> None:
        """Return previously reserved stock to the catalog."""
        with self._catalog.locked() as catalog:
            for product_id, quantity in requested_quantities(lines).items():
                if catalog.get(product_id) is None:
                    logger.warning("Cannot release stock for a deleted product", product_id=product_id)
                    continue
                catalog.restock(product_id, quantity)

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @staticmethod
    def _check_availability(catalog: CatalogStore, requested: Counter) -> None:
        for product_id, quantity in requested.items():
            product = catalog.get(product_id)
            if product is None:
                raise ProductNotFound(product_id)
            if not product.has_stock(quantity):
                logger.warning(
                    "Reservation refused",
                    product_id=product_id,
                    requested=quantity,
                    available=product.stock,
                )
                raise InsufficientStock(product_id, quantity, product.stock)

    @staticmethod
    def _rollback(catalog: CatalogStore, committed: list[ReservedLine]) -> None:
        for line in committed:
            catalog.restock(line.product_id, line.quantity)
        logger.error("Reservation rolled back", products=[line.product_id for line in committed])
