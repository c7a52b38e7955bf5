"""Product aggregate: a sellable item and its on-hand stock."""

from protean.fields import Auto, Boolean, DateTime, Decimal, Integer, String, Text

from catalogue.domain import catalogue
from shared.clock import utcnow
from shared.exceptions import InvalidQuantity

DEFAULT_CATEGORY = "Other"


@catalogue.aggregate(limit=None)
class Product:
    """A sellable product and its on-hand stock.

    ``stock`` can never drop below zero: the field rejects it, and
    ``decrement_stock`` refuses rather than over-drawing.
    """

    id = Auto(increment=True, identifier=True)
    name = String(required=True, max_length=255)
    description = Text()
    price = Decimal(required=True, min_value=0)
    stock = Integer(default=0, min_value=0)
    category = String(default=DEFAULT_CATEGORY)
    active = Boolean(default=True)
    created_at = DateTime(default=utcnow)

    @property
    def is_available(self) -> bool:
        return self.active and self.stock > 0

    def has_stock(self, quantity: int) -> bool:
        return self.stock >= quantity

    def decrement_stock(self, quantity: int) -> bool:
        """Take ``quantity`` units if they are all there; otherwise change nothing."""
        if quantity < 1:
            raise InvalidQuantity(quantity)
        if not self.has_stock(quantity):
            return False
        self.stock -= quantity
        return True

    def restock(self, quantity: int) -> None:
        if quantity < 1:
            raise InvalidQuantity(quantity)
        self.stock += quantity

    def set_stock(self, quantity: int) -> None:
        """Set an absolute stock level. Zero takes the product off sale."""
        if quantity < 0:
            raise InvalidQuantity(quantity, reason="Stock level cannot be negative")
        self.stock = quantity
        self.active = quantity > 0
