"""Catalog store over the catalogue domain's Product repository.

Every operation pushes a catalogue domain context of its own, so the store
works from any thread, and runs under one re-entrant lock. Reads hand back
freshly loaded aggregates: stock only ever changes through the store's own
operations. ``locked()`` lets a caller hold the lock across several
operations, which is how checkout makes its stock check and decrements one
atomic step.
"""

from __future__ import annotations

import itertools
import threading
from contextlib import contextmanager

import structlog

from catalogue.domain import catalogue
from catalogue.product.product import DEFAULT_CATEGORY, Product
from shared.exceptions import ProductNotFound

logger = structlog.get_logger(__name__)

_DEMO_PRODUCTS = [
    ("Laptop", "High-performance laptop", "999.99", 10, "Electronics"),
    ("Mouse", "Wireless mouse", "29.99", 50, "Electronics"),
    ("Keyboard", "Mechanical keyboard", "79.99", 30, "Electronics"),
    ("Monitor", "27-inch 4K monitor", "399.99", 15, "Electronics"),
    ("Desk Chair", "Ergonomic office chair", "299.99", 20, "Furniture"),
]

# Fields copied onto the stored product when an existing id is saved again
_EDITABLE_FIELDS = ("name", "description", "price", "stock", "category", "active")


class CatalogStore:
    def __init__(self):
        self._ids = itertools.count(1)
        self._lock = threading.RLock()

    @contextmanager
    def locked(self):
        with self._lock, catalogue.domain_context():
            yield self

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get(self, product_id: int) -> Product | None:
        with self.locked():
            return self._repository().get_or_none(product_id)

    def list(self) -> list[Product]:
        with self.locked():
            return self._all()

    def list_by_category(self, category: str) -> list[Product]:
        with self.locked():
            return self._repository()._dao.query.filter(category=category).order_by("id").all().items

    def search(self, query: str | None) -> list[Product]:
        """Products whose name or description contains ``query``."""
        if not query:
            return self.list()
        with self.locked():
            return [
                p for p in self._all() if query in p.name or (p.description is not None and query in p.description)
            ]

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def save(self, product: Product) -> Product:
        """Insert a product, assigning an id when it has none, or overwrite the stored one."""
        with self.locked():
            repo = self._repository()
            stored = repo.get_or_none(product.id) if product.id is not None else None
            if stored is None:
                if product.id is None:
                    product.id = self._next_id()
                stored = product
            else:
                for field in _EDITABLE_FIELDS:
                    setattr(stored, field, getattr(product, field))
            if not stored.category:
                stored.category = DEFAULT_CATEGORY
            repo.add(stored)

            logger.info("Product saved", product_id=stored.id, name=stored.name, stock=stored.stock)
            return stored

    def update(self, product_id: int, **changes) -> Product:
        """Apply field changes to a stored product. Unknown ids raise ``ProductNotFound``."""
        with self.locked():
            product = self._require(product_id)
            for field, value in changes.items():
                setattr(product, field, value)
            return self.save(product)

    def delete(self, product_id: int) -> None:
        with self.locked():
            repo = self._repository()
            product = repo.get_or_none(product_id)
            if product is not None:
                repo._dao.delete(product)
                logger.info("Product deleted", product_id=product_id)

    def decrement_stock(self, product_id: int, quantity: int) -> bool:
        """Atomically take ``quantity`` units. ``False`` (and no change) when short or absent."""
        with self.locked():
            repo = self._repository()
            product = repo.get_or_none(product_id)
            if product is None:
                return False
            taken = product.decrement_stock(quantity)
            if taken:
                repo.add(product)
                logger.debug("Stock decremented", product_id=product_id, quantity=quantity, remaining=product.stock)
            return taken

    def restock(self, product_id: int, quantity: int) -> Product:
        with self.locked():
            product = self._require(product_id)
            product.restock(quantity)
            self._repository().add(product)
            logger.info("Stock replenished", product_id=product_id, quantity=quantity, stock=product.stock)
            return product

    def set_stock(self, product_id: int, quantity: int) -> Product:
        with self.locked():
            product = self._require(product_id)
            product.set_stock(quantity)
            self._repository().add(product)
            logger.info("Stock level set", product_id=product_id, stock=quantity, active=product.active)
            return product

    def clear(self) -> None:
        with self.locked():
            self._repository()._dao.delete_all()
            self._ids = itertools.count(1)

    def seed(self) -> list[Product]:
        """Load the demo catalog."""
        with self.locked():
            return [
                self.save(
                    Product(
                        name=name,
                        description=description,
                        price=price,
                        stock=stock,
                        category=category,
                    )
                )
                for name, description, price, stock, category in _DEMO_PRODUCTS
            ]

    # -------------------------------------------------------------------
    # Helpers (callers hold the lock and the domain context)
    # -------------------------------------------------------------------
    @staticmethod
    def _repository():
        return catalogue.repository_for(Product)

    def _all(self) -> list[Product]:
        return self._repository()._dao.query.order_by("id").all().items

    def _require(self, product_id: int) -> Product:
        product = self._repository().get_or_none(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return product

    def _next_id(self) -> int:
        repo = self._repository()
        candidate = next(self._ids)
        while repo.get_or_none(candidate) is not None:
            candidate = next(self._ids)
        return candidate
