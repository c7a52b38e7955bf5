"""Catalogue bounded context: products, prices and on-hand stock."""

from protean.domain import Domain

catalogue = Domain(name="catalogue")
