"""Ordering bounded context: shopping carts, checkout and the order lifecycle.

Carts and orders live in the domain's memory repositories. Events raised by
either aggregate are drained into the domain's event store whenever the
aggregate is added back to its repository.
"""

from protean.domain import Domain

ordering = Domain(name="ordering")
