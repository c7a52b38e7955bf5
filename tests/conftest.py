import os
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from catalogue.product.product import Product
from catalogue.product.store import CatalogStore
from ordering.workflow.engine import OrderWorkflow
from shared.config import Settings


def pytest_sessionstart(session):
    """Initialize both domains before collection.

    Importing ``app`` runs ``init()`` on the catalogue and ordering domains.
    The demo catalog is switched off so every test starts with an empty store.
    """
    os.environ["PROTEAN_ENV"] = "test"
    os.environ["STOREFRONT_SEED_CATALOG"] = "false"

    import app  # noqa: F401


@pytest.fixture(autouse=True)
def run_around_tests():
    """Run each test inside the ordering domain context, then clear both domains."""
    from catalogue.domain import catalogue
    from ordering.domain import ordering
    from protean import current_domain

    with ordering.domain_context():
        yield

    for domain in (catalogue, ordering):
        with domain.domain_context():
            # Clear all databases
            for _, provider in current_domain.providers.items():
                provider._data_reset()

            # Drain event stores
            current_domain.event_store.store._data_reset()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


class FakeClock:
    """Deterministic clock handed to the workflow engine."""

    def __init__(self, now=None):
        self.now = now or datetime(2026, 3, 2, 9, 30, tzinfo=UTC)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture()
def settings():
    return Settings(_env_file=None, environment="test", seed_catalog=False)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def catalog():
    return CatalogStore()


@pytest.fixture()
def workflow(catalog, settings, clock):
    return OrderWorkflow(catalog, settings=settings, clock=clock)


@pytest.fixture()
def make_product(catalog):
    """Save a product in the catalog and return the stored copy."""

    def _make(name="Widget", price="60", stock=5, category="Gadgets", **kwargs):
        return catalog.save(Product(name=name, price=price, stock=stock, category=category, **kwargs))

    return _make


@pytest.fixture()
def client(settings, catalog, workflow):
    from app import create_app
    from fastapi.testclient import TestClient

    return TestClient(create_app(settings=settings, catalog=catalog, workflow=workflow))
