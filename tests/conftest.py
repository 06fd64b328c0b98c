import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Fetch and activate the domain by pushing the associated domain_context. The activated domain can then be
    referred to elsewhere as `current_domain`. The ``test`` overlay points the default database at mongomock.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from shared.domain import init_domain

    storefront = init_domain()
    storefront.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        # Get the test file path relative to the tests directory
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session", autouse=True)
def setup_db(request):
    from shared.domain import storefront
    from shared.utils.db import drop_db, setup_db

    setup_db(storefront)

    yield

    drop_db(storefront)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from protean import current_domain

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    # Drain event stores
    current_domain.event_store.store._data_reset()


@pytest.fixture()
def admin():
    from identity.principal import Principal

    return Principal(id="admin-001", role="admin")


@pytest.fixture()
def customer():
    from identity.principal import Principal

    return Principal(id="user-001", role="user")


@pytest.fixture()
def other_customer():
    from identity.principal import Principal

    return Principal(id="user-002", role="user")


@pytest.fixture()
def make_product():
    """Factory: persist a product and return it."""
    from protean.utils.globals import current_domain

    from catalogue.product.product import Product

    def _make(name="Widget", price=10.0, stock=10, **attributes):
        product = Product.create(name=name, price=price, stock=stock, created_by="admin-001", **attributes)
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture()
def shipping_address():
    return {
        "full_name": "Jane Doe",
        "street": "123 Main Street",
        "city": "Springfield",
        "state": "IL",
        "zip_code": "62701",
        "country": "USA",
    }
