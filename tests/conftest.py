from pathlib import Path

import pytest


def pytest_sessionstart(session):
    """Configure structlog once before collecting tests."""
    from ordering.utils.logging import configure_logging

    configure_logging()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)


@pytest.fixture(autouse=True)
def reset_singletons():
    """Fixture to drop every adapter singleton after each test"""
    yield

    from inventory.gateway import reset_gateway as reset_inventory_gateway
    from notifications.dispatch import reset_notifier
    from partners.gateway import reset_gateway as reset_party_gateway
    from payments.gateway import reset_gateway as reset_payment_gateway
    from shared.metrics import reset_metrics
    from shared.publisher import reset_publisher

    reset_inventory_gateway()
    reset_notifier()
    reset_party_gateway()
    reset_payment_gateway()
    reset_metrics()
    reset_publisher()
