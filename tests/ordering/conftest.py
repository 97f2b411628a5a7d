from datetime import UTC, datetime, timedelta

import pytest
from inventory.gateway.fake_adapter import FakeInventoryGateway
from notifications.dispatch.fake_adapter import FakeNotifier
from ordering.domain import Settings
from ordering.offer.offer import get_offer_repository
from ordering.order.commit import CommitCoordinator
from ordering.order.expiration import ExpirationReconciler
from ordering.order.lifecycle import OrderLifecycle
from ordering.order.order import Order, OrderState
from ordering.order.repository import get_repository
from partners.gateway.fake_adapter import FakePartyGateway
from partners.gateway.port import Artwork, CreditCard, CustomerAccount, MerchantAccount, Partner
from payments.gateway.fake_adapter import FakeGateway
from shared.metrics.memory_adapter import InMemoryMetrics
from shared.publisher.memory_adapter import InMemoryPublisher


LINE_ITEMS = [
    {
        "artwork_id": "artwork-a",
        "artwork_version_id": "version-a",
        "list_price_cents": 10000,
        "quantity": 1,
    },
    {
        "artwork_id": "artwork-b",
        "edition_set_id": "edition-b",
        "artwork_version_id": "version-b",
        "list_price_cents": 5000,
        "quantity": 2,
    },
]

ORDER_ATTRIBUTES = {
    "buyer_id": "buyer-1",
    "buyer_type": "user",
    "seller_id": "partner-1",
    "seller_type": "gallery",
    "credit_card_id": "cc-1",
    "currency_code": "USD",
    "shipping_total_cents": 2000,
    "tax_total_cents": 500,
    "fulfillment_type": "ship",
    "shipping_name": "Dana Buyer",
    "shipping_address_line1": "401 Broadway",
    "shipping_city": "New York",
    "shipping_region": "NY",
    "shipping_country": "US",
    "shipping_postal_code": "10013",
}


@pytest.fixture(scope="session")
def _ordering_domain():
    """Initialize the ordering domain once per session."""
    from ordering.domain import ordering

    ordering.init()
    return ordering


@pytest.fixture(autouse=True)
def run_around_tests(_ordering_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _ordering_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def party_gateway():
    gateway = FakePartyGateway()
    gateway.add_artwork(Artwork(id="artwork-a", current_version_id="version-a"))
    gateway.add_artwork(Artwork(id="artwork-b", current_version_id="version-b"))
    gateway.add_credit_card(
        CreditCard(id="cc-1", external_id="card_1", customer_account=CustomerAccount(external_id="cus_1"))
    )
    gateway.add_partner(Partner(id="partner-1", name="Gallery Wonderful Things", effective_commission_rate=0.1))
    gateway.add_merchant_account(MerchantAccount(id="ma-1", external_id="acct_1", partner_id="partner-1"))
    return gateway


@pytest.fixture
def inventory_gateway():
    return FakeInventoryGateway()


@pytest.fixture
def payment_gateway():
    return FakeGateway()


@pytest.fixture
def publisher():
    return InMemoryPublisher()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def metrics():
    return InMemoryMetrics()


@pytest.fixture
def repository():
    return get_repository()


@pytest.fixture
def offers():
    return get_offer_repository()


@pytest.fixture
def coordinator(repository, party_gateway, inventory_gateway, payment_gateway, publisher, notifier, metrics, settings):
    return CommitCoordinator(
        repository=repository,
        party_gateway=party_gateway,
        inventory_gateway=inventory_gateway,
        payment_gateway=payment_gateway,
        publisher=publisher,
        notifier=notifier,
        metrics=metrics,
        settings=settings,
    )


@pytest.fixture
def lifecycle(repository, inventory_gateway, payment_gateway, publisher, metrics, settings):
    return OrderLifecycle(
        repository=repository,
        inventory_gateway=inventory_gateway,
        payment_gateway=payment_gateway,
        publisher=publisher,
        metrics=metrics,
        settings=settings,
    )


@pytest.fixture
def reconciler(repository, lifecycle):
    return ExpirationReconciler(repository=repository, lifecycle=lifecycle)


@pytest.fixture
def make_order(repository):
    """Persist an order in the given state and return it."""

    def _make(state=OrderState.PENDING, line_items_data=None, **overrides):
        attributes = {**ORDER_ATTRIBUTES, **overrides}
        attributes.setdefault("state_expires_at", datetime.now(UTC) + timedelta(days=2))
        if line_items_data is None:
            line_items_data = LINE_ITEMS
        order = Order.create(line_items_data=line_items_data, **attributes)
        order.state = state.value
        repository.add(order)
        return order

    return _make
