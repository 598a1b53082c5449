import pytest
from protean.integrations.pytest import DomainFixture

from checkout.address.address import ShippingAddress
from checkout.address.store import reset_address_store, set_address_store
from checkout.address.store.fake_adapter import FakeAddressStore
from checkout.api.sessions import reset_sessions
from checkout.cart.registry import reset_cart_providers
from checkout.config import CheckoutSettings, reset_settings, set_settings
from checkout.ledger.ledger import PendingOrderLedger
from checkout.ledger.storage import InMemorySessionStorage
from checkout.order.service import reset_order_service, set_order_service
from checkout.order.service.fake_adapter import FakeOrderService
from checkout.payment.gateway import reset_gateway, set_gateway
from checkout.payment.gateway.fake_adapter import FakeGateway
from checkout.shared.contact import CustomerContact


@pytest.fixture(scope="session")
def checkout_bed():
    from checkout.domain import checkout

    bed = DomainFixture(checkout)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(checkout_bed):
    with checkout_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def _adapters():
    """Fresh fakes and zero retry delay for every test."""
    set_settings(CheckoutSettings(address_save_delay=0.0))
    set_gateway(FakeGateway())
    yield
    reset_gateway()
    reset_address_store()
    reset_order_service()
    reset_settings()
    reset_sessions()
    reset_cart_providers()


@pytest.fixture
def gateway():
    gateway = FakeGateway()
    set_gateway(gateway)
    return gateway


@pytest.fixture
def address_store():
    store = FakeAddressStore()
    set_address_store(store)
    return store


@pytest.fixture
def order_service():
    service = FakeOrderService()
    set_order_service(service)
    return service


@pytest.fixture
def storage():
    return InMemorySessionStorage()


@pytest.fixture
def ledger(storage):
    return PendingOrderLedger(storage)


@pytest.fixture
def customer():
    return CustomerContact(name="Dana Levi", email="dana@example.com", phone="0501234567")


@pytest.fixture
def draft_address():
    return ShippingAddress(
        name="Dana Levi",
        address_line1="12 Herzl St",
        city="Tel Aviv",
        state="Tel Aviv District",
        postal_code="6100000",
        country="IL",
    )
