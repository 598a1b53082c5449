import pytest

from checkout.address.resolver import AddressResolver
from checkout.cart.snapshot import CartSnapshotProvider
from checkout.flow.machine import CheckoutFlow
from checkout.flow.reconciler import ReturnReconciler
from checkout.payment.strategy import PaymentMethodStrategy

CALLBACK_URL = "http://localhost:8000/checkout/return"


@pytest.fixture
def cart():
    provider = CartSnapshotProvider.create(owner_id="cust-001")
    provider.add_line("prod-001", "Desk Lamp", 20.0, 2)
    return provider


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def resolver(address_store, sleeps):
    return AddressResolver(address_store, attempts=3, delay=1.0, sleep=sleeps.append)


@pytest.fixture
def strategy(gateway, order_service, ledger):
    return PaymentMethodStrategy(gateway=gateway, order_service=order_service, ledger=ledger, callback_url=CALLBACK_URL)


@pytest.fixture
def make_flow(cart, resolver, strategy, customer):
    def _make(owner_id="cust-001", **overrides):
        kwargs = {
            "cart": cart,
            "resolver": resolver,
            "strategy": strategy,
            "customer": customer,
            "owner_id": owner_id,
        }
        kwargs.update(overrides)
        return CheckoutFlow(**kwargs)

    return _make


@pytest.fixture
def cleared_carts():
    return []


@pytest.fixture
def reconciler(ledger, gateway, order_service, cleared_carts):
    return ReturnReconciler(ledger=ledger, gateway=gateway, order_service=order_service, clear_cart=cleared_carts.append)
