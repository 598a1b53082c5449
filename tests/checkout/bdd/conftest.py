"""Shared BDD fixtures and step definitions for checkout."""

import pytest
from checkout.address.resolver import AddressResolver
from checkout.cart.snapshot import CartSnapshotProvider
from checkout.flow.factory import clear_cart
from checkout.flow.machine import CheckoutFlow, CheckoutStatus
from checkout.flow.reconciler import ReturnReconciler
from checkout.payment.selection import PaymentMethodKind, RedirectMethod
from checkout.payment.strategy import PaymentMethodStrategy
from pytest_bdd import given, parsers, then

OWNER_ID = "cust-bdd-001"
CALLBACK_URL = "http://localhost:8000/checkout/return"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


@pytest.fixture()
def build_flow(gateway, order_service, address_store, ledger, customer):
    def _build(cart):
        return CheckoutFlow(
            cart=cart,
            resolver=AddressResolver(address_store, delay=0.0, sleep=lambda _: None),
            strategy=PaymentMethodStrategy(
                gateway=gateway,
                order_service=order_service,
                ledger=ledger,
                callback_url=CALLBACK_URL,
            ),
            customer=customer,
            owner_id=OWNER_ID,
        )

    return _build


@pytest.fixture()
def reconciler(ledger, gateway, order_service):
    return ReturnReconciler(ledger=ledger, gateway=gateway, order_service=order_service, clear_cart=clear_cart)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('a signed-in shopper with a cart holding {quantity:d} "{name}" at {price:f}'),
    target_fixture="cart",
)
def cart_with_items(quantity, name, price):
    cart = CartSnapshotProvider.create(owner_id=OWNER_ID)
    cart.add_line("prod-001", name, price, quantity)
    return cart


@given("the gateway declines card tokenization")
def gateway_declines_cards(gateway):
    gateway.configure(tokenize_should_succeed=False)


@given("the shopper is on the shipping step", target_fixture="flow")
def on_shipping_step(build_flow, cart):
    flow = build_flow(cart)
    flow.start()
    return flow


@given("the shopper is on the payment step", target_fixture="flow")
def on_payment_step(build_flow, cart, draft_address):
    flow = build_flow(cart)
    flow.start()
    flow.submit_shipping(draft_address)
    return flow


@given(parsers.cfparse('the shopper was redirected to pay with "{method}"'), target_fixture="flow")
def redirected(build_flow, cart, draft_address, method):
    flow = build_flow(cart)
    flow.start()
    flow.submit_shipping(draft_address)
    flow.submit_payment(RedirectMethod(kind=PaymentMethodKind(method)))
    assert flow.status == CheckoutStatus.REDIRECT_PENDING
    return flow


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the checkout status is "{status}"'))
def checkout_status_is(flow, status):
    assert flow.status == CheckoutStatus(status)


@then(parsers.cfparse('the checkout error is "{message}"'))
def checkout_error_is(flow, message):
    assert flow.error_message == message


@then("no order has been requested")
def no_order_requested(order_service):
    assert order_service.calls == []


@then("exactly one order was requested")
def one_order_requested(order_service):
    assert len(order_service.calls) == 1


@then("the cart is empty")
def cart_is_empty(cart):
    assert cart.snapshot().is_empty


@then(parsers.cfparse("the cart still holds {count:d} items"))
def cart_still_holds(cart, count):
    assert cart.snapshot().item_count == count


@then("the ledger holds the pending order")
def ledger_holds_pending_order(storage):
    assert len(storage) == 1


@then("the ledger is empty")
def ledger_is_empty(storage):
    assert len(storage) == 0


@then("the gateway was not called")
def gateway_not_called(gateway):
    assert gateway.calls == []
