"""BDD tests for checkout, payment and the gateway return page."""

from checkout.address.address import ShippingAddress
from checkout.flow.machine import CheckoutStatus
from checkout.payment.selection import CardFields, CreditCard, PaymentMethodKind, RedirectMethod
from protean.exceptions import ValidationError
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/checkout.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the shopper starts checkout", target_fixture="flow")
def start_checkout(build_flow, cart):
    flow = build_flow(cart)
    flow.start()
    return flow


@when("the shopper submits a shipping address without a city")
def submit_address_without_city(flow, draft_address, error):
    try:
        flow.submit_shipping(ShippingAddress.from_dict({**draft_address.to_dict(), "city": ""}))
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse('the shopper pays with "{method}"'))
def pay_with_redirect(flow, method):
    flow.submit_payment(RedirectMethod(kind=PaymentMethodKind(method)))


@when("the shopper pays by card")
def pay_by_card(flow):
    flow.submit_payment(
        CreditCard(card_fields=CardFields(card_number="4580000000000000", exp_month="04", exp_year="30", cvv="123"))
    )


@when("the shopper goes back to shipping")
def go_back(flow):
    flow.back()


@when(
    parsers.cfparse('the gateway approves the payment with reference "{index}" and authorization "{auth}"'),
    target_fixture="result",
)
def gateway_approves(reconciler, index, auth):
    return reconciler.reconcile({"Response": "000", "index": index, "AuthNr": auth})


@when(parsers.cfparse('the gateway returns with response code "{code}"'), target_fixture="result")
def gateway_returns(reconciler, code):
    return reconciler.reconcile({"Response": code})


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the checkout shows subtotal {subtotal:f}, tax {tax:f} and total {total:f}"))
def checkout_totals(flow, subtotal, tax, total):
    snapshot = flow.cart_snapshot
    assert (snapshot.subtotal, snapshot.tax, snapshot.total) == (subtotal, tax, total)


@then(parsers.cfparse('the submission is rejected naming "{field}"'))
def submission_rejected(error, field):
    assert error["exc"] is not None
    assert field in str(error["exc"])


@then(parsers.cfparse('the return result is "{status}"'))
def return_result_is(result, status):
    assert result.status == CheckoutStatus(status)


@then(parsers.cfparse('the return fails with message "{message}"'))
def return_fails_with(result, message):
    assert result.status == CheckoutStatus.FAILED
    assert result.message == message


@then(parsers.cfparse('exactly one order was requested with transaction reference "{reference}"'))
def one_order_with_reference(order_service, reference):
    assert len(order_service.calls) == 1
    assert order_service.calls[0].transaction_reference == reference
