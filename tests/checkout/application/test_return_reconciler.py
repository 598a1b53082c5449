"""Tests for finishing redirect payments on the return page."""

import pytest
from protean import current_domain

from checkout.flow.factory import build_return_reconciler
from checkout.flow.machine import CheckoutStatus
from checkout.flow.reconciler import NO_PENDING_ORDER_MESSAGE, ORDER_CREATION_FAILED_MESSAGE, ReturnReconciler
from checkout.ledger.pending_order import PendingOrder
from checkout.order.order import Order
from checkout.order.service import reset_order_service
from checkout.payment.selection import PaymentMethodKind, RedirectMethod

APPROVED = {"Response": "000", "index": "77", "AuthNr": "0123"}
INVALID_CARD = {"Response": "003", "index": "78"}


@pytest.fixture
def pending(cart, customer, draft_address):
    return PendingOrder.build(
        cart_snapshot=cart.snapshot(),
        shipping_address=draft_address,
        payment_method=RedirectMethod(kind=PaymentMethodKind.BIT),
        customer=customer,
        currency="ILS",
        owner_id="cust-001",
    )


class TestApprovedReturn:
    def test_order_created_once_with_reference_and_cart_cleared(
        self, reconciler, ledger, pending, order_service, cleared_carts, cart
    ):
        ledger.put(pending)

        result = reconciler.reconcile(APPROVED)

        assert result.status == CheckoutStatus.COMPLETED
        assert len(order_service.calls) == 1
        assert order_service.calls[0].transaction_reference == "77-0123"
        assert order_service.calls[0].idempotency_key == pending.attempt_id
        assert result.order_id in order_service.orders
        assert cleared_carts == [cart.cart_id]

    def test_replayed_return_page_creates_nothing(self, reconciler, ledger, pending, order_service):
        ledger.put(pending)
        reconciler.reconcile(APPROVED)

        replay = reconciler.reconcile(APPROVED)

        assert replay.status == CheckoutStatus.FAILED
        assert replay.error_kind == "reconciliation_not_found"
        assert len(order_service.calls) == 1

    def test_order_creation_failure_sends_shopper_to_account(
        self, reconciler, ledger, pending, order_service, cleared_carts
    ):
        order_service.configure(should_succeed=False)
        ledger.put(pending)

        result = reconciler.reconcile(APPROVED)

        assert result.status == CheckoutStatus.FAILED
        assert result.message == ORDER_CREATION_FAILED_MESSAGE
        assert result.error_kind == "order_creation"
        assert result.can_retry_payment is False
        assert cleared_carts == []

    def test_unexpected_order_service_error_sends_shopper_to_account(self, ledger, gateway, pending, cleared_carts):
        class UnreachableOrders:
            def create(self, payload):
                raise RuntimeError("connection reset")

        reconciler = ReturnReconciler(ledger, gateway, UnreachableOrders(), clear_cart=cleared_carts.append)
        ledger.put(pending)

        result = reconciler.reconcile(APPROVED)

        assert result.status == CheckoutStatus.FAILED
        assert result.message == ORDER_CREATION_FAILED_MESSAGE
        assert result.error_kind == "order_creation"
        assert cleared_carts == []

    def test_cart_clear_failure_still_completes(self, ledger, gateway, order_service, pending):
        def broken_clear(cart_id):
            raise RuntimeError("cart store down")

        reconciler = ReturnReconciler(ledger, gateway, order_service, clear_cart=broken_clear)
        ledger.put(pending)

        result = reconciler.reconcile(APPROVED)

        assert result.status == CheckoutStatus.COMPLETED
        assert result.order_id in order_service.orders


class TestDeclinedReturn:
    def test_invalid_card_leaves_cart_and_consumes_ledger(
        self, reconciler, ledger, storage, pending, order_service, cleared_carts
    ):
        ledger.put(pending)

        result = reconciler.reconcile(INVALID_CARD)

        assert result.status == CheckoutStatus.FAILED
        assert result.message == "Invalid card number"
        assert result.error_kind == "gateway_decline"
        assert cleared_carts == []
        assert order_service.calls == []
        assert len(storage) == 0

    def test_decline_can_be_retried(self, reconciler, ledger, pending):
        ledger.put(pending)

        result = reconciler.reconcile(INVALID_CARD)

        assert result.can_retry_payment is True
        assert result.pending_order.attempt_id == pending.attempt_id
        assert result.to_dict()["can_retry_payment"] is True

    def test_unknown_code_falls_back_to_generic_message(self, reconciler, ledger, pending):
        ledger.put(pending)
        result = reconciler.reconcile({"Response": "999"})
        assert result.status == CheckoutStatus.FAILED
        assert result.message


class TestMissingPendingOrder:
    def test_no_ledger_entry(self, reconciler, order_service, cleared_carts):
        result = reconciler.reconcile(APPROVED)

        assert result.status == CheckoutStatus.FAILED
        assert result.message == NO_PENDING_ORDER_MESSAGE
        assert "no pending order found" in result.message.lower()
        assert order_service.calls == []
        assert cleared_carts == []

    def test_corrupt_ledger_entry_is_treated_as_missing(self, reconciler, storage, order_service):
        storage.set_item("pendingOrder", "{not json")

        result = reconciler.reconcile(APPROVED)

        assert result.error_kind == "reconciliation_not_found"
        assert order_service.calls == []
        assert len(storage) == 0


class TestWiredReconciler:
    def test_local_order_service_and_real_cart(self, storage, ledger, pending, cart):
        reset_order_service()
        ledger.put(pending)

        result = build_return_reconciler(storage).reconcile(APPROVED)

        assert result.status == CheckoutStatus.COMPLETED
        order = current_domain.repository_for(Order).get(result.order_id)
        assert order.transaction_reference == "77-0123"
        assert order.total == 44.0
        assert cart.snapshot().is_empty
