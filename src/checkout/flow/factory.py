"""Wires flows and reconcilers to the configured adapters."""

from checkout.address.resolver import AddressResolver
from checkout.address.store import get_address_store
from checkout.cart.registry import get_cart_provider
from checkout.config import get_settings
from checkout.flow.machine import CheckoutFlow
from checkout.flow.reconciler import ReturnReconciler
from checkout.ledger.ledger import PendingOrderLedger
from checkout.ledger.storage import SessionStorage
from checkout.order.service import get_order_service
from checkout.payment.gateway import get_gateway
from checkout.payment.strategy import PaymentMethodStrategy
from checkout.shared.contact import CustomerContact


def build_checkout_flow(
    cart_id: str,
    customer: CustomerContact,
    storage: SessionStorage,
    owner_id: str | None = None,
) -> CheckoutFlow:
    settings = get_settings()
    ledger = PendingOrderLedger(storage)
    strategy = PaymentMethodStrategy(
        gateway=get_gateway(),
        order_service=get_order_service(),
        ledger=ledger,
        callback_url=settings.callback_url,
    )
    resolver = AddressResolver(
        get_address_store(),
        attempts=settings.address_save_attempts,
        delay=settings.address_save_delay,
    )
    return CheckoutFlow(
        cart=get_cart_provider(cart_id),
        resolver=resolver,
        strategy=strategy,
        customer=customer,
        owner_id=owner_id,
        currency=settings.currency,
    )


def clear_cart(cart_id: str) -> None:
    get_cart_provider(cart_id).clear()


def build_return_reconciler(storage: SessionStorage) -> ReturnReconciler:
    return ReturnReconciler(
        ledger=PendingOrderLedger(storage),
        gateway=get_gateway(),
        order_service=get_order_service(),
        clear_cart=clear_cart,
    )
