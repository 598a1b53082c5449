"""Payment method strategy — one entry point for both payment families.

``initiate(selection, draft)`` returns one of three outcomes:

- ``Immediate(order_id)``: card payments. The card is tokenized at the
  gateway and the order is placed in the same call.
- ``Redirecting(url)``: redirect methods. The pending order is written to the
  ledger first, then the gateway issues the URL the whole page must navigate
  to. The order is placed later by the return reconciler.
- ``Rejected(reason, kind)``: nothing was charged and the shopper can try
  again from the payment step.

The draft is a ``PendingOrder`` built from the checkout's cart snapshot,
address and customer. Raw card fields are dropped before it is passed on.
"""

from dataclasses import dataclass

from checkout.domain import logger
from checkout.errors import OrderCreationError, RedirectInitiationError, TokenizationError, ValidationFailed
from checkout.ledger.ledger import PendingOrderLedger
from checkout.ledger.pending_order import PendingOrder
from checkout.ledger.storage import SessionStorageError
from checkout.order.service.port import OrderPayload, OrderService
from checkout.payment.gateway.port import PaymentGateway
from checkout.payment.selection import CreditCard, PaymentMethodSelection, RedirectMethod

REDIRECT_FAILURE_REASON = "Could not start payment"
CARD_FAILURE_REASON = "Card could not be processed"
ORDER_FAILURE_REASON = "Order could not be placed. Please try again."


@dataclass(frozen=True)
class Immediate:
    order_id: str


@dataclass(frozen=True)
class Redirecting:
    url: str


@dataclass(frozen=True)
class Rejected:
    reason: str
    kind: str


Outcome = Immediate | Redirecting | Rejected


def payment_description(draft: PendingOrder) -> str:
    names = ", ".join(line.name for line in draft.cart_snapshot.lines)
    return f"Order payment for {names}"


class CardPaymentStrategy:
    def __init__(self, gateway: PaymentGateway, order_service: OrderService) -> None:
        self.gateway = gateway
        self.order_service = order_service

    def initiate(self, selection: CreditCard, draft: PendingOrder) -> Outcome:
        token, last4, expiry = selection.token, selection.last4, selection.expiry

        if not token:
            if selection.card_fields is None:
                return Rejected("Card details are required", ValidationFailed.kind)

            try:
                result = self.gateway.tokenize(selection.card_fields, draft.customer)
            except Exception:
                logger.exception("Card tokenization raised", attempt_id=draft.attempt_id)
                return Rejected(CARD_FAILURE_REASON, TokenizationError.kind)
            if not result.success or not result.token:
                logger.warning("Card tokenization failed", attempt_id=draft.attempt_id, reason=result.failure_reason)
                return Rejected(result.failure_reason or CARD_FAILURE_REASON, TokenizationError.kind)
            token, last4, expiry = result.token, result.last4, result.expiry

        card = CreditCard(token=token, last4=last4, expiry=expiry)
        payload = OrderPayload(pending_order=draft.with_payment_method(card), payment_token=token)
        try:
            order_id = self.order_service.create(payload)
        except OrderCreationError as exc:
            logger.error("Order creation failed after card tokenization", attempt_id=draft.attempt_id, error=exc.reason)
            return Rejected(exc.reason, exc.kind)
        except Exception:
            logger.exception("Order service raised after card tokenization", attempt_id=draft.attempt_id)
            return Rejected(ORDER_FAILURE_REASON, OrderCreationError.kind)

        logger.info("Card payment completed", attempt_id=draft.attempt_id, order_id=order_id, last4=last4)
        return Immediate(order_id)


class RedirectPaymentStrategy:
    def __init__(self, gateway: PaymentGateway, ledger: PendingOrderLedger, callback_url: str) -> None:
        self.gateway = gateway
        self.ledger = ledger
        self.callback_url = callback_url

    def initiate(self, selection: RedirectMethod, draft: PendingOrder) -> Outcome:
        pending = draft.with_payment_method(selection)
        try:
            self.ledger.put(pending)
        except SessionStorageError as exc:
            logger.error("Pending order could not be stored", attempt_id=pending.attempt_id, error=str(exc))
            return Rejected(REDIRECT_FAILURE_REASON, RedirectInitiationError.kind)

        try:
            result = self.gateway.create_redirect(
                amount=pending.amounts.total,
                currency=pending.currency,
                description=payment_description(pending),
                method=selection.kind,
                callback_url=self.callback_url,
                customer=pending.customer,
            )
        except Exception:
            logger.exception("Gateway raised while starting redirect payment", attempt_id=pending.attempt_id)
            self._discard(pending)
            return Rejected(REDIRECT_FAILURE_REASON, RedirectInitiationError.kind)

        if not result.success or not result.redirect_url:
            self._discard(pending)
            logger.warning(
                "Gateway could not start redirect payment",
                attempt_id=pending.attempt_id,
                payment_method=selection.kind.value,
                reason=result.failure_reason,
            )
            return Rejected(REDIRECT_FAILURE_REASON, RedirectInitiationError.kind)

        logger.info(
            "Redirecting to payment gateway",
            attempt_id=pending.attempt_id,
            payment_method=selection.kind.value,
            amount=pending.amounts.total,
            currency=pending.currency,
        )
        return Redirecting(result.redirect_url)

    def _discard(self, pending: PendingOrder) -> None:
        try:
            self.ledger.discard()
        except SessionStorageError:
            logger.exception("Pending order could not be discarded", attempt_id=pending.attempt_id)


class PaymentMethodStrategy:
    """Dispatches on the selection's variant."""

    def __init__(
        self,
        gateway: PaymentGateway,
        order_service: OrderService,
        ledger: PendingOrderLedger,
        callback_url: str,
    ) -> None:
        self.card = CardPaymentStrategy(gateway, order_service)
        self.redirect = RedirectPaymentStrategy(gateway, ledger, callback_url)

    def initiate(self, selection: PaymentMethodSelection, draft: PendingOrder) -> Outcome:
        if isinstance(selection, CreditCard):
            return self.card.initiate(selection, draft)
        if isinstance(selection, RedirectMethod):
            return self.redirect.initiate(selection, draft)
        return Rejected("A payment method must be chosen", ValidationFailed.kind)
