"""Return reconciler — finishes a redirect payment when the browser comes back.

Runs once per load of the return page, as a fresh flow rather than a
continuation of the page that left:

1. Take the pending order from the ledger. Nothing there means this page was
   already handled (or never set up), so the result is FAILED and nothing
   else happens.
2. Read the gateway's response code and transaction reference.
3. On success, place the order once with the reference attached, then clear
   the cart. If placing fails the shopper may already have been charged, so
   the message sends them to their account rather than offering a retry.
4. On decline, report the reason from the response-code table. The cart is
   left alone and the pending order is handed back so the shopper can try
   another payment.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from checkout.domain import logger
from checkout.errors import (
    GatewayDeclineError,
    OrderCreationError,
    ReconciliationNotFoundError,
)
from checkout.flow.machine import CheckoutStatus
from checkout.ledger.ledger import PendingOrderLedger
from checkout.ledger.pending_order import PendingOrder
from checkout.order.service.port import OrderPayload, OrderService
from checkout.payment.gateway.port import PaymentGateway
from checkout.payment.response_codes import describe_response_code

NO_PENDING_ORDER_MESSAGE = "No pending order found; please check your account for order status"
ORDER_CREATION_FAILED_MESSAGE = (
    "Your payment was received but we could not confirm your order. "
    "Please check your account for order status before trying again"
)


@dataclass(frozen=True)
class ReconciliationResult:
    status: CheckoutStatus
    message: str | None = None
    order_id: str | None = None
    error_kind: str | None = None
    pending_order: PendingOrder | None = None

    @classmethod
    def nothing_pending(cls) -> "ReconciliationResult":
        return cls(
            status=CheckoutStatus.FAILED,
            message=NO_PENDING_ORDER_MESSAGE,
            error_kind=ReconciliationNotFoundError.kind,
        )

    @property
    def can_retry_payment(self) -> bool:
        return self.error_kind == GatewayDeclineError.kind and self.pending_order is not None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "message": self.message,
            "order_id": self.order_id,
            "error_kind": self.error_kind,
            "can_retry_payment": self.can_retry_payment,
        }


class ReturnReconciler:
    def __init__(
        self,
        ledger: PendingOrderLedger,
        gateway: PaymentGateway,
        order_service: OrderService,
        clear_cart: Callable[[str], None],
    ) -> None:
        self.ledger = ledger
        self.gateway = gateway
        self.order_service = order_service
        self.clear_cart = clear_cart

    def reconcile(self, params: Mapping[str, str]) -> ReconciliationResult:
        pending = self.ledger.take_if_present()
        if pending is None:
            logger.warning("Return page loaded without a pending order")
            return ReconciliationResult.nothing_pending()

        callback = self.gateway.parse_callback(params)

        if not callback.succeeded:
            reason = describe_response_code(callback.response_code)
            logger.info(
                "Gateway declined redirect payment",
                attempt_id=pending.attempt_id,
                response_code=callback.response_code,
                reason=reason,
            )
            return ReconciliationResult(
                status=CheckoutStatus.FAILED,
                message=reason,
                error_kind=GatewayDeclineError.kind,
                pending_order=pending,
            )

        payload = OrderPayload(pending_order=pending, transaction_reference=callback.transaction_reference)
        try:
            order_id = self.order_service.create(payload)
        except OrderCreationError as exc:
            return self._unconfirmed(pending, callback.transaction_reference, exc)
        except Exception as exc:
            return self._unconfirmed(pending, callback.transaction_reference, OrderCreationError(str(exc), cause=exc))

        cart_id = pending.cart_snapshot.cart_id
        if cart_id:
            try:
                self.clear_cart(cart_id)
            except Exception:
                logger.exception("Cart could not be cleared after order", cart_id=cart_id, order_id=order_id)

        logger.info(
            "Redirect payment reconciled",
            attempt_id=pending.attempt_id,
            order_id=order_id,
            transaction_reference=callback.transaction_reference,
        )
        return ReconciliationResult(status=CheckoutStatus.COMPLETED, order_id=order_id)

    def _unconfirmed(
        self, pending: PendingOrder, transaction_reference: str | None, error: OrderCreationError
    ) -> ReconciliationResult:
        # The ledger slot is already gone, so the log line is the only record of this charge.
        logger.error(
            "Order creation failed after successful payment",
            attempt_id=pending.attempt_id,
            transaction_reference=transaction_reference,
            owner_id=pending.owner_id,
            total=pending.amounts.total,
            currency=pending.currency,
            error=error.reason,
            pending_order=pending.to_json(),
        )
        return ReconciliationResult(
            status=CheckoutStatus.FAILED,
            message=ORDER_CREATION_FAILED_MESSAGE,
            error_kind=error.kind,
        )
