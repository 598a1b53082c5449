"""Order service backed by the Order aggregate in this domain."""

import json

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from checkout.domain import logger
from checkout.errors import OrderCreationError, format_validation_messages
from checkout.order.placement import PlaceOrder
from checkout.order.service.port import OrderPayload, OrderService


class LocalOrderService(OrderService):
    def create(self, payload: OrderPayload) -> str:
        pending = payload.pending_order
        snapshot = pending.cart_snapshot
        try:
            return current_domain.process(
                PlaceOrder(
                    idempotency_key=payload.idempotency_key,
                    owner_id=pending.owner_id,
                    cart_id=snapshot.cart_id,
                    customer=json.dumps(pending.customer.to_dict()),
                    lines=json.dumps([line.to_dict() for line in snapshot.lines]),
                    shipping_address=json.dumps(pending.shipping_address.to_dict()),
                    payment_method=pending.payment_method.kind.value,
                    payment_token=payload.payment_token,
                    transaction_reference=payload.transaction_reference,
                    subtotal=pending.amounts.subtotal,
                    tax=pending.amounts.tax,
                    total=pending.amounts.total,
                    currency=pending.currency,
                ),
                asynchronous=False,
            )
        except ValidationError as exc:
            raise OrderCreationError(format_validation_messages(exc), cause=exc) from exc
        except Exception as exc:
            logger.exception("Order could not be recorded", attempt_id=pending.attempt_id)
            raise OrderCreationError("Order service is unavailable", cause=exc) from exc
