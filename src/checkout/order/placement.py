"""Order placement — command and handler.

Placing is idempotent. A command whose transaction reference or idempotency
key matches an existing order returns that order's id instead of creating a
second one.
"""

import json

from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from checkout.domain import checkout, logger
from checkout.order.order import Order


def find_existing_order(transaction_reference=None, idempotency_key=None):
    query = current_domain.repository_for(Order)._dao.query
    if transaction_reference:
        found = query.filter(transaction_reference=transaction_reference).all().items
        if found:
            return found[0]
    if idempotency_key:
        found = query.filter(idempotency_key=idempotency_key).all().items
        if found:
            return found[0]
    return None


@checkout.command(part_of="Order")
class PlaceOrder:
    idempotency_key = String(required=True, max_length=255)
    owner_id = Identifier()
    cart_id = Identifier()
    customer = Text(required=True)  # JSON: {name, email, phone}
    lines = Text(required=True)  # JSON: list of line dicts
    shipping_address = Text(required=True)  # JSON: address dict
    payment_method = String(required=True, max_length=50)
    payment_token = String(max_length=255)
    transaction_reference = String(max_length=255)
    subtotal = Float(required=True, min_value=0.0)
    tax = Float(default=0.0)
    total = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="ILS")


@checkout.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        existing = find_existing_order(
            transaction_reference=command.transaction_reference,
            idempotency_key=command.idempotency_key,
        )
        if existing is not None:
            logger.info(
                "Order already placed for this payment",
                order_id=str(existing.id),
                transaction_reference=command.transaction_reference,
                idempotency_key=command.idempotency_key,
            )
            return str(existing.id)

        order = Order.place(
            idempotency_key=command.idempotency_key,
            customer=json.loads(command.customer),
            lines=json.loads(command.lines),
            shipping_address=json.loads(command.shipping_address),
            payment_method=command.payment_method,
            subtotal=command.subtotal,
            tax=command.tax or 0.0,
            total=command.total,
            currency=command.currency or "ILS",
            owner_id=command.owner_id,
            cart_id=command.cart_id,
            transaction_reference=command.transaction_reference,
            payment_token=command.payment_token,
        )
        current_domain.repository_for(Order).add(order)
        logger.info(
            "Order placed",
            order_id=str(order.id),
            payment_method=command.payment_method,
            total=command.total,
            currency=order.currency,
        )
        return str(order.id)
