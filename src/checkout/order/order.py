"""Order aggregate — the record a successful checkout attempt leaves behind.

Amounts, lines and address are copied from the pending order at placement and
never change afterwards. An order is identified twice over: by the gateway's
transaction reference when there is one, and always by the checkout attempt's
idempotency key. Neither may appear on two orders.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String, Text

from checkout.domain import checkout
from checkout.order.events import OrderPlaced


class PaymentStatus(Enum):
    PAID = "Paid"
    PENDING = "Pending"


@checkout.aggregate
class Order:
    owner_id = Identifier()  # Nullable for guest checkouts
    cart_id = Identifier()
    customer_name = String(required=True, max_length=255)
    customer_email = String(required=True, max_length=255)
    customer_phone = String(max_length=50)
    lines = Text(required=True)  # JSON: list of cart line dicts
    shipping_address = Text(required=True)  # JSON: address dict
    payment_method = String(required=True, max_length=50)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PAID.value)
    payment_token = String(max_length=255)
    transaction_reference = String(max_length=255)
    idempotency_key = String(required=True, max_length=255)
    subtotal = Float(required=True, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    total = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="ILS")
    placed_at = DateTime()

    @classmethod
    def place(
        cls,
        idempotency_key,
        customer,
        lines,
        shipping_address,
        payment_method,
        subtotal,
        tax,
        total,
        currency,
        owner_id=None,
        cart_id=None,
        transaction_reference=None,
        payment_token=None,
    ):
        if not lines:
            raise ValidationError({"lines": ["An order needs at least one line"]})

        now = datetime.now(UTC)
        order = cls(
            owner_id=owner_id,
            cart_id=cart_id,
            customer_name=customer["name"],
            customer_email=customer["email"],
            customer_phone=customer.get("phone"),
            lines=json.dumps(lines),
            shipping_address=json.dumps(shipping_address),
            payment_method=payment_method,
            payment_status=PaymentStatus.PAID.value,
            payment_token=payment_token,
            transaction_reference=transaction_reference,
            idempotency_key=idempotency_key,
            subtotal=subtotal,
            tax=tax,
            total=total,
            currency=currency,
            placed_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                owner_id=str(owner_id) if owner_id else None,
                cart_id=str(cart_id) if cart_id else None,
                payment_method=payment_method,
                transaction_reference=transaction_reference,
                idempotency_key=idempotency_key,
                total=total,
                currency=currency,
                placed_at=now,
            )
        )
        return order

    @property
    def line_items(self) -> list[dict]:
        return json.loads(self.lines) if self.lines else []
