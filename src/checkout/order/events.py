"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from checkout.domain import checkout


@checkout.event(part_of="Order")
class OrderPlaced:
    """A paid order was recorded for a checkout attempt.

    ``transaction_reference`` is the gateway's reference for redirect
    payments; card payments carry only the attempt's idempotency key.
    """

    __version__ = 1

    order_id = Identifier(required=True)
    owner_id = Identifier()
    cart_id = Identifier()
    payment_method = String(required=True, max_length=50)
    transaction_reference = String(max_length=255)
    idempotency_key = String(required=True, max_length=255)
    total = Float(required=True)
    currency = String(max_length=3, required=True)
    placed_at = DateTime(required=True)
