"""Domain events for the Cart aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer

from checkout.domain import checkout


@checkout.event(part_of="Cart")
class CartLineAdded:
    """A product was added to the cart, or its quantity increased by a re-add.

    ``clamped`` is true when the stored quantity is lower than requested
    because of the product's stock limit.
    """

    __version__ = 1

    cart_id = Identifier(required=True)
    line_id = Identifier(required=True)
    product_id = Identifier(required=True)
    requested_quantity = Integer(required=True)
    quantity = Integer(required=True)
    clamped = Boolean(default=False)


@checkout.event(part_of="Cart")
class CartLineQuantityChanged:
    __version__ = 1

    cart_id = Identifier(required=True)
    line_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    requested_quantity = Integer(required=True)
    quantity = Integer(required=True)
    clamped = Boolean(default=False)


@checkout.event(part_of="Cart")
class CartLineRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    line_id = Identifier(required=True)
    product_id = Identifier(required=True)


@checkout.event(part_of="Cart")
class CartCleared:
    """All lines were removed after an order was confirmed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    line_count = Integer(required=True)
    cleared_at = DateTime(required=True)
