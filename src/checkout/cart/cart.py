"""Cart aggregate — the authoritative list of line items for a browsing session.

Lines keep their insertion order through ``position``. Quantities never exceed
a known stock limit: excess is clamped and the clamping is reported back to
the caller and in the raised event, never applied silently.
"""

from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from checkout.cart.events import CartCleared, CartLineAdded, CartLineQuantityChanged, CartLineRemoved
from checkout.domain import checkout


def clamp_quantity(quantity, stock_limit):
    """Return ``(quantity, clamped)`` with quantity capped at stock_limit when known."""
    if stock_limit is not None and quantity > stock_limit:
        return stock_limit, True
    return quantity, False


@checkout.entity(part_of="Cart")
class CartLine:
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    image_ref = String(max_length=1024)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    stock_limit = Integer(min_value=0)  # None when unknown
    position = Integer(default=0)


@checkout.aggregate
class Cart:
    owner_id = Identifier()  # Nullable for guest carts
    session_id = String(max_length=255)
    lines = HasMany(CartLine)
    next_position = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def quantities_within_stock_limit(self):
        for line in self.lines:
            if line.stock_limit is not None and line.quantity > line.stock_limit:
                raise ValidationError({"quantity": [f"Quantity for {line.product_id} exceeds available stock"]})

    @classmethod
    def create(cls, owner_id=None, session_id=None):
        now = datetime.now(UTC)
        return cls(
            owner_id=owner_id,
            session_id=session_id,
            created_at=now,
            updated_at=now,
        )

    def line_for_product(self, product_id):
        return next((line for line in self.lines if str(line.product_id) == str(product_id)), None)

    def _find_line(self, line_id):
        line = next((line for line in self.lines if str(line.id) == str(line_id)), None)
        if line is None:
            raise ValidationError({"line_id": ["Line not found in cart"]})
        return line

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add_line(self, product_id, name, unit_price, quantity, stock_limit=None, image_ref=None):
        """Add a product, or increase its quantity when it is already in the cart.

        Returns a dict with ``line_id``, ``quantity`` and ``clamped``.
        """
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if stock_limit == 0:
            raise ValidationError({"quantity": [f"Product {product_id} is out of stock"]})

        existing = self.line_for_product(product_id)
        now = datetime.now(UTC)

        if existing:
            limit = stock_limit if stock_limit is not None else existing.stock_limit
            new_quantity, clamped = clamp_quantity(existing.quantity + quantity, limit)
            with atomic_change(self):
                existing.stock_limit = limit
                existing.quantity = new_quantity
            line = existing
        else:
            new_quantity, clamped = clamp_quantity(quantity, stock_limit)
            line = CartLine(
                product_id=product_id,
                name=name,
                image_ref=image_ref,
                unit_price=unit_price,
                quantity=new_quantity,
                stock_limit=stock_limit,
                position=self.next_position or 0,
            )
            self.add_lines(line)
            self.next_position = (self.next_position or 0) + 1

        self.updated_at = now

        self.raise_(
            CartLineAdded(
                cart_id=str(self.id),
                line_id=str(line.id),
                product_id=str(product_id),
                requested_quantity=quantity,
                quantity=line.quantity,
                clamped=clamped,
            )
        )
        return {"line_id": str(line.id), "quantity": line.quantity, "clamped": clamped}

    def update_line_quantity(self, line_id, new_quantity):
        if new_quantity is None or new_quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        line = self._find_line(line_id)
        previous_quantity = line.quantity
        quantity, clamped = clamp_quantity(new_quantity, line.stock_limit)
        line.quantity = quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartLineQuantityChanged(
                cart_id=str(self.id),
                line_id=str(line.id),
                previous_quantity=previous_quantity,
                requested_quantity=new_quantity,
                quantity=quantity,
                clamped=clamped,
            )
        )
        return {"line_id": str(line.id), "quantity": quantity, "clamped": clamped}

    def remove_line(self, line_id):
        line = self._find_line(line_id)
        product_id = str(line.product_id)
        self.remove_lines(line)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartLineRemoved(
                cart_id=str(self.id),
                line_id=str(line_id),
                product_id=product_id,
            )
        )

    def clear(self):
        """Drop every line. Called once, after an order is confirmed."""
        line_count = len(self.lines)
        for line in list(self.lines):
            self.remove_lines(line)
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                line_count=line_count,
                cleared_at=now,
            )
        )
