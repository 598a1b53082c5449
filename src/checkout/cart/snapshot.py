"""Read side of the cart: immutable snapshots, totals and change notifications.

Checkout never holds a live reference to the Cart aggregate. It reads a
``CartSnapshot`` once and carries that copy forward, so edits made elsewhere
while a payment is in flight cannot change what is being paid for.

Cart editors mutate through ``CartSnapshotProvider`` and every persisted
change is published to subscribers as a fresh snapshot.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from protean.utils.globals import current_domain

from checkout.cart.cart import Cart
from checkout.cart.items import AddCartLine, ClearCart, CreateCart, RemoveCartLine, UpdateCartLineQuantity
from checkout.domain import logger
from checkout.shared.money import round_money

DEFAULT_TAX_RATE = 0.10
SHIPPING_COST = 0.0


@dataclass(frozen=True)
class CartLineSnapshot:
    product_id: str
    name: str
    unit_price: float
    quantity: int
    image_ref: str | None = None
    stock_limit: int | None = None

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "image_ref": self.image_ref,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "stock_limit": self.stock_limit,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartLineSnapshot":
        return cls(
            product_id=data["product_id"],
            name=data["name"],
            image_ref=data.get("image_ref"),
            unit_price=data["unit_price"],
            quantity=data["quantity"],
            stock_limit=data.get("stock_limit"),
        )


@dataclass(frozen=True)
class CartTotals:
    subtotal: float
    tax: float
    shipping: float
    total: float


def compute_totals(lines, tax_rate: float = DEFAULT_TAX_RATE) -> CartTotals:
    """Subtotal is the sum of price x quantity; tax is a flat rate on it; shipping is free."""
    subtotal = round_money(sum(line.unit_price * line.quantity for line in lines))
    tax = round_money(subtotal * tax_rate)
    total = round_money(subtotal + tax + SHIPPING_COST)
    return CartTotals(subtotal=subtotal, tax=tax, shipping=SHIPPING_COST, total=total)


@dataclass(frozen=True)
class CartSnapshot:
    lines: tuple[CartLineSnapshot, ...] = ()
    cart_id: str | None = None
    tax_rate: float = DEFAULT_TAX_RATE
    totals: CartTotals = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "lines", tuple(self.lines))
        object.__setattr__(self, "totals", compute_totals(self.lines, self.tax_rate))

    @property
    def subtotal(self) -> float:
        return self.totals.subtotal

    @property
    def tax(self) -> float:
        return self.totals.tax

    @property
    def shipping(self) -> float:
        return self.totals.shipping

    @property
    def total(self) -> float:
        return self.totals.total

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def to_dict(self) -> dict:
        return {
            "cart_id": self.cart_id,
            "tax_rate": self.tax_rate,
            "lines": [line.to_dict() for line in self.lines],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartSnapshot":
        return cls(
            lines=tuple(CartLineSnapshot.from_dict(line) for line in data.get("lines", [])),
            cart_id=data.get("cart_id"),
            tax_rate=data.get("tax_rate", DEFAULT_TAX_RATE),
        )

    @classmethod
    def from_cart(cls, cart: Cart, tax_rate: float = DEFAULT_TAX_RATE) -> "CartSnapshot":
        ordered = sorted(cart.lines, key=lambda line: line.position or 0)
        return cls(
            lines=tuple(
                CartLineSnapshot(
                    product_id=str(line.product_id),
                    name=line.name,
                    image_ref=line.image_ref,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    stock_limit=line.stock_limit,
                )
                for line in ordered
            ),
            cart_id=str(cart.id),
            tax_rate=tax_rate,
        )


CartListener = Callable[[CartSnapshot], None]


class CartSnapshotProvider:
    """Owned access path to one cart: mutations, snapshots and subscriptions."""

    def __init__(self, cart_id: str, tax_rate: float = DEFAULT_TAX_RATE) -> None:
        self.cart_id = str(cart_id)
        self.tax_rate = tax_rate
        self._listeners: list[CartListener] = []

    @classmethod
    def create(cls, owner_id=None, session_id=None, tax_rate: float = DEFAULT_TAX_RATE) -> "CartSnapshotProvider":
        cart_id = current_domain.process(CreateCart(owner_id=owner_id, session_id=session_id), asynchronous=False)
        return cls(cart_id, tax_rate=tax_rate)

    def snapshot(self) -> CartSnapshot:
        cart = current_domain.repository_for(Cart).get(self.cart_id)
        return CartSnapshot.from_cart(cart, tax_rate=self.tax_rate)

    # -------------------------------------------------------------------
    # Mutations (each one persists, then notifies)
    # -------------------------------------------------------------------
    def add_line(self, product_id, name, unit_price, quantity=1, stock_limit=None, image_ref=None) -> dict:
        result = current_domain.process(
            AddCartLine(
                cart_id=self.cart_id,
                product_id=product_id,
                name=name,
                image_ref=image_ref,
                unit_price=unit_price,
                quantity=quantity,
                stock_limit=stock_limit,
            ),
            asynchronous=False,
        )
        if result["clamped"]:
            logger.info(
                "Cart line quantity clamped to stock",
                cart_id=self.cart_id,
                product_id=str(product_id),
                requested=quantity,
                quantity=result["quantity"],
            )
        self._publish()
        return result

    def update_quantity(self, line_id, new_quantity) -> dict:
        result = current_domain.process(
            UpdateCartLineQuantity(cart_id=self.cart_id, line_id=line_id, new_quantity=new_quantity),
            asynchronous=False,
        )
        self._publish()
        return result

    def remove_line(self, line_id) -> None:
        current_domain.process(RemoveCartLine(cart_id=self.cart_id, line_id=line_id), asynchronous=False)
        self._publish()

    def clear(self) -> None:
        current_domain.process(ClearCart(cart_id=self.cart_id), asynchronous=False)
        logger.info("Cart cleared", cart_id=self.cart_id)
        self._publish()

    # -------------------------------------------------------------------
    # Publish / subscribe
    # -------------------------------------------------------------------
    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Cart listener failed", cart_id=self.cart_id)
