"""PendingOrder — the continuation state written before leaving for a gateway.

Everything the return page needs to finish the order travels in this record:
the cart as it was when payment started, the shipping address, the chosen
method, the amounts and the customer's contact details. Card data never does.
"""

import json
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from uuid import uuid4

from checkout.address.address import ShippingAddress
from checkout.cart.snapshot import CartSnapshot
from checkout.payment.selection import PaymentMethodSelection, selection_from_dict
from checkout.shared.contact import CustomerContact

PENDING_ORDER_KEY = "pendingOrder"


@dataclass(frozen=True)
class Amounts:
    subtotal: float
    tax: float
    total: float

    @classmethod
    def from_snapshot(cls, snapshot: CartSnapshot) -> "Amounts":
        return cls(subtotal=snapshot.subtotal, tax=snapshot.tax, total=snapshot.total)

    def to_dict(self) -> dict:
        return {"subtotal": self.subtotal, "tax": self.tax, "total": self.total}

    @classmethod
    def from_dict(cls, data: dict) -> "Amounts":
        return cls(subtotal=data["subtotal"], tax=data["tax"], total=data["total"])


@dataclass(frozen=True)
class PendingOrder:
    cart_snapshot: CartSnapshot
    shipping_address: ShippingAddress
    payment_method: PaymentMethodSelection
    amounts: Amounts
    customer: CustomerContact
    created_at: str
    attempt_id: str
    currency: str = "ILS"
    owner_id: str | None = None

    @classmethod
    def build(
        cls,
        cart_snapshot: CartSnapshot,
        shipping_address: ShippingAddress,
        payment_method: PaymentMethodSelection,
        customer: CustomerContact,
        currency: str = "ILS",
        owner_id: str | None = None,
        attempt_id: str | None = None,
    ) -> "PendingOrder":
        return cls(
            cart_snapshot=cart_snapshot,
            shipping_address=shipping_address,
            payment_method=payment_method,
            amounts=Amounts.from_snapshot(cart_snapshot),
            customer=customer,
            created_at=datetime.now(UTC).isoformat(),
            attempt_id=attempt_id or str(uuid4()),
            currency=currency,
            owner_id=owner_id,
        )

    def with_payment_method(self, payment_method: PaymentMethodSelection) -> "PendingOrder":
        return replace(self, payment_method=payment_method)

    def to_dict(self) -> dict:
        return {
            "cart_snapshot": self.cart_snapshot.to_dict(),
            "shipping_address": self.shipping_address.to_dict(),
            "payment_method": self.payment_method.to_dict(),
            "amounts": self.amounts.to_dict(),
            "customer": self.customer.to_dict(),
            "created_at": self.created_at,
            "attempt_id": self.attempt_id,
            "currency": self.currency,
            "owner_id": self.owner_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PendingOrder":
        return cls(
            cart_snapshot=CartSnapshot.from_dict(data["cart_snapshot"]),
            shipping_address=ShippingAddress.from_dict(data["shipping_address"]),
            payment_method=selection_from_dict(data["payment_method"]),
            amounts=Amounts.from_dict(data["amounts"]),
            customer=CustomerContact.from_dict(data["customer"]),
            created_at=data["created_at"],
            attempt_id=data["attempt_id"],
            currency=data.get("currency", "ILS"),
            owner_id=data.get("owner_id"),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def from_json(cls, payload: str) -> "PendingOrder":
        return cls.from_dict(json.loads(payload))
