"""Payment method selection — exactly one variant per checkout attempt.

``CreditCard`` completes synchronously with a gateway token. ``RedirectMethod``
sends the shopper to the gateway and finishes on the way back. Raw card
fields only pass through to the gateway: they are excluded from repr,
equality and every serialized form.
"""

from dataclasses import dataclass, field
from enum import Enum

from protean.exceptions import ValidationError


class PaymentMethodKind(Enum):
    CREDIT_CARD = "credit_card"
    BIT = "bit"
    PAYPAL = "paypal"
    APPLE_PAY = "apple_pay"
    GOOGLE_PAY = "google_pay"
    BANK_TRANSFER = "bank_transfer"


REDIRECT_KINDS = frozenset(
    {
        PaymentMethodKind.BIT,
        PaymentMethodKind.PAYPAL,
        PaymentMethodKind.APPLE_PAY,
        PaymentMethodKind.GOOGLE_PAY,
        PaymentMethodKind.BANK_TRANSFER,
    }
)


def parse_payment_method(value) -> PaymentMethodKind:
    if isinstance(value, PaymentMethodKind):
        return value
    try:
        return PaymentMethodKind(str(value).strip().lower())
    except ValueError:
        raise ValidationError({"payment_method": [f"Unsupported payment method: {value}"]}) from None


@dataclass(frozen=True)
class CardFields:
    card_number: str
    exp_month: str
    exp_year: str
    cvv: str
    holder_id: str | None = None

    def __repr__(self) -> str:
        return f"CardFields(last4={self.last4!r})"

    @property
    def last4(self) -> str:
        return self.card_number[-4:] if self.card_number else ""

    @property
    def expiry(self) -> str:
        return f"{self.exp_month.zfill(2)}/{self.exp_year[-2:]}"


@dataclass(frozen=True)
class CreditCard:
    """Card payment. Carries either a hosted-fields token or pass-through card fields."""

    token: str | None = field(default=None, repr=False)
    last4: str | None = None
    expiry: str | None = None
    card_fields: CardFields | None = field(default=None, repr=False, compare=False)

    @property
    def kind(self) -> PaymentMethodKind:
        return PaymentMethodKind.CREDIT_CARD

    @property
    def is_redirect(self) -> bool:
        return False

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "last4": self.last4, "expiry": self.expiry}


@dataclass(frozen=True)
class RedirectMethod:
    kind: PaymentMethodKind

    def __post_init__(self):
        kind = parse_payment_method(self.kind)
        if kind not in REDIRECT_KINDS:
            raise ValidationError({"payment_method": [f"{kind.value} is not a redirect payment method"]})
        object.__setattr__(self, "kind", kind)

    @property
    def is_redirect(self) -> bool:
        return True

    def to_dict(self) -> dict:
        return {"kind": self.kind.value}


PaymentMethodSelection = CreditCard | RedirectMethod


def selection_from_dict(data: dict) -> PaymentMethodSelection:
    """Rebuild a selection from its serialized form (never includes card data)."""
    kind = parse_payment_method(data.get("kind"))
    if kind is PaymentMethodKind.CREDIT_CARD:
        return CreditCard(last4=data.get("last4"), expiry=data.get("expiry"))
    return RedirectMethod(kind=kind)
