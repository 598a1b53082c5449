"""Pydantic request/response schemas for the Checkout API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands and checkout value objects.
"""

from typing import Literal

from pydantic import BaseModel, Field

from checkout.address.address import ShippingAddress
from checkout.payment.selection import CardFields, CreditCard, RedirectMethod, parse_payment_method
from checkout.shared.contact import CustomerContact


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CustomerSchema(BaseModel):
    name: str
    email: str
    phone: str

    def to_contact(self) -> CustomerContact:
        return CustomerContact(name=self.name, email=self.email, phone=self.phone)


class AddressSchema(BaseModel):
    id: str | None = None
    name: str = ""
    address_line1: str = ""
    address_line2: str | None = None
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""
    phone: str | None = None
    is_default: bool = False

    def to_address(self) -> ShippingAddress:
        return ShippingAddress.from_dict(self.model_dump())


class CardSchema(BaseModel):
    card_number: str
    exp_month: str
    exp_year: str
    cvv: str
    holder_id: str | None = None


class TotalsSchema(BaseModel):
    subtotal: float
    tax: float
    shipping: float
    total: float
    item_count: int


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class CreateCartRequest(BaseModel):
    owner_id: str | None = None
    session_id: str | None = None


class AddCartLineRequest(BaseModel):
    product_id: str
    name: str
    unit_price: float = Field(ge=0)
    quantity: int = Field(ge=1, default=1)
    stock_limit: int | None = Field(default=None, ge=0)
    image_ref: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-001",
                    "name": "Wireless Headphones",
                    "unit_price": 20.0,
                    "quantity": 2,
                    "stock_limit": 5,
                }
            ]
        }
    }


class UpdateCartLineRequest(BaseModel):
    new_quantity: int = Field(ge=1)


# ---------------------------------------------------------------------------
# Checkout Request Schemas
# ---------------------------------------------------------------------------
class StartCheckoutRequest(BaseModel):
    cart_id: str
    owner_id: str | None = None
    customer: CustomerSchema


class SubmitShippingRequest(BaseModel):
    """Either pick a saved address by position or send a new one."""

    address_index: int | None = Field(default=None, ge=0)
    address: AddressSchema | None = None


class SubmitPaymentRequest(BaseModel):
    method: str
    card: CardSchema | None = None
    card_token: str | None = None
    last4: str | None = None
    expiry: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"method": "bit"},
                {
                    "method": "credit_card",
                    "card": {"card_number": "4111111111111111", "exp_month": "12", "exp_year": "2030", "cvv": "123"},
                },
            ]
        }
    }

    def to_selection(self):
        kind = parse_payment_method(self.method)
        if kind.value != "credit_card":
            return RedirectMethod(kind=kind)
        card_fields = CardFields(**self.card.model_dump()) if self.card else None
        return CreditCard(token=self.card_token, last4=self.last4, expiry=self.expiry, card_fields=card_fields)


class ResumePaymentRequest(BaseModel):
    customer: CustomerSchema | None = None


class ConfigureGatewayRequest(BaseModel):
    tokenize_should_succeed: bool = True
    redirect_should_succeed: bool = True
    tokenize_failure_reason: str = "Invalid card number"
    redirect_failure_reason: str = "Gateway unavailable"


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CartIdResponse(BaseModel):
    cart_id: str


class CartLineResultResponse(BaseModel):
    line_id: str
    quantity: int
    clamped: bool


class StatusResponse(BaseModel):
    status: str = "ok"


class CheckoutStateResponse(BaseModel):
    checkout_id: str
    status: str | None
    error_message: str | None = None
    error_kind: str | None = None
    order_id: str | None = None
    redirect_url: str | None = None
    addresses: list[AddressSchema] = []
    selected_address_index: int | None = None
    entering_new_address: bool = False
    shipping_address: AddressSchema | None = None
    totals: TotalsSchema | None = None


class ReconciliationResponse(BaseModel):
    status: Literal["Completed", "Failed"]
    message: str | None = None
    order_id: str | None = None
    error_kind: str | None = None
    can_retry_payment: bool = False


class GatewayConfigResponse(BaseModel):
    gateway: str
    tokenize_should_succeed: bool
    redirect_should_succeed: bool


class PaymentMethodsResponse(BaseModel):
    methods: list[str]
