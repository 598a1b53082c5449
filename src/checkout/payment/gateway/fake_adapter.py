"""Configurable fake payment gateway for development and testing.

No external calls. Tokenization and redirect creation can each be switched to
fail, and every call is recorded (without card data) for assertions. Return
parameters use the same names as Tranzila (``Response``, ``index``,
``AuthNr``) so return pages behave the same against either adapter.
"""

from collections.abc import Mapping
from urllib.parse import urlencode
from uuid import uuid4

from checkout.payment.gateway.port import GatewayCallback, PaymentGateway, RedirectResult, TokenizationResult
from checkout.payment.selection import CardFields, PaymentMethodKind
from checkout.shared.contact import CustomerContact
from checkout.shared.money import format_amount

FAKE_GATEWAY_URL = "https://gateway.test/pay"


class FakeGateway(PaymentGateway):
    def __init__(self) -> None:
        self.tokenize_should_succeed: bool = True
        self.tokenize_failure_reason: str = "Invalid card number"
        self.redirect_should_succeed: bool = True
        self.redirect_failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []

    def configure(
        self,
        tokenize_should_succeed: bool = True,
        redirect_should_succeed: bool = True,
        tokenize_failure_reason: str = "Invalid card number",
        redirect_failure_reason: str = "Gateway unavailable",
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.tokenize_should_succeed = tokenize_should_succeed
        self.redirect_should_succeed = redirect_should_succeed
        self.tokenize_failure_reason = tokenize_failure_reason
        self.redirect_failure_reason = redirect_failure_reason

    def calls_to(self, method: str) -> list[dict]:
        return [call for call in self.calls if call["method"] == method]

    def tokenize(self, card_fields: CardFields, customer: CustomerContact) -> TokenizationResult:
        self.calls.append({"method": "tokenize", "last4": card_fields.last4, "customer_email": customer.email})

        if self.tokenize_should_succeed:
            return TokenizationResult(
                success=True,
                token=f"fake_tok_{uuid4().hex[:12]}",
                last4=card_fields.last4,
                expiry=card_fields.expiry,
            )
        return TokenizationResult(success=False, failure_reason=self.tokenize_failure_reason)

    def create_redirect(
        self,
        amount: float,
        currency: str,
        description: str,
        method: PaymentMethodKind,
        callback_url: str,
        customer: CustomerContact,
    ) -> RedirectResult:
        self.calls.append(
            {
                "method": "create_redirect",
                "amount": amount,
                "currency": currency,
                "description": description,
                "payment_method": method.value,
                "callback_url": callback_url,
                "customer_email": customer.email,
            }
        )

        if not self.redirect_should_succeed:
            return RedirectResult(success=False, failure_reason=self.redirect_failure_reason)

        query = urlencode(
            {
                "sum": format_amount(amount),
                "currency": currency,
                "method": method.value,
                "notify_url": callback_url,
            }
        )
        return RedirectResult(success=True, redirect_url=f"{FAKE_GATEWAY_URL}/{uuid4().hex[:12]}?{query}")

    def parse_callback(self, params: Mapping[str, str]) -> GatewayCallback:
        index = params.get("index")
        auth_number = params.get("AuthNr")
        reference = f"{index}-{auth_number}" if index and auth_number else index
        return GatewayCallback(
            response_code=params.get("Response"),
            transaction_reference=reference,
            token=params.get("TranzilaTK"),
        )
