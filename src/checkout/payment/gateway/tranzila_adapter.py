"""Tranzila payment gateway adapter.

Tokenization posts card fields to the terminal's ``tkn=1`` endpoint and keeps
only the returned ``TranzilaTK``. Redirect methods need no server call: the
payment page URL is the terminal URL with the order parameters in the query
string, and Tranzila reports back to ``notify_url``.
"""

from collections.abc import Mapping
from urllib.parse import parse_qsl, urlencode

import requests

from checkout.domain import logger
from checkout.payment.gateway.port import GatewayCallback, PaymentGateway, RedirectResult, TokenizationResult
from checkout.payment.response_codes import SUCCESS_CODE, describe_response_code, normalize_code
from checkout.payment.selection import REDIRECT_KINDS, CardFields, PaymentMethodKind
from checkout.shared.contact import CustomerContact
from checkout.shared.money import format_amount

# Tranzila's numeric currency codes
_CURRENCY_CODES = {"ILS": "1", "USD": "2"}

DEFAULT_TIMEOUT = (5.0, 8.0)


class TranzilaGateway(PaymentGateway):
    def __init__(
        self,
        terminal_name: str,
        api_url: str = "https://secure5.tranzila.com/cgi-bin/tranzila31.cgi",
        session: requests.Session | None = None,
        timeout=DEFAULT_TIMEOUT,
    ) -> None:
        self.terminal_name = terminal_name
        self.api_url = api_url
        self.session = session or requests.Session()
        self.timeout = timeout

    def tokenize(self, card_fields: CardFields, customer: CustomerContact) -> TokenizationResult:
        if not all((card_fields.card_number, card_fields.exp_month, card_fields.exp_year, card_fields.cvv)):
            return TokenizationResult(success=False, failure_reason="Missing required card details")

        data = {
            "supplier": self.terminal_name,
            "ccno": card_fields.card_number,
            "expdate": card_fields.exp_month.zfill(2) + card_fields.exp_year[-2:],
            "mycvv": card_fields.cvv,
        }
        if card_fields.holder_id:
            data["id"] = card_fields.holder_id

        try:
            response = self.session.post(f"{self.api_url}?tkn=1", data=data, timeout=self.timeout)
            response.raise_for_status()
            payload = _parse_body(response)
        except requests.Timeout:
            logger.error("Tranzila tokenization timed out", customer_email=customer.email)
            return TokenizationResult(success=False, failure_reason="Payment gateway did not respond. Please try again.")
        except (requests.RequestException, ValueError) as exc:
            logger.error("Tranzila tokenization failed", customer_email=customer.email, error=str(exc))
            return TokenizationResult(success=False, failure_reason="Payment gateway is unavailable. Please try again.")

        code = normalize_code(payload.get("Response"))
        token = payload.get("TranzilaTK")

        if code == SUCCESS_CODE and token:
            return TokenizationResult(
                success=True,
                token=token,
                last4=card_fields.last4,
                expiry=card_fields.expiry,
            )

        logger.warning("Tranzila rejected card tokenization", response_code=code)
        return TokenizationResult(success=False, failure_reason=describe_response_code(code))

    def create_redirect(
        self,
        amount: float,
        currency: str,
        description: str,
        method: PaymentMethodKind,
        callback_url: str,
        customer: CustomerContact,
    ) -> RedirectResult:
        if method not in REDIRECT_KINDS:
            return RedirectResult(success=False, failure_reason=f"Unsupported payment method: {method.value}")
        if not amount or amount <= 0 or not description:
            return RedirectResult(success=False, failure_reason="Missing required payment information")
        if customer.missing_fields():
            return RedirectResult(success=False, failure_reason="Missing customer information")
        if not callback_url:
            return RedirectResult(success=False, failure_reason=f"Return URL is required for {method.value}")
        if currency not in _CURRENCY_CODES:
            return RedirectResult(success=False, failure_reason=f"Unsupported currency: {currency}")

        query = urlencode(
            {
                "supplier": self.terminal_name,
                "sum": format_amount(amount),
                "currency": _CURRENCY_CODES[currency],
                "pdesc": description,
                "contact": customer.name,
                "email": customer.email,
                "phone": customer.phone,
                "cred_type": method.value,
                "notify_url": callback_url,
            }
        )
        return RedirectResult(success=True, redirect_url=f"{self.api_url}?{query}")

    def parse_callback(self, params: Mapping[str, str]) -> GatewayCallback:
        index = params.get("index")
        auth_number = params.get("AuthNr")
        reference = f"{index}-{auth_number}" if index and auth_number else index
        return GatewayCallback(
            response_code=params.get("Response"),
            transaction_reference=reference,
            token=params.get("TranzilaTK"),
        )


def _parse_body(response: requests.Response) -> dict:
    """Tranzila answers with a query-string body; some terminals return JSON."""
    if "json" in response.headers.get("Content-Type", ""):
        body = response.json()
        return body if isinstance(body, dict) else {}
    return dict(parse_qsl(response.text.strip()))
