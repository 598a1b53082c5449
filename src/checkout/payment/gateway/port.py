"""Payment gateway port (abstract interface).

Checkout uses the gateway for two things: exchanging card fields for an
opaque token, and issuing a URL the shopper is sent to for redirect-based
methods. The gateway reports redirect results back on the callback URL as
request parameters, which ``parse_callback`` turns into a ``GatewayCallback``.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass

from checkout.payment.response_codes import is_success
from checkout.payment.selection import CardFields, PaymentMethodKind
from checkout.shared.contact import CustomerContact


@dataclass(frozen=True)
class TokenizationResult:
    success: bool
    token: str | None = None
    last4: str | None = None
    expiry: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class RedirectResult:
    success: bool
    redirect_url: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class GatewayCallback:
    """Result parameters carried on the return trip from the gateway."""

    response_code: str | None
    transaction_reference: str | None = None
    token: str | None = None

    @property
    def succeeded(self) -> bool:
        return is_success(self.response_code)


class PaymentGateway(ABC):
    @abstractmethod
    def tokenize(self, card_fields: CardFields, customer: CustomerContact) -> TokenizationResult:
        """Exchange card fields for a token. Card data must not be retained."""
        ...

    @abstractmethod
    def create_redirect(
        self,
        amount: float,
        currency: str,
        description: str,
        method: PaymentMethodKind,
        callback_url: str,
        customer: CustomerContact,
    ) -> RedirectResult:
        """Return the URL the whole page must navigate to."""
        ...

    @abstractmethod
    def parse_callback(self, params: Mapping[str, str]) -> GatewayCallback:
        """Read the response code and transaction reference from return parameters."""
        ...

    def available_methods(self) -> list[PaymentMethodKind]:
        return list(PaymentMethodKind)
