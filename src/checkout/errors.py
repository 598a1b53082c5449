"""Checkout error taxonomy.

Every error ends the transition attempt that raised it. ``kind`` is a stable
identifier for API clients; ``reason`` is the message shown to the shopper.
"""

from protean.exceptions import ValidationError


class CheckoutError(Exception):
    kind = "checkout_error"

    def __init__(self, reason: str, cause: Exception | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.cause = cause


class ValidationFailed(CheckoutError):
    """Missing or invalid input. Recovered locally, no external call made."""

    kind = "validation"

    @classmethod
    def from_validation_error(cls, exc: ValidationError) -> "ValidationFailed":
        return cls(format_validation_messages(exc), cause=exc)


class AddressSaveError(CheckoutError):
    """The address store rejected every save attempt."""

    kind = "address_save"

    def __init__(self, reason: str, attempts: int, cause: Exception | None = None) -> None:
        super().__init__(reason, cause=cause)
        self.attempts = attempts


class TokenizationError(CheckoutError):
    kind = "tokenization"


class RedirectInitiationError(CheckoutError):
    kind = "redirect_initiation"


class ReconciliationNotFoundError(CheckoutError):
    kind = "reconciliation_not_found"


class GatewayDeclineError(CheckoutError):
    kind = "gateway_decline"

    def __init__(self, reason: str, response_code: str) -> None:
        super().__init__(reason)
        self.response_code = response_code


class OrderCreationError(CheckoutError):
    """Order Service refused or could not be reached.

    After a redirect payment this may follow a successful charge, so callers
    must not retry automatically.
    """

    kind = "order_creation"


def format_validation_messages(exc: ValidationError) -> str:
    messages = getattr(exc, "messages", None)
    if not isinstance(messages, dict):
        return str(exc)
    parts = []
    for field, errors in messages.items():
        if isinstance(errors, (list, tuple)):
            parts.append(f"{field}: {', '.join(str(e) for e in errors)}")
        else:
            parts.append(f"{field}: {errors}")
    return "; ".join(parts)
