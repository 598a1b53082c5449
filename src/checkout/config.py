"""Checkout settings read from the environment."""

import os
from dataclasses import dataclass


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value not in (None, "") else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value not in (None, "") else default


@dataclass(frozen=True)
class CheckoutSettings:
    currency: str = "ILS"
    callback_url: str = "http://localhost:8000/checkout/return"
    tax_rate: float = 0.10
    address_save_attempts: int = 3
    address_save_delay: float = 1.0
    gateway: str = "fake"
    tranzila_terminal_name: str = ""
    tranzila_api_url: str = "https://secure5.tranzila.com/cgi-bin/tranzila31.cgi"
    max_browser_contexts: int = 10_000

    @classmethod
    def from_env(cls) -> "CheckoutSettings":
        defaults = cls()
        return cls(
            currency=os.getenv("CHECKOUT_CURRENCY", defaults.currency),
            callback_url=os.getenv("CHECKOUT_CALLBACK_URL", defaults.callback_url),
            tax_rate=_env_float("CHECKOUT_TAX_RATE", defaults.tax_rate),
            address_save_attempts=_env_int("CHECKOUT_ADDRESS_SAVE_ATTEMPTS", defaults.address_save_attempts),
            address_save_delay=_env_float("CHECKOUT_ADDRESS_SAVE_DELAY", defaults.address_save_delay),
            gateway=os.getenv("CHECKOUT_GATEWAY", defaults.gateway).lower(),
            tranzila_terminal_name=os.getenv("TRANZILA_TERMINAL_NAME", defaults.tranzila_terminal_name),
            tranzila_api_url=os.getenv("TRANZILA_API_URL", defaults.tranzila_api_url),
            max_browser_contexts=_env_int("CHECKOUT_MAX_BROWSER_CONTEXTS", defaults.max_browser_contexts),
        )


_settings: CheckoutSettings | None = None


def get_settings() -> CheckoutSettings:
    """Return process-wide settings, loading them from the environment once."""
    global _settings
    if _settings is None:
        _settings = CheckoutSettings.from_env()
    return _settings


def set_settings(settings: CheckoutSettings) -> None:
    """Override settings (useful for tests)."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    global _settings
    _settings = None
