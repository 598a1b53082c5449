"""One ``CartSnapshotProvider`` per cart for the whole process.

Cart editors and checkout flows must share a provider, otherwise a flow's
subscription never sees the edits made through the cart endpoints.
"""

import threading

from checkout.cart.snapshot import CartSnapshotProvider
from checkout.config import get_settings

_providers: dict[str, CartSnapshotProvider] = {}
_lock = threading.Lock()


def get_cart_provider(cart_id: str) -> CartSnapshotProvider:
    """Return the shared provider for a cart, creating it on first use."""
    cart_id = str(cart_id)
    settings = get_settings()
    with _lock:
        provider = _providers.pop(cart_id, None)
        if provider is None:
            provider = CartSnapshotProvider(cart_id, tax_rate=settings.tax_rate)
        _providers[cart_id] = provider
        while len(_providers) > settings.max_browser_contexts:
            del _providers[next(iter(_providers))]
        return provider


def open_cart(owner_id=None, session_id=None) -> CartSnapshotProvider:
    provider = CartSnapshotProvider.create(owner_id=owner_id, session_id=session_id, tax_rate=get_settings().tax_rate)
    with _lock:
        _providers[provider.cart_id] = provider
    return provider


def reset_cart_providers() -> None:
    with _lock:
        _providers.clear()
