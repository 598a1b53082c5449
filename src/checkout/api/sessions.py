"""Per-browser state kept by the API process.

A browser context is identified by the ``checkout_context`` cookie. It owns
the session storage the ledger writes to, and remembers the pending order of
its last declined redirect payment so the shopper can pick another method.
Checkout flows are kept by id while the shopper is still on the page: once a
flow completes, stops on an empty cart or hands off to the gateway it is
dropped. Every map is bounded by ``max_browser_contexts``, oldest first.
"""

import threading

from protean.exceptions import ObjectNotFoundError

from checkout.config import get_settings
from checkout.flow.machine import CheckoutFlow, CheckoutStatus
from checkout.ledger.pending_order import PendingOrder
from checkout.ledger.storage import SessionStorageRegistry

CONTEXT_COOKIE = "checkout_context"

_SETTLED = {CheckoutStatus.COMPLETED, CheckoutStatus.EMPTY_CART, CheckoutStatus.REDIRECT_PENDING}

_storages: SessionStorageRegistry | None = None
_flows: dict[str, CheckoutFlow] = {}
_declined: dict[str, PendingOrder] = {}
_lock = threading.Lock()


def get_storages() -> SessionStorageRegistry:
    global _storages
    with _lock:
        if _storages is None:
            _storages = SessionStorageRegistry(capacity=get_settings().max_browser_contexts)
        return _storages


def _bounded_put(mapping: dict, key: str, value) -> list:
    """Insert as most recent and return whatever had to be evicted."""
    mapping.pop(key, None)
    mapping[key] = value
    evicted = []
    while len(mapping) > get_settings().max_browser_contexts:
        evicted.append(mapping.pop(next(iter(mapping))))
    return evicted


def remember_flow(flow: CheckoutFlow) -> None:
    with _lock:
        evicted = _bounded_put(_flows, flow.checkout_id, flow)
    for stale in evicted:
        stale.detach()


def settle(flow: CheckoutFlow) -> None:
    """Forget a flow the shopper can no longer act on."""
    if flow.status not in _SETTLED:
        return
    with _lock:
        _flows.pop(flow.checkout_id, None)
    flow.detach()


def get_flow(checkout_id: str) -> CheckoutFlow:
    with _lock:
        flow = _flows.get(checkout_id)
    if flow is None:
        raise ObjectNotFoundError(f"Checkout {checkout_id} does not exist")
    return flow


def flow_count() -> int:
    with _lock:
        return len(_flows)


def remember_decline(context_id: str, pending_order: PendingOrder) -> None:
    with _lock:
        _bounded_put(_declined, context_id, pending_order)


def take_decline(context_id: str) -> PendingOrder | None:
    with _lock:
        return _declined.pop(context_id, None)


def discard_decline(context_id: str) -> bool:
    """Abandon the declined payment; returns whether there was one."""
    with _lock:
        return _declined.pop(context_id, None) is not None


def reset_sessions() -> None:
    global _storages
    with _lock:
        flows = list(_flows.values())
        _flows.clear()
        _declined.clear()
        _storages = None
    for flow in flows:
        flow.detach()
