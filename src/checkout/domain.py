"""Checkout bounded context — cart snapshot, shipping address, payment and reconciliation.

Turns a cart into a confirmed order. Card payments complete synchronously
with a gateway token; redirect-based methods hand off to the gateway and
finish when the browser comes back with the gateway's result.
"""

from protean.domain import Domain

from checkout.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

checkout = Domain(name="checkout")
