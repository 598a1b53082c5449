"""Pending-order ledger — one slot per browser context.

``put`` overwrites whatever is there: only one redirect payment can be in
flight per browser context, and a stale entry from an abandoned attempt must
not be reconciled against a new payment. ``take_if_present`` reads and
removes in one step, so a replayed return page sees nothing the second time.

A ``SessionStorageError`` never escapes ``take_if_present``. A slot that
cannot be read or decoded is logged and reported as empty, which the
reconciler turns into a "no pending order" result.
"""

from protean.exceptions import ValidationError

from checkout.domain import logger
from checkout.ledger.pending_order import PENDING_ORDER_KEY, PendingOrder
from checkout.ledger.storage import SessionStorage, SessionStorageError


class PendingOrderLedger:
    def __init__(self, storage: SessionStorage, key: str = PENDING_ORDER_KEY) -> None:
        self.storage = storage
        self.key = key

    def put(self, pending_order: PendingOrder) -> None:
        if self.storage.get_item(self.key) is not None:
            logger.info("Overwriting stale pending order", attempt_id=pending_order.attempt_id)
        self.storage.set_item(self.key, pending_order.to_json())

    def take_if_present(self) -> PendingOrder | None:
        try:
            payload = self.storage.get_item(self.key)
        except SessionStorageError:
            logger.exception("Pending order storage could not be read")
            return None

        if payload is None:
            return None

        try:
            self.storage.remove_item(self.key)
        except SessionStorageError:
            logger.exception("Pending order storage could not be cleared")
            return None

        try:
            return PendingOrder.from_json(payload)
        except (ValueError, KeyError, TypeError, ValidationError):
            logger.exception("Pending order entry is corrupt")
            return None

    def discard(self) -> None:
        self.storage.remove_item(self.key)
