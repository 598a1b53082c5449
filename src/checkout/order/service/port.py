"""Order Service port (abstract interface).

``create`` must be idempotent per transaction reference: the return page may
be replayed after the gateway already charged the shopper.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from checkout.ledger.pending_order import PendingOrder


@dataclass(frozen=True)
class OrderPayload:
    """A pending order plus what the payment produced."""

    pending_order: PendingOrder
    transaction_reference: str | None = None
    payment_token: str | None = None

    @property
    def idempotency_key(self) -> str:
        return self.pending_order.attempt_id

    def to_dict(self) -> dict:
        data = self.pending_order.to_dict()
        data["transaction_reference"] = self.transaction_reference
        data["idempotency_key"] = self.idempotency_key
        return data


class OrderService(ABC):
    @abstractmethod
    def create(self, payload: OrderPayload) -> str:
        """Record the order and return its id.

        Raises:
            OrderCreationError: the order could not be recorded.
        """
        ...
