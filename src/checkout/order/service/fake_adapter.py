"""Fake order service for development and testing.

Records every payload it receives and deduplicates by transaction reference
and idempotency key like the real one. Can be switched to fail.
"""

from uuid import uuid4

from checkout.errors import OrderCreationError
from checkout.order.service.port import OrderPayload, OrderService


class FakeOrderService(OrderService):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Order service unavailable"
        self.calls: list[OrderPayload] = []
        self.orders: dict[str, OrderPayload] = {}
        self._by_key: dict[str, str] = {}

    def configure(self, should_succeed: bool = True, failure_reason: str = "Order service unavailable") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create(self, payload: OrderPayload) -> str:
        self.calls.append(payload)
        if not self.should_succeed:
            raise OrderCreationError(self.failure_reason)

        for key in (payload.transaction_reference, payload.idempotency_key):
            if key and key in self._by_key:
                return self._by_key[key]

        order_id = f"ord_{uuid4().hex[:12]}"
        self.orders[order_id] = payload
        self._by_key[payload.idempotency_key] = order_id
        if payload.transaction_reference:
            self._by_key[payload.transaction_reference] = order_id
        return order_id
