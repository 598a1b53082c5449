"""Order service factory.

Provides get_order_service() / set_order_service() to swap implementations:
- LocalOrderService (default) placing orders through the Order aggregate
- FakeOrderService for tests that need to count calls or inject failures
"""

from checkout.order.service.port import OrderService

_current_service: OrderService | None = None


def get_order_service() -> OrderService:
    """Return the current order service. Defaults to LocalOrderService."""
    global _current_service
    if _current_service is None:
        from checkout.order.service.local_adapter import LocalOrderService

        _current_service = LocalOrderService()
    return _current_service


def set_order_service(service: OrderService) -> None:
    global _current_service
    _current_service = service


def reset_order_service() -> None:
    global _current_service
    _current_service = None
