"""Checkout domain API package."""

from checkout.api.routes import cart_router, router

__all__ = ["router", "cart_router"]
