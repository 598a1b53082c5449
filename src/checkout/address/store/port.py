"""Address store port (abstract interface).

Checkout only needs to list, create and update an owner's addresses. Every
adapter is expected to enforce the single-default rule itself as a safety
net; the resolver relies on ``create`` unsetting other defaults when the new
address is the default.
"""

from abc import ABC, abstractmethod

from checkout.address.address import ShippingAddress


class AddressStoreError(Exception):
    """The store could not complete the request (network, validation, storage)."""


class AddressStore(ABC):
    @abstractmethod
    def list(self, owner_id: str) -> list[ShippingAddress]:
        """Return the owner's saved addresses."""
        ...

    @abstractmethod
    def create(self, owner_id: str, address: ShippingAddress) -> str:
        """Save a new address and return its id."""
        ...

    @abstractmethod
    def update(self, owner_id: str, address_id: str, patch: dict) -> None:
        """Apply a partial update. ``is_default=True`` moves the default flag."""
        ...

    def set_default(self, owner_id: str, address_id: str) -> None:
        self.update(owner_id, address_id, {"is_default": True})
