"""In-memory address store for development and testing.

Can be told to fail the next N calls, which is how the save-with-retry
policy is exercised without a network.
"""

from uuid import uuid4

from checkout.address.address import ShippingAddress
from checkout.address.store.port import AddressStore, AddressStoreError


class FakeAddressStore(AddressStore):
    def __init__(self) -> None:
        self._addresses: dict[str, list[ShippingAddress]] = {}
        self.pending_failures: int = 0
        self.failure_reason: str = "Address service unavailable"
        self.calls: list[dict] = []

    def fail_next(self, count: int, reason: str = "Address service unavailable") -> None:
        self.pending_failures = count
        self.failure_reason = reason

    def _maybe_fail(self) -> None:
        if self.pending_failures > 0:
            self.pending_failures -= 1
            raise AddressStoreError(self.failure_reason)

    def list(self, owner_id: str) -> list[ShippingAddress]:
        self.calls.append({"method": "list", "owner_id": owner_id})
        self._maybe_fail()
        return list(self._addresses.get(owner_id, []))

    def create(self, owner_id: str, address: ShippingAddress) -> str:
        self.calls.append({"method": "create", "owner_id": owner_id, "is_default": address.is_default})
        self._maybe_fail()

        address_id = f"addr_{uuid4().hex[:12]}"
        existing = self._addresses.get(owner_id, [])
        if address.is_default:
            existing = [a.with_default(False) for a in existing]
        self._addresses[owner_id] = existing + [address.with_id(address_id)]
        return address_id

    def update(self, owner_id: str, address_id: str, patch: dict) -> None:
        self.calls.append({"method": "update", "owner_id": owner_id, "address_id": address_id, "patch": dict(patch)})
        self._maybe_fail()

        existing = self._addresses.get(owner_id, [])
        if not any(a.id == address_id for a in existing):
            raise AddressStoreError(f"Address {address_id} not found")

        updated = []
        for address in existing:
            if address.id == address_id:
                data = address.to_dict()
                data.update(patch)
                address = ShippingAddress.from_dict(data)
            elif patch.get("is_default"):
                address = address.with_default(False)
            updated.append(address)
        self._addresses[owner_id] = updated
