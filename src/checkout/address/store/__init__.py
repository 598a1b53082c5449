"""Address store factory.

Provides get_address_store() / set_address_store() to swap implementations:
- AddressBookStore (default) persisting through the AddressBook aggregate
- FakeAddressStore for tests that need failure injection
"""

from checkout.address.store.port import AddressStore

_current_store: AddressStore | None = None


def get_address_store() -> AddressStore:
    """Return the current address store. Defaults to AddressBookStore."""
    global _current_store
    if _current_store is None:
        from checkout.address.store.local_adapter import AddressBookStore

        _current_store = AddressBookStore()
    return _current_store


def set_address_store(store: AddressStore) -> None:
    global _current_store
    _current_store = store


def reset_address_store() -> None:
    global _current_store
    _current_store = None
