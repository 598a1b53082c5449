"""Browser-context storage port.

The ledger only needs string get/set/remove on a small key space, the way a
browser's session storage behaves. ``SessionStorageRegistry`` hands out one
storage per browser context id so the checkout page and the return page of
the same shopper share a slot.
"""

import threading
from abc import ABC, abstractmethod


class SessionStorageError(Exception):
    """The underlying storage could not be read or written."""


class SessionStorage(ABC):
    @abstractmethod
    def get_item(self, key: str) -> str | None: ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None: ...

    @abstractmethod
    def remove_item(self, key: str) -> None: ...


class InMemorySessionStorage(SessionStorage):
    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def __len__(self) -> int:
        return len(self._items)


class SessionStorageRegistry:
    """One storage per browser context, least recently used evicted past ``capacity``."""

    def __init__(self, factory=InMemorySessionStorage, capacity: int | None = None) -> None:
        self._factory = factory
        self.capacity = capacity
        self._storages: dict[str, SessionStorage] = {}
        self._lock = threading.Lock()

    def for_context(self, context_id: str) -> SessionStorage:
        with self._lock:
            storage = self._storages.pop(context_id, None)
            if storage is None:
                storage = self._factory()
            self._storages[context_id] = storage
            if self.capacity is not None:
                while len(self._storages) > self.capacity:
                    del self._storages[next(iter(self._storages))]
            return storage

    def __len__(self) -> int:
        return len(self._storages)

    def forget(self, context_id: str) -> None:
        with self._lock:
            self._storages.pop(context_id, None)

    def clear(self) -> None:
        with self._lock:
            self._storages.clear()
