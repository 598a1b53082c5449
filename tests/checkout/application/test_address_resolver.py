"""Tests for saving shipping addresses with retry."""

import pytest
from protean.exceptions import ValidationError

from checkout.address.address import ShippingAddress
from checkout.address.resolver import AddressResolver
from checkout.address.store.fake_adapter import FakeAddressStore
from checkout.address.store.local_adapter import AddressBookStore
from checkout.errors import AddressSaveError


def _resolver(store, attempts=3, delay=1.0):
    sleeps = []
    resolver = AddressResolver(store, attempts=attempts, delay=delay, sleep=sleeps.append)
    return resolver, sleeps


def _creates(store):
    return [c for c in store.calls if c["method"] == "create"]


class TestSaveWithRetry:
    def test_first_attempt_success(self, draft_address):
        store = FakeAddressStore()
        resolver, sleeps = _resolver(store)

        address_id = resolver.save_with_retry("cust-001", draft_address, is_first_address_for_owner=False)

        assert address_id.startswith("addr_")
        assert len(_creates(store)) == 1
        assert sleeps == []

    def test_fails_twice_then_succeeds_after_three_attempts(self, draft_address):
        store = FakeAddressStore()
        store.fail_next(2)
        resolver, sleeps = _resolver(store)

        address_id = resolver.save_with_retry("cust-001", draft_address, is_first_address_for_owner=False)

        assert address_id
        assert len(_creates(store)) == 3
        assert sleeps == [1.0, 1.0]

    def test_always_failing_store_stops_after_three_attempts(self, draft_address):
        store = FakeAddressStore()
        store.fail_next(10, reason="Address service timed out")
        resolver, sleeps = _resolver(store)

        with pytest.raises(AddressSaveError) as exc:
            resolver.save_with_retry("cust-001", draft_address, is_first_address_for_owner=False)

        assert len(_creates(store)) == 3
        assert sleeps == [1.0, 1.0]
        assert exc.value.attempts == 3
        assert exc.value.reason == "Address service timed out"

    def test_invalid_draft_makes_no_attempt(self, draft_address):
        store = FakeAddressStore()
        resolver, _ = _resolver(store)
        draft = ShippingAddress.from_dict({**draft_address.to_dict(), "postal_code": ""})

        with pytest.raises(ValidationError):
            resolver.save_with_retry("cust-001", draft, is_first_address_for_owner=False)

        assert _creates(store) == []

    def test_first_address_is_forced_default(self, draft_address):
        store = FakeAddressStore()
        resolver, _ = _resolver(store)

        resolver.save_with_retry("cust-001", draft_address, is_first_address_for_owner=True)

        assert store.list("cust-001")[0].is_default is True

    def test_later_address_honors_draft_flag(self, draft_address):
        store = FakeAddressStore()
        resolver, _ = _resolver(store)
        resolver.save_with_retry("cust-001", draft_address, is_first_address_for_owner=True)

        resolver.save_with_retry("cust-001", draft_address, is_first_address_for_owner=False)
        resolver.save_with_retry("cust-001", draft_address.with_default(True), is_first_address_for_owner=False)

        flags = [a.is_default for a in store.list("cust-001")]
        assert flags == [False, False, True]

    def test_against_address_book(self, draft_address):
        resolver, _ = _resolver(AddressBookStore())
        address_id = resolver.save_with_retry("cust-009", draft_address, is_first_address_for_owner=True)
        addresses = resolver.list_addresses("cust-009")
        assert addresses[0].id == address_id
        assert resolver.select_default(addresses) == 0

    def test_attempts_must_be_positive(self):
        with pytest.raises(ValueError):
            AddressResolver(FakeAddressStore(), attempts=0)
