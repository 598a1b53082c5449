"""Address store backed by the AddressBook aggregate in this domain."""

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from checkout.address.address import ShippingAddress
from checkout.address.management import (
    SaveShippingAddress,
    SetDefaultShippingAddress,
    UpdateShippingAddress,
    find_address_book,
)
from checkout.address.store.port import AddressStore, AddressStoreError
from checkout.errors import format_validation_messages


class AddressBookStore(AddressStore):
    def list(self, owner_id: str) -> list[ShippingAddress]:
        book = find_address_book(owner_id)
        if book is None:
            return []
        return [address.to_shipping_address() for address in book.addresses]

    def create(self, owner_id: str, address: ShippingAddress) -> str:
        try:
            return current_domain.process(
                SaveShippingAddress(
                    owner_id=owner_id,
                    name=address.name,
                    address_line1=address.address_line1,
                    address_line2=address.address_line2,
                    city=address.city,
                    state=address.state,
                    postal_code=address.postal_code,
                    country=address.country,
                    phone=address.phone,
                    is_default=address.is_default,
                ),
                asynchronous=False,
            )
        except ValidationError as exc:
            raise AddressStoreError(format_validation_messages(exc)) from exc

    def update(self, owner_id: str, address_id: str, patch: dict) -> None:
        try:
            current_domain.process(
                UpdateShippingAddress(owner_id=owner_id, address_id=address_id, **patch),
                asynchronous=False,
            )
        except ValidationError as exc:
            raise AddressStoreError(format_validation_messages(exc)) from exc
        except ObjectNotFoundError as exc:
            raise AddressStoreError(str(exc)) from exc

    def set_default(self, owner_id: str, address_id: str) -> None:
        try:
            current_domain.process(
                SetDefaultShippingAddress(owner_id=owner_id, address_id=address_id),
                asynchronous=False,
            )
        except (ValidationError, ObjectNotFoundError) as exc:
            raise AddressStoreError(str(exc)) from exc
