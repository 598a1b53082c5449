"""Address book management — commands and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from checkout.address.address import ShippingAddress
from checkout.address.book import AddressBook
from checkout.domain import checkout


def find_address_book(owner_id):
    """Return the owner's AddressBook, or None if they never saved an address."""
    books = current_domain.repository_for(AddressBook)._dao.query.filter(owner_id=str(owner_id)).all().items
    return books[0] if books else None


@checkout.command(part_of="AddressBook")
class SaveShippingAddress:
    """Add an address to the owner's book, creating the book on first use."""

    owner_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    address_line1 = String(required=True, max_length=255)
    address_line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)
    phone = String(max_length=50)
    is_default = Boolean(default=False)
    force_default = Boolean(default=False)


@checkout.command(part_of="AddressBook")
class UpdateShippingAddress:
    owner_id = Identifier(required=True)
    address_id = Identifier(required=True)
    name = String(max_length=255)
    address_line1 = String(max_length=255)
    address_line2 = String(max_length=255)
    city = String(max_length=100)
    state = String(max_length=100)
    postal_code = String(max_length=20)
    country = String(max_length=100)
    phone = String(max_length=50)
    is_default = Boolean()


@checkout.command(part_of="AddressBook")
class SetDefaultShippingAddress:
    owner_id = Identifier(required=True)
    address_id = Identifier(required=True)


@checkout.command(part_of="AddressBook")
class RemoveShippingAddress:
    owner_id = Identifier(required=True)
    address_id = Identifier(required=True)


@checkout.command_handler(part_of=AddressBook)
class ManageAddressBookHandler:
    @handle(SaveShippingAddress)
    def save_address(self, command):
        repo = current_domain.repository_for(AddressBook)
        book = find_address_book(command.owner_id) or AddressBook(owner_id=command.owner_id)

        saved = book.add_address(
            ShippingAddress(
                name=command.name,
                address_line1=command.address_line1,
                address_line2=command.address_line2,
                city=command.city,
                state=command.state,
                postal_code=command.postal_code,
                country=command.country,
                phone=command.phone,
                is_default=bool(command.is_default),
            ),
            force_default=bool(command.force_default),
        )
        repo.add(book)
        return str(saved.id)

    @handle(UpdateShippingAddress)
    def update_address(self, command):
        book = _require_book(command.owner_id)
        changes = {}
        for field in ("name", "address_line1", "address_line2", "city", "state", "postal_code", "country", "phone"):
            value = getattr(command, field, None)
            if value is not None:
                changes[field] = value
        if command.is_default is not None:
            changes["is_default"] = command.is_default

        book.update_address(command.address_id, **changes)
        current_domain.repository_for(AddressBook).add(book)

    @handle(SetDefaultShippingAddress)
    def set_default_address(self, command):
        book = _require_book(command.owner_id)
        book.set_default_address(command.address_id)
        current_domain.repository_for(AddressBook).add(book)

    @handle(RemoveShippingAddress)
    def remove_address(self, command):
        book = _require_book(command.owner_id)
        book.remove_address(command.address_id)
        current_domain.repository_for(AddressBook).add(book)


def _require_book(owner_id):
    book = find_address_book(owner_id)
    if book is None:
        raise ObjectNotFoundError(f"No address book for owner {owner_id}")
    return book
