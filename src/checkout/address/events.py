"""Domain events for the AddressBook aggregate."""

from protean.fields import Boolean, Identifier, String

from checkout.domain import checkout


@checkout.event(part_of="AddressBook")
class ShippingAddressAdded:
    __version__ = 1

    address_book_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    address_id = Identifier(required=True)
    city = String(max_length=100)
    country = String(max_length=100)
    is_default = Boolean(default=False)


@checkout.event(part_of="AddressBook")
class ShippingAddressUpdated:
    __version__ = 1

    address_book_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    address_id = Identifier(required=True)


@checkout.event(part_of="AddressBook")
class DefaultShippingAddressChanged:
    """The owner's default address moved; at most one address is ever default."""

    __version__ = 1

    address_book_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    address_id = Identifier(required=True)
    previous_default_address_id = Identifier()


@checkout.event(part_of="AddressBook")
class ShippingAddressRemoved:
    __version__ = 1

    address_book_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    address_id = Identifier(required=True)
