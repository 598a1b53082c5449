"""AddressBook aggregate — an owner's saved shipping addresses.

Backs the local address store. The "at most one default" rule is an
invariant of the aggregate, so moving the default flag happens inside a
single change and no reader ever sees two defaults.
"""

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, HasMany, Identifier, String

from checkout.address.address import ShippingAddress
from checkout.address.events import (
    DefaultShippingAddressChanged,
    ShippingAddressAdded,
    ShippingAddressRemoved,
    ShippingAddressUpdated,
)
from checkout.domain import checkout

_EDITABLE_FIELDS = ("name", "address_line1", "address_line2", "city", "state", "postal_code", "country", "phone")


@checkout.entity(part_of="AddressBook")
class SavedAddress:
    name = String(required=True, max_length=255)
    address_line1 = String(required=True, max_length=255)
    address_line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)
    phone = String(max_length=50)
    is_default = Boolean(default=False)

    def to_shipping_address(self) -> ShippingAddress:
        return ShippingAddress(
            id=str(self.id),
            name=self.name,
            address_line1=self.address_line1,
            address_line2=self.address_line2,
            city=self.city,
            state=self.state,
            postal_code=self.postal_code,
            country=self.country,
            phone=self.phone,
            is_default=bool(self.is_default),
        )


@checkout.aggregate
class AddressBook:
    owner_id = Identifier(required=True, unique=True)
    addresses = HasMany(SavedAddress)

    @invariant.post
    def at_most_one_default_address(self):
        defaults = [a for a in self.addresses if a.is_default]
        if len(defaults) > 1:
            raise ValidationError({"addresses": ["Only one address can be marked as default"]})

    def _find(self, address_id):
        address = next((a for a in self.addresses if str(a.id) == str(address_id)), None)
        if address is None:
            raise ValidationError({"addresses": [f"Address {address_id} not found"]})
        return address

    def add_address(self, address: ShippingAddress, force_default=False):
        is_default = bool(address.is_default or force_default)

        with atomic_change(self):
            if is_default:
                for existing in self.addresses:
                    if existing.is_default:
                        existing.is_default = False

            saved = SavedAddress(
                name=address.name,
                address_line1=address.address_line1,
                address_line2=address.address_line2,
                city=address.city,
                state=address.state,
                postal_code=address.postal_code,
                country=address.country,
                phone=address.phone,
                is_default=is_default,
            )
            self.add_addresses(saved)

        self.raise_(
            ShippingAddressAdded(
                address_book_id=str(self.id),
                owner_id=str(self.owner_id),
                address_id=str(saved.id),
                city=address.city,
                country=address.country,
                is_default=is_default,
            )
        )
        return saved

    def update_address(self, address_id, **changes):
        address = self._find(address_id)
        make_default = changes.pop("is_default", None)

        for field, value in changes.items():
            if field not in _EDITABLE_FIELDS:
                raise ValidationError({field: ["Field cannot be updated"]})
            setattr(address, field, value)

        self.raise_(
            ShippingAddressUpdated(
                address_book_id=str(self.id),
                owner_id=str(self.owner_id),
                address_id=str(address_id),
            )
        )

        if make_default:
            self.set_default_address(address_id)
        elif make_default is False:
            address.is_default = False

    def set_default_address(self, address_id):
        address = self._find(address_id)
        previous = next((a for a in self.addresses if a.is_default), None)
        previous_id = str(previous.id) if previous else None

        with atomic_change(self):
            for existing in self.addresses:
                if existing.is_default:
                    existing.is_default = False
            address.is_default = True

        self.raise_(
            DefaultShippingAddressChanged(
                address_book_id=str(self.id),
                owner_id=str(self.owner_id),
                address_id=str(address_id),
                previous_default_address_id=previous_id,
            )
        )

    def remove_address(self, address_id):
        address = self._find(address_id)
        self.remove_addresses(address)

        self.raise_(
            ShippingAddressRemoved(
                address_book_id=str(self.id),
                owner_id=str(self.owner_id),
                address_id=str(address_id),
            )
        )
