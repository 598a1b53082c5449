"""Shipping address value used throughout checkout, plus pure helpers."""

from dataclasses import asdict, dataclass, replace

from protean.exceptions import ValidationError

REQUIRED_FIELDS = ("name", "address_line1", "city", "state", "postal_code", "country")


@dataclass(frozen=True)
class ShippingAddress:
    """A delivery address. ``id`` is None until the address store has saved it."""

    name: str
    address_line1: str
    city: str
    state: str
    postal_code: str
    country: str
    address_line2: str | None = None
    phone: str | None = None
    is_default: bool = False
    id: str | None = None

    @property
    def is_draft(self) -> bool:
        return self.id is None

    def with_id(self, address_id: str) -> "ShippingAddress":
        return replace(self, id=str(address_id))

    def with_default(self, is_default: bool) -> "ShippingAddress":
        return replace(self, is_default=is_default)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ShippingAddress":
        return cls(
            name=data.get("name") or "",
            address_line1=data.get("address_line1") or "",
            address_line2=data.get("address_line2"),
            city=data.get("city") or "",
            state=data.get("state") or "",
            postal_code=data.get("postal_code") or "",
            country=data.get("country") or "",
            phone=data.get("phone"),
            is_default=bool(data.get("is_default", False)),
            id=data.get("id"),
        )


def validate_draft(address: ShippingAddress) -> None:
    """Raise ValidationError naming every required field that is blank."""
    errors = {}
    for field in REQUIRED_FIELDS:
        value = getattr(address, field, None)
        if value is None or not str(value).strip():
            errors[field] = ["is required"]
    if errors:
        raise ValidationError(errors)


def select_default(addresses) -> int | None:
    """Index of the address flagged default, or None when there is none."""
    for index, address in enumerate(addresses):
        if address.is_default:
            return index
    return None
