from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class CustomerContact:
    """Who is paying: passed to the gateway and stored with the order."""

    name: str
    email: str
    phone: str

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "CustomerContact":
        return cls(name=data["name"], email=data["email"], phone=data["phone"])

    def missing_fields(self) -> list[str]:
        return [field for field in ("name", "email", "phone") if not getattr(self, field)]
