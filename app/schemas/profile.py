from typing import Literal

from pydantic import BaseModel, Field, field_validator

AddressKind = Literal["current", "past", "unspecified"]


class Phone(BaseModel):
    number: str
    type: str | None = None  # "cell" | "work" | "previous" | "searched" | "unknown"
    is_primary: bool | None = None


class Email(BaseModel):
    email: str  # often partially obfuscated by the source
    type: str | None = None


class Address(BaseModel):
    address_line: str
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    kind: AddressKind = "unspecified"


class Relative(BaseModel):
    name: str
    relationship: str | None = None
    age: str | None = None


class Job(BaseModel):
    company: str
    title: str | None = None
    location: str | None = None


class Education(BaseModel):
    school: str
    degree: str | None = None
    dates: str | None = None


class OnlinePresence(BaseModel):
    platform: str
    handle: str | None = None
    match_reason: str | None = None


class FamilyRecord(BaseModel):
    name: str
    age: str | None = None


class UnifiedProfile(BaseModel):
    """One person as rendered by one source, normalized to a common shape."""

    id: str
    name: str
    age: str | None = None
    location_summary: str | None = None
    phone_snippet: str | None = None  # masked primary phone for list views
    detail_link: str | None = None
    source: str = Field(frozen=True)

    phones: list[Phone] = []
    emails: list[Email] = []
    addresses: list[Address] = []
    relatives: list[Relative] = []
    aliases: list[str] = []
    jobs: list[Job] = []
    education: list[Education] = []
    online_presence: list[OnlinePresence] = []
    family_records: list[FamilyRecord] = []

    # Presence-only flags, deep content is not reliably extractable
    legal_records: list[str] = []
    background_records: list[str] = []
    professional_records: list[str] = []
    assets: list[str] = []

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be empty")
        return value

    def add_phone(self, number: str, type: str | None = None, is_primary: bool | None = None) -> bool:
        """Append a phone unless the exact number is already present."""
        number = number.strip()
        if not number or any(p.number == number for p in self.phones):
            return False
        self.phones.append(Phone(number=number, type=type, is_primary=is_primary))
        return True

    def add_address(self, address: Address) -> bool:
        """Append an address unless the same line is already present."""
        if any(a.address_line == address.address_line for a in self.addresses):
            return False
        self.addresses.append(address)
        return True
