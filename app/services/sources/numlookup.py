import logging

from bs4 import BeautifulSoup, Tag

from app.mappers.address_mapper import format_city_state, parse_address_line
from app.mappers.phone import digits_only, format_phone
from app.mappers.text import collapse_ws
from app.schemas.profile import Address, OnlinePresence, Phone, UnifiedProfile
from app.services.html_parser import select_first_matching, text_of
from app.services.sources.base import PhoneSourceScraper

logger = logging.getLogger(__name__)

BASE_URL = "https://www.numlookup.com"

NAME_LABELS = {"name", "firstname", "full_name"}
PHONE_LABELS = {"phone": "unknown", "cell_phone": "cell", "work_phone": "work"}
ADDRESS_LABELS = {"address", "city", "state", "zip"}


def _rows(container: Tag, selectors: tuple[str, ...]) -> list[tuple[str, str]]:
    """(label, value) pairs of the labelled rows, skipping incomplete ones."""
    pairs = []
    for row in select_first_matching(container, selectors):
        label = text_of(row.select_one(".h6"))
        value = collapse_ws(text_of(row.select_one(".col-sm-9")))
        if label and value:
            pairs.append((label, value))
    return pairs


class _Draft:
    def __init__(self, name: str):
        self.name = name
        self.age: str | None = None
        self.phones: list[Phone] = []
        self.addresses: list[Address] = []
        self.address_parts: dict[str, str] = {}

    def add_phone(self, number: str, type: str) -> None:
        if all(p.number != number for p in self.phones):
            self.phones.append(Phone(number=number, type=type))

    def add_address(self, address: Address) -> None:
        if all(a.address_line != address.address_line for a in self.addresses):
            self.addresses.append(address)

    def close_address(self) -> None:
        """Turn the collected address/city/state/zip rows into one Address."""
        parts, self.address_parts = self.address_parts, {}
        if not parts:
            return
        city, state, zip_code = parts.get("city"), parts.get("state"), parts.get("zip")
        tail = " ".join(p for p in (city, state, zip_code) if p)
        line = parts.get("address", "")
        if not line:
            line = tail
        elif tail and tail not in line:
            line = f"{line}, {tail}"
        if line:
            self.add_address(
                Address(address_line=line, city=city, state=state, zip=zip_code, kind="current")
            )


class LabelledRowAccumulator:
    """Fold a flat run of labelled rows into one draft per person.

    A name row for a different value than the person in progress closes that
    person and opens a new one. Repeated phone/address rows append.
    """

    def __init__(self):
        self._drafts: list[_Draft] = []
        self._current: _Draft | None = None

    def feed(self, label: str, value: str) -> None:
        label = label.strip().lower()
        current = self._current

        if label in NAME_LABELS:
            if current is None or current.name != value:
                self._flush()
                self._current = _Draft(value)
            return
        if label == "lastname":
            if current is None:
                self._current = _Draft(value)
            elif value.lower() not in current.name.lower():
                current.name = f"{current.name} {value}".strip()
            return
        if current is None:
            logger.debug("Numlookup: %s row before any name, skipped", label)
            return

        if label in PHONE_LABELS:
            current.add_phone(format_phone(value), PHONE_LABELS[label])
        elif label == "birthday":
            current.age = value
        elif label in ADDRESS_LABELS:
            current.address_parts[label] = value
            if label == "zip":
                current.close_address()

    def _flush(self) -> None:
        draft, self._current = self._current, None
        if draft is None:
            return
        draft.close_address()
        for existing in self._drafts:
            if existing.name == draft.name:
                for phone in draft.phones:
                    existing.add_phone(phone.number, phone.type or "unknown")
                for address in draft.addresses:
                    existing.add_address(address)
                existing.age = existing.age or draft.age
                return
        self._drafts.append(draft)

    def finish(self) -> list[_Draft]:
        self._flush()
        drafts, self._drafts = self._drafts, []
        return drafts


class NumlookupScraper(PhoneSourceScraper):
    name = "Numlookup"

    def build_url(self, phone: str) -> str:
        return f"{BASE_URL}/report?phone={digits_only(phone)}"

    async def scrape(self, phone: str) -> list[UnifiedProfile]:
        doc = await self._fetch_doc(self.build_url(phone))
        if doc is None:
            return []
        return self.parse_report(doc, phone)

    def parse_report(self, doc: BeautifulSoup, phone: str) -> list[UnifiedProfile]:
        profiles: list[UnifiedProfile] = []

        owner = self._try_record("owner block", lambda: self._owner(doc, phone))
        if owner is not None:
            profiles.append(owner)

        for card in doc.select(".card"):
            title = text_of(card.select_one(".card-header .card-title")).lower()
            if "% match" not in title:
                continue
            offset = len(profiles)
            if "another possible" in title:
                profile = self._try_record("possible match", lambda: self._possible_match(card, offset))
                if profile is not None:
                    profiles.append(profile)
            elif "more matches" in title:
                profiles.extend(self._more_matches(card, offset))

        logger.info("Numlookup: extracted %d profiles", len(profiles))
        return profiles

    def _owner(self, doc: BeautifulSoup, phone: str) -> UnifiedProfile | None:
        name = collapse_ws(text_of(doc.select_one(".card-basic-info .ownername-block .text-dark a")))
        if not name:
            return None
        owner = UnifiedProfile(id="numlookup-owner", name=name, source=self.name)
        owner.add_phone(format_phone(phone), type="searched", is_primary=True)

        social = doc.select_one(".social-card")
        if social is not None and "Facebook Profile" in social.get_text(" "):
            owner.online_presence.append(
                OnlinePresence(platform="Facebook", match_reason="Profile Found (Link Hidden)")
            )
        return owner

    def _possible_match(self, card: Tag, index: int) -> UnifiedProfile | None:
        fields: dict[str, str] = {}
        for label, value in _rows(card, (".row.mb-2",)):
            fields.setdefault(label, value)
        if not fields.get("Name"):
            return None
        profile = UnifiedProfile(
            id=f"numlookup-match-{index}",
            name=fields["Name"],
            age=fields.get("Birth Month"),
            source=self.name,
        )
        if fields.get("Address"):
            profile.add_address(parse_address_line(fields["Address"], "current"))
        return profile

    def _more_matches(self, card: Tag, offset: int) -> list[UnifiedProfile]:
        accumulator = LabelledRowAccumulator()
        for label, value in _rows(card, (".card-body > div > .row.mb-2", ".row.mb-2")):
            accumulator.feed(label, value)

        def build(i: int, draft: _Draft) -> UnifiedProfile:
            return UnifiedProfile(
                id=f"numlookup-match-{offset + i}",
                name=draft.name,
                age=draft.age,
                location_summary=format_city_state(draft.addresses[0]) if draft.addresses else None,
                phones=draft.phones,
                addresses=draft.addresses,
                source=self.name,
            )

        return self._collect(accumulator.finish(), build)
