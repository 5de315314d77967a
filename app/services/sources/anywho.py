import logging
import re

from bs4 import BeautifulSoup, Tag

from app.mappers.address_mapper import parse_address_line
from app.mappers.locality import state_slug
from app.mappers.phone import PHONE_RE, mask_phone
from app.mappers.text import collapse_ws, slugify_name, split_names
from app.schemas.profile import Email, FamilyRecord, OnlinePresence, Relative, UnifiedProfile
from app.schemas.search import NameQuery
from app.services.html_parser import (
    absolute_url,
    find_labelled_text,
    find_section,
    select_first_matching,
    select_one_of,
    text_of,
)
from app.services.sources.base import NameSourceScraper

logger = logging.getLogger(__name__)

BASE_URL = "https://www.anywho.com"

_CARD_MARKER = "Lives in:"
_MAX_CARD_DEPTH = 5
_AGE_RE = re.compile(r"Age:?\s*(\d+)")
_NAME_AGE_RE = re.compile(r"^(.+?),\s*(\d+)$")
_EMAIL_RE = re.compile(r"[\w.*%+\-]+@[\w\-]+(?:\.[\w\-]+)+")
_RELATIVE_NAME_RE = re.compile(r"^([^•]+?)(?:Female|Male|•|$)")
_RELATIVE_AGE_RE = re.compile(r"•\s*(\d+)")

# Card labels, in the order AnyWho renders them; each one ends the previous field
_STOPS = (
    "Used to live",
    "Phone number(s)",
    "Email",
    "May be related to",
    "Related to",
    "AKA",
    "Lives in",
    "View Details",
)


def _stops_except(*labels: str) -> tuple[str, ...]:
    return tuple(s for s in _STOPS if s not in labels)


class AnyWhoScraper(NameSourceScraper):
    name = "AnyWho"

    def build_url(self, query: NameQuery) -> str:
        url = f"{BASE_URL}/people/{slugify_name(query.first_name)}+{slugify_name(query.last_name)}"
        if query.state:
            url += f"/{state_slug(query.state)}"
            if query.city:
                url += f"/{slugify_name(query.city)}"
        return url

    async def scrape(self, query: NameQuery) -> list[UnifiedProfile]:
        doc = await self._fetch_doc(self.build_url(query))
        if doc is None:
            return []
        return self.parse_results(doc, query)

    # --- Search results ---

    def _find_cards(self, doc: BeautifulSoup, query: NameQuery) -> list[tuple[Tag, Tag]]:
        """Pair each name heading with the nearest ancestor holding "Lives in:"."""
        first, last = query.first_name.lower(), query.last_name.lower()
        cards: list[tuple[Tag, Tag]] = []
        seen: set[int] = set()
        for h2 in doc.find_all("h2"):
            heading = text_of(h2).lower()
            if first not in heading and last not in heading:
                continue
            parent = h2.parent
            depth = 0
            while parent is not None and depth < _MAX_CARD_DEPTH:
                if _CARD_MARKER in parent.get_text():
                    if id(parent) not in seen:
                        seen.add(id(parent))
                        cards.append((parent, h2))
                    break
                parent = parent.parent
                depth += 1
        return cards

    def parse_results(self, doc: BeautifulSoup, query: NameQuery) -> list[UnifiedProfile]:
        def build(index: int, item: tuple[Tag, Tag]) -> UnifiedProfile:
            card, heading = item
            return self._parse_card(index, card, heading, query)

        return self._collect(self._find_cards(doc, query), build)

    def _parse_card(self, index: int, card: Tag, heading: Tag, query: NameQuery) -> UnifiedProfile:
        text = card.get_text("\n")
        age_match = _AGE_RE.search(text)

        profile = UnifiedProfile(
            id=f"aw-{index}",
            name=collapse_ws(text_of(heading)) or query.full_name,
            age=age_match.group(1) if age_match else None,
            source=self.name,
        )

        lives_in = find_labelled_text(text, "Lives in", _stops_except("Lives in"))
        if lives_in:
            line = collapse_ws(lives_in.splitlines()[0])
            profile.location_summary = line
            profile.add_address(parse_address_line(line, "current"))

        used_to_live = find_labelled_text(text, "Used to live in", _stops_except("Used to live"))
        if used_to_live:
            for entry in re.split(r"[•\n]", used_to_live):
                if entry.strip():
                    profile.add_address(parse_address_line(entry, "past"))

        phones_text = find_labelled_text(text, "Phone number(s)", _stops_except("Phone number(s)"))
        if phones_text:
            for i, match in enumerate(PHONE_RE.findall(phones_text)):
                profile.add_phone(match, type="unknown", is_primary=i == 0)
        if profile.phones:
            profile.phone_snippet = mask_phone(profile.phones[0].number)

        aka = find_labelled_text(text, "AKA", _stops_except("AKA"))
        if aka:
            profile.aliases = [a for a in split_names(aka) if a != profile.name]

        related = find_labelled_text(text, "May be related to", _stops_except("May be related to", "Related to"))
        if related is None:
            related = find_labelled_text(text, "Related to", _stops_except("Related to", "May be related to"))
        if related:
            profile.relatives = [
                Relative(name=name, relationship="Possible Relative") for name in split_names(related)
            ]

        for link in card.find_all("a", href=True):
            if "View Details" in text_of(link):
                profile.detail_link = absolute_url(BASE_URL, link["href"])
                break

        return profile

    # --- Detail page ---

    async def scrape_details(self, url: str) -> UnifiedProfile | None:
        logger.info("AnyWho: scraping details from %s", url)
        doc = await self._fetch_doc(url)
        if doc is None:
            return None
        return self.parse_details(doc, url)

    def parse_details(self, doc: BeautifulSoup, url: str) -> UnifiedProfile | None:
        header = collapse_ws(text_of(select_one_of(doc, ("h1", ".profile-name"))))
        if not header:
            logger.info("AnyWho: no name on detail page %s", url)
            return None

        name, age = header, None
        if match := _NAME_AGE_RE.match(header):
            name, age = match.group(1), match.group(2)
        elif match := _AGE_RE.search(doc.get_text(" ")):
            age = match.group(1)

        profile = UnifiedProfile(id="details", name=name, age=age, detail_link=url, source=self.name)

        self._detail_phones(doc, profile)
        self._detail_emails(doc, profile)
        self._detail_addresses(doc, profile)
        self._detail_social(doc, profile)
        self._detail_family(doc, profile)

        if find_section(doc, "court-records", "Criminal") is not None:
            profile.legal_records.append("Found Criminal/Traffic Records")
        if find_section(doc, "personal-history", "Background") is not None:
            profile.background_records.append("Found Background Info")

        return profile

    def _detail_phones(self, doc: BeautifulSoup, profile: UnifiedProfile) -> None:
        section = find_section(doc, "phones", "Phone Numbers")
        if section is None:
            return
        for item in select_first_matching(section, (".phone-item", "li", "div")):
            for match in PHONE_RE.findall(text_of(item, " ")):
                profile.add_phone(match, type="unknown", is_primary=not profile.phones)
        if profile.phones:
            profile.phone_snippet = mask_phone(profile.phones[0].number)

    def _detail_emails(self, doc: BeautifulSoup, profile: UnifiedProfile) -> None:
        section = find_section(doc, "emails", "Email Addresses")
        if section is None:
            return
        seen = {e.email for e in profile.emails}
        for item in select_first_matching(section, ("li", "div")):
            for email in _EMAIL_RE.findall(text_of(item, " ")):
                if email not in seen:
                    seen.add(email)
                    profile.emails.append(Email(email=email, type="unknown"))

    def _detail_addresses(self, doc: BeautifulSoup, profile: UnifiedProfile) -> None:
        section = find_section(doc, "addresses", "Address History")
        if section is None:
            return
        for item in select_first_matching(section, (".address-item", "li", "div")):
            text = collapse_ws(text_of(item, " "))
            if len(text) > 10 and any(c.isdigit() for c in text):
                kind = "current" if not profile.addresses else "past"
                profile.add_address(parse_address_line(text, kind))

    def _detail_social(self, doc: BeautifulSoup, profile: UnifiedProfile) -> None:
        section = find_section(doc, "social-media", "Social Media")
        if section is None:
            return
        seen: set[tuple[str, str]] = set()
        for item in select_first_matching(section, ("li", "div")):
            text = collapse_ws(text_of(item, " "))
            if "Matched by" not in text:
                continue
            platform, sep, reason = text.partition("-")
            platform, reason = platform.strip(), reason.strip()
            if not sep or len(platform) >= 20 or "Matched" in platform:
                platform, reason = "Unknown", text
            if (platform, reason) not in seen:
                seen.add((platform, reason))
                profile.online_presence.append(OnlinePresence(platform=platform, match_reason=reason))

    def _detail_family(self, doc: BeautifulSoup, profile: UnifiedProfile) -> None:
        section = find_section(doc, "family", "Possible Relatives")
        if section is None:
            return
        seen: set[str] = set()
        for item in select_first_matching(section, ("li", "div")):
            text = collapse_ws(text_of(item, " "))
            if "Relative data result:" not in text:
                continue
            text = text.split("Relative data result:", 1)[1].strip()
            name_match = _RELATIVE_NAME_RE.match(text)
            if not name_match:
                continue
            name = name_match.group(1).strip()
            if not name or name in seen:
                continue
            seen.add(name)
            age_match = _RELATIVE_AGE_RE.search(text)
            profile.family_records.append(
                FamilyRecord(name=name, age=age_match.group(1) if age_match else None)
            )
