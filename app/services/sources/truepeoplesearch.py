import logging
import re
from urllib.parse import quote

from bs4 import BeautifulSoup, Tag

from app.mappers.address_mapper import parse_address_line
from app.mappers.phone import digits_only, format_phone, mask_phone
from app.mappers.text import collapse_ws
from app.schemas.profile import Relative, UnifiedProfile
from app.schemas.search import NameQuery
from app.services.html_parser import absolute_url, select_first_matching, select_one_of, text_of
from app.services.sources.base import NameSourceScraper, PhoneSourceScraper

logger = logging.getLogger(__name__)

BASE_URL = "https://www.truepeoplesearch.com"

CARD_SELECTORS = (".card-summary", ".card")
_RELATED_TO = 'div:has(> span.content-label:-soup-contains("Related to")) .content-value'


def _relatives(card: Tag) -> list[Relative]:
    el = card.select_one(_RELATED_TO)
    if el is None:
        return []
    names = (re.sub(r"\.\.\.$", "", n.strip()) for n in text_of(el).split(", "))
    return [Relative(name=n) for n in names if n]


def _detail_link(card: Tag) -> str | None:
    link = card.select_one("a.detail-link[href]")
    return absolute_url(BASE_URL, link["href"]) if link is not None else None


def _phones(card: Tag, profile: UnifiedProfile) -> None:
    for link in card.select('a[href^="tel:"]'):
        number = text_of(link) or link["href"].removeprefix("tel:")
        profile.add_phone(format_phone(number), type="unknown", is_primary=not profile.phones)
    if profile.phones:
        profile.phone_snippet = mask_phone(profile.phones[0].number)


class TruePeopleSearchScraper(NameSourceScraper):
    name = "TruePeopleSearch"

    def build_url(self, query: NameQuery) -> str:
        url = f"{BASE_URL}/results?name={quote(query.full_name)}"
        if query.city and query.state:
            url += f"&citystatezip={quote(f'{query.city}, {query.state}')}"
        return url

    async def scrape(self, query: NameQuery) -> list[UnifiedProfile]:
        doc = await self._fetch_doc(self.build_url(query))
        if doc is None:
            return []
        return self.parse_results(doc)

    def parse_results(self, doc: BeautifulSoup) -> list[UnifiedProfile]:
        return self._collect(select_first_matching(doc, CARD_SELECTORS), self._parse_card)

    def _parse_card(self, index: int, card: Tag) -> UnifiedProfile | None:
        name = collapse_ws(text_of(select_one_of(card, (".h4", ".card-title", ".content-header"))))
        if not name:
            return None

        age_text = text_of(select_one_of(card, ('span:-soup-contains("Age")', ".age-text")))
        profile = UnifiedProfile(
            id=f"tps-{index}",
            name=name,
            age=digits_only(age_text) or None,
            source=self.name,
        )

        location = collapse_ws(text_of(select_one_of(card, (".address", "span.content-value"))))
        if location:
            profile.location_summary = location
            profile.add_address(parse_address_line(location, "current"))

        _phones(card, profile)
        profile.relatives = _relatives(card)
        profile.detail_link = _detail_link(card)
        return profile


class TruePeopleSearchPhoneScraper(PhoneSourceScraper):
    """Reverse lookup; result cards list age then location as content values."""

    name = "TruePeopleSearchPhone"

    def build_url(self, phone: str) -> str:
        return f"{BASE_URL}/resultphone?phoneno={digits_only(phone)}"

    async def scrape(self, phone: str) -> list[UnifiedProfile]:
        doc = await self._fetch_doc(self.build_url(phone))
        if doc is None:
            return []
        return self.parse_results(doc)

    def parse_results(self, doc: BeautifulSoup) -> list[UnifiedProfile]:
        return self._collect(doc.select(".card-summary"), self._parse_card)

    def _parse_card(self, index: int, card: Tag) -> UnifiedProfile | None:
        name = collapse_ws(text_of(card.select_one(".content-header")))
        if not name:
            return None

        values = card.select("span.content-value")
        profile = UnifiedProfile(
            id=f"tps-phone-{index}",
            name=name,
            age=text_of(values[0]) or None if values else None,
            location_summary=collapse_ws(text_of(values[1])) or None if len(values) > 1 else None,
            source=self.name,
        )

        past = collapse_ws(text_of(card.select_one(".mt-2 .content-value")))
        if past:
            profile.add_address(parse_address_line(past, "past"))

        _phones(card, profile)
        profile.relatives = _relatives(card)
        profile.detail_link = _detail_link(card)
        return profile
