import logging

from bs4 import BeautifulSoup, Tag

from app.mappers.address_mapper import parse_address_line
from app.mappers.locality import state_abbr
from app.mappers.phone import format_phone, mask_phone
from app.mappers.text import collapse_ws, slugify_name
from app.schemas.profile import UnifiedProfile
from app.schemas.search import NameQuery
from app.services.html_parser import absolute_url, select_first_matching, select_one_of, text_of
from app.services.sources.base import NameSourceScraper

logger = logging.getLogger(__name__)

BASE_URL = "https://www.fastpeoplesearch.com"

CARD_SELECTORS = ('div[itemtype="http://schema.org/Person"]', ".people-list-item", ".card")


class FastPeopleSearchScraper(NameSourceScraper):
    name = "FastPeopleSearch"

    def build_url(self, query: NameQuery) -> str:
        url = f"{BASE_URL}/name/{slugify_name(query.first_name)}-{slugify_name(query.last_name)}"
        if query.city and query.state:
            url += f"_{slugify_name(query.city)}-{state_abbr(query.state).lower()}"
        return url

    async def scrape(self, query: NameQuery) -> list[UnifiedProfile]:
        doc = await self._fetch_doc(self.build_url(query))
        if doc is None:
            return []
        return self.parse_results(doc)

    def parse_results(self, doc: BeautifulSoup) -> list[UnifiedProfile]:
        return self._collect(select_first_matching(doc, CARD_SELECTORS), self._parse_card)

    def _parse_card(self, index: int, card: Tag) -> UnifiedProfile | None:
        name = collapse_ws(text_of(select_one_of(card, ("[itemprop=name]", ".name", "h2"))))
        if not name:
            return None

        age = text_of(select_one_of(card, ("[itemprop=age]", ".age"))).replace("Age:", "").strip()
        profile = UnifiedProfile(id=f"fps-{index}", name=name, age=age or None, source=self.name)

        address_el = select_one_of(card, ("[itemprop=address]", ".address"))
        if address_el is not None:
            line = collapse_ws(address_el.get_text(" "))
            if line:
                profile.location_summary = line
                profile.add_address(parse_address_line(line, "current"))

        for el in card.select('[itemprop=telephone], a[href^="tel:"]'):
            number = text_of(el) or el.get("href", "").removeprefix("tel:")
            if number:
                profile.add_phone(format_phone(number), type="unknown", is_primary=not profile.phones)
        if profile.phones:
            profile.phone_snippet = mask_phone(profile.phones[0].number)

        link = card.select_one("a.btn-primary[href], a.link-to-details[href]")
        if link is not None:
            profile.detail_link = absolute_url(BASE_URL, link["href"])

        return profile
