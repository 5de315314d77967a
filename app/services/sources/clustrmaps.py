import logging

from bs4 import BeautifulSoup, Tag

from app.mappers.address_mapper import parse_address_line
from app.mappers.text import collapse_ws, slugify_name
from app.schemas.profile import UnifiedProfile
from app.schemas.search import NameQuery
from app.services.html_parser import absolute_url, select_first_matching, select_one_of, text_of
from app.services.sources.base import NameSourceScraper

logger = logging.getLogger(__name__)

BASE_URL = "https://clustrmaps.com"

CONTAINER_SELECTORS = ('[itemtype="http://schema.org/Person"]', ".person-container")


def _url_name(name: str) -> str:
    """Title-cased slug: "o'brien" -> "O-Brien"."""
    return "-".join(part.capitalize() for part in slugify_name(name).split("-"))


class ClustrMapsScraper(NameSourceScraper):
    name = "ClustrMaps"

    def build_url(self, query: NameQuery) -> str:
        # Only the name is addressable; locality is ignored
        return f"{BASE_URL}/persons/{_url_name(query.first_name)}-{_url_name(query.last_name)}"

    async def scrape(self, query: NameQuery) -> list[UnifiedProfile]:
        doc = await self._fetch_doc(self.build_url(query))
        if doc is None:
            return []
        return self.parse_results(doc)

    def _containers(self, doc: BeautifulSoup) -> list[Tag]:
        containers = select_first_matching(doc, CONTAINER_SELECTORS)
        if containers:
            return containers
        seen: set[int] = set()
        for link in doc.select("a.persons"):
            container = link.find_parent("div", class_="row") or link.parent
            if container is not None and id(container) not in seen:
                seen.add(id(container))
                containers.append(container)
        return containers

    def parse_results(self, doc: BeautifulSoup) -> list[UnifiedProfile]:
        return self._collect(self._containers(doc), self._parse_container)

    def _parse_container(self, index: int, container: Tag) -> UnifiedProfile | None:
        name = collapse_ws(text_of(select_one_of(container, ('[itemprop="name"]', "a.persons span"))))
        if not name:
            return None

        profile = UnifiedProfile(
            id=f"cm-{index}",
            name=name,
            age=text_of(select_one_of(container, (".age", '[itemprop="age"]'))) or None,
            source=self.name,
        )

        address_el = select_one_of(container, ('[itemprop="address"]', ".address"))
        if address_el is not None:
            line = collapse_ws(address_el.get_text(" "))
            if line:
                profile.location_summary = line
                profile.add_address(parse_address_line(line, "current"))

        link = container.select_one("a.persons[href]")
        if link is not None:
            profile.detail_link = absolute_url(BASE_URL, link["href"])

        return profile
