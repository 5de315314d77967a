import logging
import re
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from app.mappers.address_mapper import parse_address_line
from app.mappers.phone import dashed_phone, format_phone
from app.mappers.text import collapse_ws
from app.schemas.profile import Email, Job, OnlinePresence, Relative, UnifiedProfile
from app.services.html_parser import find_heading, select_one_of, text_of
from app.services.sources.base import PhoneSourceScraper

logger = logging.getLogger(__name__)

BASE_URL = "https://www.zabasearch.com"


def _items(doc: BeautifulSoup, section_id: str, selector: str = "ul li") -> list[Tag]:
    section = doc.find(id=section_id)
    if not isinstance(section, Tag):
        return []
    return section.select(selector)


def _list_after(section: Tag, heading_label: str) -> list[Tag]:
    heading = find_heading(section, heading_label, tags=("h5",))
    if heading is None:
        return []
    ul = heading.find_next_sibling("ul")
    return ul.find_all("li") if ul is not None else []


class ZabasearchPhoneScraper(PhoneSourceScraper):
    """Reverse lookup; every section of the report describes one main person."""

    name = "ZabasearchPhone"

    def build_url(self, phone: str) -> str | None:
        dashed = dashed_phone(phone)
        return f"{BASE_URL}/phone/{dashed}" if dashed else None

    async def scrape(self, phone: str) -> list[UnifiedProfile]:
        url = self.build_url(phone)
        if url is None:
            logger.info("ZabasearchPhone: %r is not a 10-digit number, skipping", phone)
            return []
        doc = await self._fetch_doc(url)
        if doc is None:
            return []
        return self.parse_report(doc, phone)

    def parse_report(self, doc: BeautifulSoup, phone: str) -> list[UnifiedProfile]:
        main = self._try_record("main profile", lambda: self._main_profile(doc, phone))
        if main is None:
            return self._collect(doc.select("div.person"), self._person_card)

        sections = (
            self._aliases,
            self._relatives,
            self._previous_phones,
            self._emails,
            self._locations,
            self._licenses,
            self._jobs,
            self._social_media,
        )
        for section in sections:
            self._try_record(section.__name__.lstrip("_"), lambda: section(doc, main))
        return [main]

    def _aliases(self, doc: BeautifulSoup, main: UnifiedProfile) -> None:
        for li in _items(doc, "phone-number-names"):
            alias = collapse_ws(text_of(li))
            if alias and alias != main.name and alias not in main.aliases:
                main.aliases.append(alias)

    def _relatives(self, doc: BeautifulSoup, main: UnifiedProfile) -> None:
        for link in _items(doc, "phone-number-related", "ul li a"):
            name = collapse_ws(text_of(link))
            if name:
                main.relatives.append(Relative(name=name, relationship="possible"))

    def _previous_phones(self, doc: BeautifulSoup, main: UnifiedProfile) -> None:
        for link in _items(doc, "phone-number-previous", "ul li a"):
            number = text_of(link)
            if number:
                main.add_phone(format_phone(number), type="previous")

    def _emails(self, doc: BeautifulSoup, main: UnifiedProfile) -> None:
        for li in _items(doc, "phone-number-emails"):
            email = text_of(li)
            if "@" in email:
                main.emails.append(Email(email=email, type="possible"))

    def _locations(self, doc: BeautifulSoup, main: UnifiedProfile) -> None:
        locations = doc.find(id="phone-number-locations")
        if not isinstance(locations, Tag):
            return
        recent = _list_after(locations, "Most Recent")
        if recent:
            line = collapse_ws(recent[0].get_text(" "))
            main.add_address(parse_address_line(line, "current"))
            main.location_summary = main.location_summary or line
        for li in _list_after(locations, "Possible Previous Locations"):
            line = collapse_ws(li.get_text(" "))
            if line:
                main.add_address(parse_address_line(line, "past"))

    def _licenses(self, doc: BeautifulSoup, main: UnifiedProfile) -> None:
        for li in _items(doc, "phone-number-licenses"):
            license_text = collapse_ws(text_of(li))
            if license_text:
                main.professional_records.append(license_text)

    def _jobs(self, doc: BeautifulSoup, main: UnifiedProfile) -> None:
        for li in _items(doc, "phone-number-jobs"):
            job = collapse_ws(text_of(li))
            if job:
                main.jobs.append(Job(company=job))

    def _social_media(self, doc: BeautifulSoup, main: UnifiedProfile) -> None:
        for li in _items(doc, "phone-number-socialmedia"):
            link = li.find("a", href=True)
            if link is not None:
                platform = urlparse(link["href"]).hostname or text_of(link)
                main.online_presence.append(OnlinePresence(platform=platform, handle=link["href"]))
            elif text_of(li):
                main.online_presence.append(OnlinePresence(platform=text_of(li)))

    def _main_profile(self, doc: BeautifulSoup, phone: str) -> UnifiedProfile | None:
        result = doc.find(id="phone-number-result")
        if not isinstance(result, Tag):
            return None
        name = collapse_ws(text_of(result.find("h3")))
        if not name:
            return None

        age = text_of(result.select_one("tr.column-2 td:nth-child(1)"))
        born = text_of(result.select_one("tr.column-2 td:nth-child(2)"))
        if age and born:
            age = f"{age} (Born {born})"

        location = text_of(result.select_one('tr:has(th:-soup-contains("Location")) td'))
        location = re.sub(r",\s*$", "", location)

        profile = UnifiedProfile(
            id="zabasearch-phone-main",
            name=name,
            age=age or None,
            location_summary=location or None,
            source=self.name,
        )
        searched = text_of(doc.select_one('h1 span[itemprop="telephone"]')) or phone
        profile.add_phone(format_phone(searched), type="searched", is_primary=True)
        return profile

    def _person_card(self, index: int, card: Tag) -> UnifiedProfile | None:
        name = collapse_ws(text_of(select_one_of(card, ("h2 a", "h2", "h3"))))
        if not name:
            return None
        return UnifiedProfile(id=f"zabasearch-phone-{index}", name=name, source=self.name)
