import logging
import re

from bs4 import BeautifulSoup, Tag

from app.mappers.address_mapper import parse_address_block, parse_address_line
from app.mappers.locality import filter_by_zip, state_slug
from app.mappers.phone import PHONE_RE, format_phone, mask_phone
from app.mappers.text import collapse_ws, dedup_preserving_order, slugify_name
from app.schemas.profile import Education, Email, Job, Relative, UnifiedProfile
from app.schemas.search import NameQuery
from app.services.html_parser import (
    absolute_url,
    find_heading,
    select_first_matching,
    select_one_of,
    text_of,
)
from app.services.sources.base import NameSourceScraper

logger = logging.getLogger(__name__)

BASE_URL = "https://www.zabasearch.com"

CARD_SELECTORS = (
    "div.person",
    ".result-item",
    "[data-person]",
    ".listing",
    ".record",
    ".entry",
    ".profile-card",
)
NAME_SELECTORS = ("#container-name h2 a", "#container-name h2", "h2 a", "h2")

_AGE_RE = re.compile(r"^\d{1,3}$")
_EMAIL_RE = re.compile(r"[\w.*%+\-]+@[\w\-]+(?:\.[\w\-]+)+")
_JOB_RE = re.compile(r"^(.+?)\s+(?:at|@)\s+(.+?)(?:\s*\((.+?)\))?$")
_EDUCATION_RE = re.compile(r"^(.+?)\s+from\s+(.+?)(?:\s*\((.+?)\))?$")
_AKA_RE = re.compile(r"(?:AKA|Also known as):?\s*([^\n]+)", re.IGNORECASE)
_IGNORED_EMAIL_DOMAINS = ("zabasearch", "intelius")


def _section_after(card: Tag, title: str) -> Tag | None:
    """Container of the h3 whose text is exactly `title`."""
    heading = find_heading(card, title, tags=("h3",), exact=True)
    return heading.parent if heading is not None else None


class ZabaSearchScraper(NameSourceScraper):
    name = "ZabaSearch"

    def build_url(self, query: NameQuery) -> str:
        url = f"{BASE_URL}/people/{slugify_name(query.first_name)}-{slugify_name(query.last_name)}"
        if query.state:
            url += f"/{state_slug(query.state)}"
            if query.city:
                url += f"/{slugify_name(query.city)}"
        return url

    async def scrape(self, query: NameQuery) -> list[UnifiedProfile]:
        doc = await self._fetch_doc(self.build_url(query))
        if doc is None:
            return []
        return list(filter_by_zip(self.parse_results(doc), query.zip))

    # --- Search results ---

    def parse_results(self, doc: BeautifulSoup) -> list[UnifiedProfile]:
        return self._collect(select_first_matching(doc, CARD_SELECTORS), self._parse_card)

    def _parse_card(self, index: int, card: Tag) -> UnifiedProfile | None:
        name_el = select_one_of(card, NAME_SELECTORS)
        name = collapse_ws(text_of(name_el))
        if not name:
            return None

        profile = UnifiedProfile(
            id=card.get("data-id") or f"zs-{index}",
            name=name,
            age=self._card_age(card),
            source=self.name,
        )

        profile.aliases = dedup_preserving_order(
            [a for a in (collapse_ws(text_of(li)) for li in card.select("#container-alt-names ul li")) if a]
        )

        self._relatives(card, profile)
        self._phones(card, profile)
        self._addresses(card, profile)
        self._emails(card, profile)
        self._jobs(card, profile)
        self._education(card, profile)

        if name_el is not None and name_el.name == "a" and name_el.get("href"):
            profile.detail_link = absolute_url(BASE_URL, name_el["href"])
        else:
            link = card.select_one('a[href*="/people/"]')
            if link is not None:
                profile.detail_link = absolute_url(BASE_URL, link["href"])

        return profile

    def _card_age(self, card: Tag) -> str | None:
        if card.get("data-age"):
            return str(card["data-age"])
        age_el = card.select_one(".flex > div:nth-child(2) h3")
        if age_el is not None and _AGE_RE.match(text_of(age_el)):
            return text_of(age_el)
        for h3 in card.find_all("h3"):
            if _AGE_RE.match(text_of(h3)):
                return text_of(h3)
        return None

    def _relatives(self, card: Tag, profile: UnifiedProfile) -> None:
        section = _section_after(card, "Possible Relatives")
        if section is None:
            return
        for link in section.select("ul li a"):
            name = collapse_ws(text_of(link))
            if name:
                profile.relatives.append(Relative(name=name, relationship="family"))

    def _phones(self, card: Tag, profile: UnifiedProfile) -> None:
        section = _section_after(card, "Associated Phone Numbers")
        if section is not None:
            for li in section.select("ul li"):
                for match in PHONE_RE.findall(text_of(li, " ")):
                    profile.add_phone(format_phone(match), type="unknown", is_primary=not profile.phones)
        if not profile.phones:
            for link in card.select('a[href*="/phone/"]'):
                for match in PHONE_RE.findall(text_of(link, " ")):
                    profile.add_phone(format_phone(match), type="unknown", is_primary=not profile.phones)
        if profile.phones:
            profile.phone_snippet = mask_phone(profile.phones[0].number)

    def _addresses(self, card: Tag, profile: UnifiedProfile) -> None:
        current = _section_after(card, "Last Known Address")
        if current is not None:
            block = current.select_one("div.flex div p") or current.find("p")
            if block is not None:
                address = parse_address_block(block.get_text("\n"), "current")
                if address.address_line:
                    profile.add_address(address)
                    profile.location_summary = collapse_ws(block.get_text(" "))

        past = _section_after(card, "Past Addresses")
        if past is not None:
            for li in past.select("ul li"):
                text = collapse_ws(li.get_text(" "))
                if text:
                    profile.add_address(parse_address_line(text, "past"))

    def _emails(self, card: Tag, profile: UnifiedProfile) -> None:
        section = _section_after(card, "Associated Email Addresses")
        if section is None:
            return
        items = section.select("ul.showMore-list li") or section.select("ul li")
        for li in items:
            for email in _EMAIL_RE.findall(text_of(li, " ")):
                if any(domain in email.lower() for domain in _IGNORED_EMAIL_DOMAINS):
                    continue
                if all(e.email != email for e in profile.emails):
                    profile.emails.append(Email(email=email))

    def _jobs(self, card: Tag, profile: UnifiedProfile) -> None:
        section = _section_after(card, "Jobs")
        if section is None:
            return
        for li in section.select("ul li"):
            text = collapse_ws(li.get_text(" "))
            match = _JOB_RE.match(text)
            if not match:
                if text:
                    profile.jobs.append(Job(company=text))
                continue
            title, company, location = match.groups()
            # Some listings repeat the company in front of the title
            if title.lower().startswith(company.lower()):
                title = title[len(company):].lstrip(" ,-") or title
            profile.jobs.append(Job(company=company, title=title, location=location))

    def _education(self, card: Tag, profile: UnifiedProfile) -> None:
        section = _section_after(card, "Education")
        if section is None:
            return
        for li in section.select("ul li"):
            text = collapse_ws(li.get_text(" "))
            match = _EDUCATION_RE.match(text)
            if match:
                degree, school, dates = match.groups()
                profile.education.append(Education(school=school, degree=degree, dates=dates))
            elif text:
                profile.education.append(Education(school=text))

    # --- Detail page ---

    async def scrape_details(self, url: str) -> UnifiedProfile | None:
        logger.info("ZabaSearch: scraping details from %s", url)
        doc = await self._fetch_doc(url)
        if doc is None:
            return None
        return self.parse_details(doc, url)

    def parse_details(self, doc: BeautifulSoup, url: str) -> UnifiedProfile | None:
        name = collapse_ws(text_of(select_one_of(doc, ("h1", "h2 a"))))
        if not name:
            logger.info("ZabaSearch: no name on detail page %s", url)
            return None

        profile = UnifiedProfile(id="details", name=name, detail_link=url, source=self.name)
        body_text = doc.get_text("\n")

        for link in doc.select('a[href^="tel:"]'):
            profile.add_phone(format_phone(link["href"][4:]), type="unknown", is_primary=not profile.phones)
        if not profile.phones:
            for match in PHONE_RE.findall(body_text):
                profile.add_phone(format_phone(match), type="unknown", is_primary=not profile.phones)
        if profile.phones:
            profile.phone_snippet = mask_phone(profile.phones[0].number)

        for email in dedup_preserving_order(_EMAIL_RE.findall(body_text)):
            if not any(domain in email.lower() for domain in _IGNORED_EMAIL_DOMAINS):
                profile.emails.append(Email(email=email))

        self._addresses(doc, profile)

        if match := _AKA_RE.search(body_text):
            profile.aliases = [
                a for a in (collapse_ws(part) for part in match.group(1).split(",")) if a and a != name
            ]

        self._relatives(doc, profile)
        return profile
