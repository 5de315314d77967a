import logging
from abc import ABC, abstractmethod
from typing import Callable, Iterable, Protocol, TypeVar, runtime_checkable

from bs4 import BeautifulSoup

from app.schemas.profile import UnifiedProfile
from app.schemas.search import NameQuery
from app.services.fetcher import ProxyFetcher
from app.services.html_parser import HtmlParser

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _SourceScraper:
    name: str = ""

    def __init__(self, fetcher: ProxyFetcher, parse: HtmlParser):
        self._fetcher = fetcher
        self._parse = parse

    async def _fetch_doc(self, url: str) -> BeautifulSoup | None:
        logger.info("%s: fetching %s", self.name, url)
        html = await self._fetcher.fetch(url)
        if html is None:
            return None
        return self._parse(html)

    def _try_record(self, label: str, build: Callable[[], T]) -> T | None:
        """Run one record's extraction; if it raises, log and return None."""
        try:
            return build()
        except Exception:
            logger.exception("%s: failed to parse %s", self.name, label)
            return None

    def _collect(
        self,
        records: Iterable[T],
        build: Callable[[int, T], UnifiedProfile | None],
    ) -> list[UnifiedProfile]:
        """Build one profile per record; a record that raises is skipped."""
        profiles: list[UnifiedProfile] = []
        for index, record in enumerate(records):
            profile = self._try_record(f"record {index}", lambda: build(index, record))
            if profile is not None:
                profiles.append(profile)
        logger.info("%s: extracted %d profiles", self.name, len(profiles))
        return profiles


class NameSourceScraper(_SourceScraper, ABC):
    """A people-search site queried by name and optional locality."""

    @abstractmethod
    async def scrape(self, query: NameQuery) -> list[UnifiedProfile]: ...


class PhoneSourceScraper(_SourceScraper, ABC):
    """A reverse-phone lookup site."""

    @abstractmethod
    async def scrape(self, phone: str) -> list[UnifiedProfile]: ...


@runtime_checkable
class DetailCapable(Protocol):
    async def scrape_details(self, url: str) -> UnifiedProfile | None: ...
