import asyncio
import logging
import time
from enum import StrEnum
from typing import Awaitable, Callable, Sequence, TypeVar

from app.schemas.profile import UnifiedProfile
from app.schemas.search import NameQuery, RunStatus, ScraperRunResult, SearchOutcome
from app.services.fetcher import ProxyFetcher
from app.services.html_parser import HtmlParser
from app.services.sources.anywho import AnyWhoScraper
from app.services.sources.base import DetailCapable, NameSourceScraper, PhoneSourceScraper
from app.services.sources.clustrmaps import ClustrMapsScraper
from app.services.sources.fastpeoplesearch import FastPeopleSearchScraper
from app.services.sources.numlookup import NumlookupScraper
from app.services.sources.truepeoplesearch import TruePeopleSearchPhoneScraper, TruePeopleSearchScraper
from app.services.sources.zabasearch import ZabaSearchScraper
from app.services.sources.zabasearch_phone import ZabasearchPhoneScraper

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=StrEnum)


class NameSource(StrEnum):
    zabasearch = "zabasearch"
    fastpeoplesearch = "fastpeoplesearch"
    truepeoplesearch = "truepeoplesearch"
    clustrmaps = "clustrmaps"
    anywho = "anywho"


class PhoneSource(StrEnum):
    numlookup = "numlookup"
    truepeoplesearchphone = "truepeoplesearchphone"
    zabasearchphone = "zabasearchphone"


def _normalize(source: str) -> str:
    """Lower-case with whitespace removed: "True People Search" -> "truepeoplesearch"."""
    return "".join(source.split()).lower()


def _lookup(enum: type[E], source: str) -> E | None:
    try:
        return enum(_normalize(source))
    except ValueError:
        return None


class PeopleSearchEngine:
    """Runs source scrapers by name, alone or all at once.

    Every operation returns a value: an unknown source, a failed fetch or a
    scraper that raises yields an empty list (or None for details).
    """

    def __init__(
        self,
        name_scrapers: dict[NameSource, NameSourceScraper],
        phone_scrapers: dict[PhoneSource, PhoneSourceScraper],
    ):
        self._name_scrapers = name_scrapers
        self._phone_scrapers = phone_scrapers

    def list_sources(self) -> list[str]:
        return [s.name for s in self._name_scrapers.values()]

    def list_phone_sources(self) -> list[str]:
        return [s.name for s in self._phone_scrapers.values()]

    def _name_scraper(self, source: str) -> NameSourceScraper | None:
        key = _lookup(NameSource, source)
        if key is None or key not in self._name_scrapers:
            logger.error("Unknown name source: %s", source)
            return None
        return self._name_scrapers[key]

    def _phone_scraper(self, source: str) -> PhoneSourceScraper | None:
        key = _lookup(PhoneSource, source)
        if key is None or key not in self._phone_scrapers:
            logger.error("Unknown phone source: %s", source)
            return None
        return self._phone_scrapers[key]

    # --- Name search ---

    async def scrape(self, source: str, query: NameQuery) -> list[UnifiedProfile]:
        scraper = self._name_scraper(source)
        if scraper is None:
            return []
        return await _guarded(scraper.name, scraper.scrape(query))

    async def scrape_all(self, query: NameQuery) -> list[UnifiedProfile]:
        results = await asyncio.gather(
            *(_guarded(s.name, s.scrape(query)) for s in self._name_scrapers.values())
        )
        return [profile for profiles in results for profile in profiles]

    async def scrape_details(self, source: str, url: str) -> UnifiedProfile | None:
        scraper = self._name_scraper(source)
        if scraper is None:
            return None
        if not isinstance(scraper, DetailCapable):
            logger.warning("%s does not support detail pages", scraper.name)
            return None
        try:
            return await scraper.scrape_details(url)
        except Exception:
            logger.exception("%s: detail scrape failed for %s", scraper.name, url)
            return None

    async def search(self, sources: Sequence[str] | None, query: NameQuery) -> SearchOutcome:
        """Run the given sources (all when None) concurrently, with per-source telemetry."""
        names = list(sources) if sources is not None else [s.value for s in self._name_scrapers]

        def runner(source: str):
            scraper = self._name_scraper(source)
            if scraper is None:
                return source, None
            return scraper.name, lambda: scraper.scrape(query)

        return await _timed_runs([runner(n) for n in names])

    # --- Phone search ---

    async def scrape_phone(self, source: str, phone: str) -> list[UnifiedProfile]:
        scraper = self._phone_scraper(source)
        if scraper is None:
            return []
        return await _guarded(scraper.name, scraper.scrape(phone))

    async def scrape_phone_all(self, phone: str) -> list[UnifiedProfile]:
        results = await asyncio.gather(
            *(_guarded(s.name, s.scrape(phone)) for s in self._phone_scrapers.values())
        )
        return [profile for profiles in results for profile in profiles]

    async def search_phone(self, sources: Sequence[str] | None, phone: str) -> SearchOutcome:
        names = list(sources) if sources is not None else [s.value for s in self._phone_scrapers]

        def runner(source: str):
            scraper = self._phone_scraper(source)
            if scraper is None:
                return source, None
            return scraper.name, lambda: scraper.scrape(phone)

        return await _timed_runs([runner(n) for n in names])


async def _guarded(name: str, call: Awaitable[list[UnifiedProfile]]) -> list[UnifiedProfile]:
    try:
        return await call
    except Exception:
        logger.exception("%s: scrape failed", name)
        return []


async def _timed_run(
    name: str,
    call: Callable[[], Awaitable[list[UnifiedProfile]]] | None,
) -> tuple[list[UnifiedProfile], ScraperRunResult]:
    if call is None:
        return [], ScraperRunResult(source=name, status=RunStatus.failed, error="Unknown source")

    start = time.perf_counter()
    try:
        profiles = await call()
    except Exception as exc:
        logger.exception("%s: scrape failed", name)
        duration_ms = int((time.perf_counter() - start) * 1000)
        return [], ScraperRunResult(
            source=name, status=RunStatus.failed, duration_ms=duration_ms, error=str(exc)
        )

    duration_ms = int((time.perf_counter() - start) * 1000)
    status = RunStatus.success if profiles else RunStatus.no_results
    logger.info("%s: %s (%d profiles, %d ms)", name, status, len(profiles), duration_ms)
    return profiles, ScraperRunResult(
        source=name, status=status, profiles_found=len(profiles), duration_ms=duration_ms
    )


async def _timed_runs(
    runners: list[tuple[str, Callable[[], Awaitable[list[UnifiedProfile]]] | None]],
) -> SearchOutcome:
    results = await asyncio.gather(*(_timed_run(name, call) for name, call in runners))
    outcome = SearchOutcome()
    for profiles, run in results:
        outcome.profiles.extend(profiles)
        outcome.runs.append(run)
    return outcome


def build_engine(fetcher: ProxyFetcher, parse: HtmlParser) -> PeopleSearchEngine:
    """Wire every known source to the shared fetcher and parser."""
    return PeopleSearchEngine(
        name_scrapers={
            NameSource.zabasearch: ZabaSearchScraper(fetcher, parse),
            NameSource.fastpeoplesearch: FastPeopleSearchScraper(fetcher, parse),
            NameSource.truepeoplesearch: TruePeopleSearchScraper(fetcher, parse),
            NameSource.clustrmaps: ClustrMapsScraper(fetcher, parse),
            NameSource.anywho: AnyWhoScraper(fetcher, parse),
        },
        phone_scrapers={
            PhoneSource.numlookup: NumlookupScraper(fetcher, parse),
            PhoneSource.truepeoplesearchphone: TruePeopleSearchPhoneScraper(fetcher, parse),
            PhoneSource.zabasearchphone: ZabasearchPhoneScraper(fetcher, parse),
        },
    )
