import httpx
import pytest
import respx
from httpx import Response

from app.schemas.search import NameQuery
from app.services.fetcher import ProxyFetcher
from app.services.html_parser import make_parser
from app.services.sources.truepeoplesearch import (
    TruePeopleSearchPhoneScraper,
    TruePeopleSearchScraper,
)

PROXY = "https://proxy.test/?url="

NAME_RESULTS_HTML = """
<html><body>
<div class="card card-body card-summary">
  <div class="h4">John Smith</div>
  <span>Age 52</span>
  <div><span class="content-label">Lives in</span> <span class="content-value">Cameron, MO</span></div>
  <div><span class="content-label">Related to</span> <span class="content-value">Jane Smith, Bob Smith...</span></div>
  <a href="tel:8165550100">(816) 555-0100</a>
  <a class="detail-link" href="/find/person/abc">View Details</a>
</div>
<div class="card card-body card-summary">
  <div class="h4"></div>
</div>
</body></html>
"""

PHONE_RESULTS_HTML = """
<html><body>
<div class="card card-summary">
  <div class="content-header">John Smith</div>
  <div><span class="content-label">Age</span> <span class="content-value">52</span></div>
  <div><span class="content-label">Lives in</span> <span class="content-value">Cameron, MO</span></div>
  <div class="mt-2"><span class="content-label">Used to live in</span> <span class="content-value">12 Oak St, Kansas City, MO 64106</span></div>
  <div><span class="content-label">Related to</span> <span class="content-value">Jane Smith, Bob Smith</span></div>
  <a class="detail-link" href="/find/person/xyz">View Details</a>
</div>
</body></html>
"""


@pytest.fixture
def client():
    return httpx.AsyncClient()


@pytest.fixture
def fetcher(client):
    return ProxyFetcher(client, [PROXY])


# --- Name search ---


def test_build_url_encodes_name_and_location(fetcher):
    scraper = TruePeopleSearchScraper(fetcher, make_parser())
    q = NameQuery(first_name="John", last_name="Smith", city="Cameron", state="MO")
    assert scraper.build_url(q) == (
        "https://www.truepeoplesearch.com/results?name=John%20Smith&citystatezip=Cameron%2C%20MO"
    )


@respx.mock
async def test_name_results(fetcher):
    respx.get(host="proxy.test").mock(return_value=Response(200, html=NAME_RESULTS_HTML))
    scraper = TruePeopleSearchScraper(fetcher, make_parser())

    profiles = await scraper.scrape(NameQuery(first_name="John", last_name="Smith"))

    assert len(profiles) == 1
    profile = profiles[0]
    assert profile.name == "John Smith"
    assert profile.age == "52"
    assert profile.location_summary == "Cameron, MO"
    assert (profile.addresses[0].city, profile.addresses[0].state) == ("Cameron", "MO")
    assert [p.number for p in profile.phones] == ["(816) 555-0100"]
    assert [r.name for r in profile.relatives] == ["Jane Smith", "Bob Smith"]
    assert profile.detail_link == "https://www.truepeoplesearch.com/find/person/abc"


# --- Phone search ---


def test_phone_build_url_uses_digits(fetcher):
    scraper = TruePeopleSearchPhoneScraper(fetcher, make_parser())
    assert scraper.build_url("(816) 555-0100") == (
        "https://www.truepeoplesearch.com/resultphone?phoneno=8165550100"
    )


@respx.mock
async def test_phone_results(fetcher):
    respx.get(host="proxy.test").mock(return_value=Response(200, html=PHONE_RESULTS_HTML))
    scraper = TruePeopleSearchPhoneScraper(fetcher, make_parser())

    profiles = await scraper.scrape("816-555-0100")

    assert len(profiles) == 1
    profile = profiles[0]
    assert profile.id == "tps-phone-0"
    assert profile.source == "TruePeopleSearchPhone"
    assert profile.age == "52"
    assert profile.location_summary == "Cameron, MO"
    assert [(a.address_line, a.kind) for a in profile.addresses] == [("12 Oak St", "past")]
    assert [r.name for r in profile.relatives] == ["Jane Smith", "Bob Smith"]
    assert profile.detail_link == "https://www.truepeoplesearch.com/find/person/xyz"


@respx.mock
async def test_phone_fetch_failure_returns_empty(fetcher):
    respx.get(host="proxy.test").mock(side_effect=httpx.ConnectError("down"))
    scraper = TruePeopleSearchPhoneScraper(fetcher, make_parser())
    assert await scraper.scrape("8165550100") == []
