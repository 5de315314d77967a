import httpx
import pytest
import respx
from httpx import Response

from app.schemas.search import NameQuery
from app.services.fetcher import ProxyFetcher
from app.services.html_parser import make_parser
from app.services.sources.fastpeoplesearch import FastPeopleSearchScraper

PROXY = "https://proxy.test/?url="

RESULTS_HTML = """
<html><body>
<div class="people-list">
  <div itemscope itemtype="http://schema.org/Person">
    <h2 itemprop="name">John Smith</h2>
    <span class="age">Age: 52</span>
    <div itemprop="address">413 Lovers Ln, Cameron, MO 64429</div>
    <a href="tel:8165550100"><span itemprop="telephone">(816) 555-0100</span></a>
    <a href="tel:8165550199">(816) 555-0199</a>
    <a class="btn-primary" href="/john-smith_id_G123">View Free Details</a>
  </div>
  <div itemscope itemtype="http://schema.org/Person">
    <p>Advertisement</p>
  </div>
</div>
</body></html>
"""


@pytest.fixture
def client():
    return httpx.AsyncClient()


@pytest.fixture
def scraper(client):
    return FastPeopleSearchScraper(ProxyFetcher(client, [PROXY]), make_parser())


def test_build_url_with_city_and_state(scraper):
    q = NameQuery(first_name="John", last_name="Smith", city="Cameron", state="Missouri")
    assert scraper.build_url(q) == "https://www.fastpeoplesearch.com/name/john-smith_cameron-mo"


def test_build_url_needs_both_city_and_state(scraper):
    q = NameQuery(first_name="John", last_name="Smith", state="MO")
    assert scraper.build_url(q) == "https://www.fastpeoplesearch.com/name/john-smith"


@respx.mock
async def test_extracts_person_cards(scraper):
    respx.get(host="proxy.test").mock(return_value=Response(200, html=RESULTS_HTML))
    profiles = await scraper.scrape(NameQuery(first_name="John", last_name="Smith"))

    assert len(profiles) == 1
    profile = profiles[0]
    assert profile.name == "John Smith"
    assert profile.age == "52"
    assert profile.source == "FastPeopleSearch"
    assert profile.location_summary == "413 Lovers Ln, Cameron, MO 64429"
    assert profile.addresses[0].zip == "64429"
    assert profile.detail_link == "https://www.fastpeoplesearch.com/john-smith_id_G123"


@respx.mock
async def test_phone_link_and_itemprop_not_duplicated(scraper):
    respx.get(host="proxy.test").mock(return_value=Response(200, html=RESULTS_HTML))
    profile = (await scraper.scrape(NameQuery(first_name="John", last_name="Smith")))[0]

    assert [p.number for p in profile.phones] == ["(816) 555-0100", "(816) 555-0199"]
    assert profile.phones[0].is_primary is True


@respx.mock
async def test_no_cards_returns_empty(scraper):
    respx.get(host="proxy.test").mock(
        return_value=Response(200, html="<html><body><p>No records</p></body></html>")
    )
    assert await scraper.scrape(NameQuery(first_name="John", last_name="Smith")) == []
