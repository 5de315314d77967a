"""Tests for NumlookupScraper and the labelled-row accumulator."""

import httpx
import pytest
import respx
from httpx import Response

from app.services.fetcher import ProxyFetcher
from app.services.html_parser import make_parser
from app.services.sources.numlookup import LabelledRowAccumulator, NumlookupScraper

PROXY = "https://proxy.test/?url="


def _row(label: str, value: str) -> str:
    return (
        f'<div class="row mb-2"><div class="col-sm-3 h6">{label}</div>'
        f'<div class="col-sm-9">{value}</div></div>'
    )


REPORT_HTML = f"""
<html><body>
<div class="card card-basic-info">
  <div class="ownername-block"><div class="text-dark"><a href="#">John Smith</a></div></div>
</div>
<div class="social-card">Facebook Profile <span>Unlock to view</span></div>
<div class="card">
  <div class="card-header"><h5 class="card-title">Another possible 85% match:</h5></div>
  <div class="card-body">
    {_row("Name", "Jane Smith")}
    {_row("Address", "12 Oak St, Kansas City, MO 64106")}
    {_row("Birth Month", "March")}
    {_row("Gender", "")}
  </div>
</div>
<div class="card">
  <div class="card-header"><h5 class="card-title">Wow, more matches found: (~70% Match):</h5></div>
  <div class="card-body"><div>
    {_row("firstname", "Alice")}
    {_row("lastname", "Jones")}
    {_row("cell_phone", "816-555-0001")}
    {_row("address", "1 Main St")}
    {_row("city", "Cameron")}
    {_row("state", "MO")}
    {_row("zip", "64429")}
    {_row("firstname", "Bob")}
    {_row("cell_phone", "816-555-0002")}
    {_row("work_phone", "(816) 555-0002")}
    {_row("birthday", "1970-01-01")}
  </div></div>
</div>
</body></html>
"""


@pytest.fixture
def client():
    return httpx.AsyncClient()


@pytest.fixture
def scraper(client):
    return NumlookupScraper(ProxyFetcher(client, [PROXY]), make_parser())


# --- Accumulator ---


def test_new_name_flushes_previous_person():
    acc = LabelledRowAccumulator()
    for label, value in [
        ("name", "A"),
        ("phone", "555-0001"),
        ("name", "B"),
        ("phone", "555-0002"),
    ]:
        acc.feed(label, value)

    drafts = acc.finish()

    assert [d.name for d in drafts] == ["A", "B"]
    assert [[p.number for p in d.phones] for d in drafts] == [["555-0001"], ["555-0002"]]


def test_same_name_row_keeps_accumulating():
    acc = LabelledRowAccumulator()
    for label, value in [
        ("name", "A"),
        ("phone", "555-0001"),
        ("name", "A"),
        ("phone", "555-0002"),
        ("phone", "555-0001"),
    ]:
        acc.feed(label, value)

    (draft,) = acc.finish()

    assert [p.number for p in draft.phones] == ["555-0001", "555-0002"]


def test_returning_name_merges_into_earlier_person():
    acc = LabelledRowAccumulator()
    for label, value in [
        ("name", "A"),
        ("phone", "555-0001"),
        ("name", "B"),
        ("name", "A"),
        ("phone", "555-0003"),
    ]:
        acc.feed(label, value)

    drafts = acc.finish()

    assert [d.name for d in drafts] == ["A", "B"]
    assert [p.number for p in drafts[0].phones] == ["555-0001", "555-0003"]


def test_pending_address_flushed_with_person():
    acc = LabelledRowAccumulator()
    acc.feed("full_name", "A")
    acc.feed("address", "1 Main St")
    acc.feed("city", "Cameron")

    (draft,) = acc.finish()

    assert draft.addresses[0].address_line == "1 Main St, Cameron"
    assert draft.addresses[0].zip is None


def test_rows_before_any_name_are_ignored():
    acc = LabelledRowAccumulator()
    acc.feed("phone", "555-0001")
    assert acc.finish() == []


# --- Report page ---


def test_build_url(scraper):
    assert scraper.build_url("(816) 555-0100") == "https://www.numlookup.com/report?phone=8165550100"


@respx.mock
async def test_owner_profile(scraper):
    respx.get(host="proxy.test").mock(return_value=Response(200, html=REPORT_HTML))
    profiles = await scraper.scrape("8165550100")

    owner = profiles[0]
    assert owner.id == "numlookup-owner"
    assert owner.name == "John Smith"
    assert [(p.number, p.type, p.is_primary) for p in owner.phones] == [
        ("(816) 555-0100", "searched", True)
    ]
    assert [(o.platform, o.match_reason) for o in owner.online_presence] == [
        ("Facebook", "Profile Found (Link Hidden)")
    ]


@respx.mock
async def test_possible_match_card(scraper):
    respx.get(host="proxy.test").mock(return_value=Response(200, html=REPORT_HTML))
    profiles = await scraper.scrape("8165550100")

    jane = profiles[1]
    assert jane.name == "Jane Smith"
    assert jane.age == "March"
    assert jane.addresses[0].zip == "64106"
    assert jane.addresses[0].kind == "current"


@respx.mock
async def test_more_matches_card_accumulates_rows(scraper):
    respx.get(host="proxy.test").mock(return_value=Response(200, html=REPORT_HTML))
    profiles = await scraper.scrape("8165550100")

    assert [p.name for p in profiles] == ["John Smith", "Jane Smith", "Alice Jones", "Bob"]
    alice, bob = profiles[2], profiles[3]

    assert [(p.number, p.type) for p in alice.phones] == [("(816) 555-0001", "cell")]
    assert alice.addresses[0].address_line == "1 Main St, Cameron MO 64429"
    assert alice.addresses[0].zip == "64429"
    assert alice.location_summary == "Cameron, MO"

    assert [p.number for p in bob.phones] == ["(816) 555-0002"]
    assert bob.age == "1970-01-01"
    assert all(p.source == "Numlookup" for p in profiles)


@respx.mock
async def test_report_without_owner_or_cards(scraper):
    respx.get(host="proxy.test").mock(
        return_value=Response(200, html="<html><body><p>No data</p></body></html>")
    )
    assert await scraper.scrape("8165550100") == []


@respx.mock
async def test_owner_block_that_fails_to_parse_keeps_match_cards(scraper, monkeypatch):
    respx.get(host="proxy.test").mock(return_value=Response(200, html=REPORT_HTML))

    def broken_owner(doc, phone):
        raise AttributeError("owner block changed")

    monkeypatch.setattr(scraper, "_owner", broken_owner)

    profiles = await scraper.scrape("8165550100")

    assert [p.name for p in profiles] == ["Jane Smith", "Alice Jones", "Bob"]
    assert [p.id for p in profiles] == ["numlookup-match-0", "numlookup-match-1", "numlookup-match-2"]


@respx.mock
async def test_possible_match_that_fails_to_parse_keeps_other_profiles(scraper, monkeypatch):
    respx.get(host="proxy.test").mock(return_value=Response(200, html=REPORT_HTML))

    def broken_match(card, index):
        raise ValueError("bad row")

    monkeypatch.setattr(scraper, "_possible_match", broken_match)

    profiles = await scraper.scrape("8165550100")

    assert [p.name for p in profiles] == ["John Smith", "Alice Jones", "Bob"]
