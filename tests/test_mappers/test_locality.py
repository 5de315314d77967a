import pytest

from app.mappers.locality import (
    filter_by_zip,
    state_abbr,
    state_name,
    state_slug,
    zip_to_state,
)
from app.schemas.profile import Address, UnifiedProfile


def _profile(name: str, *addresses: Address) -> UnifiedProfile:
    return UnifiedProfile(id=name, name=name, source="Test", addresses=list(addresses))


@pytest.mark.parametrize(
    "zip_code,expected",
    [
        ("64106", "Missouri"),
        ("62704", "Illinois"),
        ("10001", "New York"),
        ("90210", "California"),
        ("83702", "Idaho"),
        ("19901", "Delaware"),
        ("19702", "Delaware"),
        ("64106-1234", "Missouri"),
        (" 641 06 ", "Missouri"),
    ],
)
def test_zip_to_state(zip_code, expected):
    assert zip_to_state(zip_code) == expected


@pytest.mark.parametrize("zip_code", ["00000", "12", "", None, "abc"])
def test_zip_to_state_unknown(zip_code):
    assert zip_to_state(zip_code) == ""


def test_state_name_and_abbr():
    assert state_name("mo") == "Missouri"
    assert state_name("Missouri") == "Missouri"
    assert state_abbr("new york") == "NY"
    assert state_abbr("TX") == "TX"


@pytest.mark.parametrize(
    "state,expected",
    [("MO", "missouri"), ("Missouri", "missouri"), ("New York", "new-york"), ("dc", "district-of-columbia")],
)
def test_state_slug(state, expected):
    assert state_slug(state) == expected


def test_filter_by_zip_without_zip_is_identity():
    profiles = [_profile("A"), _profile("B")]
    assert filter_by_zip(profiles, None) is profiles
    assert filter_by_zip(profiles, "") is profiles


def test_filter_by_zip_keeps_matching_addresses():
    match = _profile("A", Address(address_line="1 Main St", zip="64106-2211"))
    past_match = _profile(
        "B",
        Address(address_line="9 Elm Rd", zip="10001"),
        Address(address_line="2 Oak St", zip="64106", kind="past"),
    )
    other = _profile("C", Address(address_line="3 Pine St", zip="64107"))
    no_address = _profile("D")

    result = filter_by_zip([match, past_match, other, no_address], "64106")

    assert [p.name for p in result] == ["A", "B"]


def test_filter_by_zip_falls_back_to_zip_in_address_line():
    inline = _profile("A", Address(address_line="413 Lovers Ln, Cameron, MO 64429"))
    assert filter_by_zip([inline], "64429") == [inline]
    assert filter_by_zip([inline], "64106") == []
