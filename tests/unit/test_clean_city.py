import pytest

from brand_locations.pipeline.clean_city import clean_city


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Boston Boston", "Boston"),
        ("New York New York", "New York"),
        ("Walla Walla", "Walla Walla"),
        ("Beltsville Prince George", "Beltsville"),
        ("Beltsville Prince George's County", "Beltsville"),
        ("Rockville Montgomery County MD 20850", "Rockville"),
        ("Cambridge MA 02141", "Cambridge"),
        ("Cambridge, MA 02141-1234", "Cambridge"),
        ("Fort Lee NJ", "Fort Lee"),
        ("WALLA WALLA WA", "WALLA WALLA"),
        ("Worcester Mass", "Worcester"),
        ("Boston USA", "Boston"),
        ("  Springfield ,, ", "Springfield"),
        ("", ""),
    ],
)
def test_clean_city_rules(reference, raw, expected):
    assert clean_city(raw, reference.curated) == expected


@pytest.mark.parametrize(
    "city",
    ["Royal Palm Beach", "West Palm Beach", "Fort Wayne", "Lake Jackson", "Port Jefferson", "East Orange"],
)
def test_clean_city_keeps_compound_names_ending_in_a_county(reference, city):
    assert clean_city(city, reference.curated) == city


def test_clean_city_keeps_short_prefix_before_county(reference):
    assert clean_city("Rye Westchester", reference.curated) == "Rye Westchester"


def test_clean_city_handles_none(reference):
    assert clean_city(None, reference.curated) == ""


@pytest.mark.parametrize(
    "raw",
    [
        "Rockville Montgomery County MD 20850",
        "Boston Boston USA",
        "WALLA WALLA WA",
        "Beltsville Prince George, MD",
        "Fort Lee NJ 07024",
    ],
)
def test_clean_city_is_idempotent(reference, raw):
    once = clean_city(raw, reference.curated)
    assert clean_city(once, reference.curated) == once
