import pytest

from brand_locations.common.errors import EmptyResultError
from brand_locations.common.models import RawRecord
from brand_locations.pipeline.assemble import assemble_collection, assemble_locations, in_north_america
from brand_locations.pipeline.validate_bounds import validate_bounds
from brand_locations.pipeline.validate_cities import validate_cities

BRAND = {"key": "acme", "display_name": "Acme", "category": "coffee", "source": "geojson"}


def _record(lat, lon, **tags) -> RawRecord:
    return RawRecord(lat=lat, lon=lon, tags=tags, source_name="acme_test")


def _records() -> list[RawRecord]:
    return [
        _record(42.3736, -71.1097, **{"addr:full": "100 Main St, Cambridge, MA 02139"}),
        _record(0.0, 0.0, **{"addr:city": "Null Island"}),
        _record(None, -71.0, **{"addr:city": "Boston"}),
        _record(40.00001, -74.00001, **{"addr:city": "FORT LEE NJ", "addr:state": "NJ"}),
        _record(40.00004, -74.00002, **{"addr:city": "Fort Lee", "addr:state": "NJ"}),
        _record(41.0, -80.0, **{"addr:city": "Test City", "addr:state": "XX"}),
        _record(48.8566, 2.3522, **{"addr:city": "Paris", "addr:country": "FR"}),
        _record(21.3119, -157.8581, **{"addr:city": "Honolulu", "addr:state": "HI"}),
        _record(45.0, -100.0),
    ]


def test_assemble_filters_dedupes_and_sorts(reference, settings):
    result = assemble_locations(_records(), reference, settings, BRAND)

    assert [(loc.state, loc.city) for loc in result.locations] == [
        ("", ""),
        ("HI", "Honolulu"),
        ("MA", "Cambridge"),
        ("NJ", "Fort Lee"),
    ]
    assert result.stats["raw_rows"] == 9
    assert result.stats["invalid_coordinates"] == 2
    assert result.stats["test_sentinels"] == 1
    assert result.stats["outside_north_america"] == 1
    assert result.stats["duplicates"] == 1
    assert result.stats["locations"] == 4
    assert result.stats["with_state_pct"] == 75.0
    assert result.stats["with_address_pct"] == 25.0


def test_assemble_keeps_first_of_duplicate_points(reference, settings):
    result = assemble_locations(_records(), reference, settings, BRAND)
    fort_lee = [loc for loc in result.locations if loc.state == "NJ"]

    assert len(fort_lee) == 1
    assert (fort_lee[0].lat, fort_lee[0].lon) == (40.00001, -74.00001)


def test_assemble_rounds_output_coordinates(reference, settings):
    records = [_record(42.123456789, -71.987654321, **{"addr:city": "Boston", "addr:state": "MA"})]
    result = assemble_locations(records, reference, settings, BRAND)

    assert (result.locations[0].lat, result.locations[0].lon) == (42.123457, -71.987654)


def test_assemble_keeps_name_only_when_brand_uses_location_names(reference, settings):
    records = [_record(43.3, -70.5, name="Hannaford Augusta", **{"addr:state": "ME"})]

    plain = assemble_locations(records, reference, settings, BRAND)
    named = assemble_locations(records, reference, settings, {**BRAND, "use_location_name": True})

    assert plain.locations[0].name == ""
    assert named.locations[0].name == "Hannaford Augusta"


def test_assemble_collection_carries_brand_metadata(reference, settings):
    collection, stats = assemble_collection(_records(), reference, settings, {**BRAND, "use_location_name": True})

    assert collection.key == "acme"
    assert collection.display_name == "Acme"
    assert collection.use_location_name is True
    assert len(collection.locations) == stats["locations"] == 4


def test_assemble_collection_without_valid_locations_raises(reference, settings):
    records = [_record(0.0, 0.0), _record(48.8566, 2.3522, **{"addr:country": "FR"})]

    with pytest.raises(EmptyResultError):
        assemble_collection(records, reference, settings, BRAND)


@pytest.mark.parametrize(
    ("tags", "lat", "lon", "state", "expected"),
    [
        ({"addr:country": "CA"}, 45.5, -73.6, "QC", True),
        ({"addr:country": "MX"}, 32.5, -117.0, "", False),
        ({}, 21.3, -157.9, "HI", True),
        ({}, 45.0, -100.0, "", True),
        ({}, 19.4, -99.1, "", False),
    ],
)
def test_in_north_america(settings, tags, lat, lon, state, expected):
    assert in_north_america(_record(lat, lon, **tags), lat, lon, state, settings) is expected


def test_full_address_record_assembles_and_passes_validation(reference, settings):
    records = [
        _record(42.3702, -71.0826, name="Acme Store", **{"addr:full": "123 Main St, Cambridge, MA 02141"}),
    ]

    result = assemble_locations(records, reference, settings, BRAND)
    location = result.locations[0]

    assert (location.city, location.state) == ("Cambridge", "MA")
    assert validate_bounds(result.locations, reference.state_bounds) == []
    assert validate_cities(result.locations, reference) == []
