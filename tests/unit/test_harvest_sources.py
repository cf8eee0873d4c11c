import json
from pathlib import Path

import pytest
from pyproj import Transformer

from brand_locations.common.errors import ConfigError, MalformedInputError, StageError
from brand_locations.harvest.geojson_source import crs_epsg, load_geojson_records, records_from_feature_collection
from brand_locations.harvest.overpass_source import (
    build_overpass_query,
    fetch_overpass_records,
    records_from_elements,
)


def _feature(x, y, **properties):
    return {"type": "Feature", "geometry": {"type": "Point", "coordinates": [x, y]}, "properties": properties}


def test_records_from_feature_collection_reads_points():
    payload = {
        "type": "FeatureCollection",
        "features": [
            {**_feature(-71.1097, 42.3736, ref="17"), "id": "abc"},
            _feature(-73.75, 42.65, ref="18"),
            {"type": "Feature", "geometry": {"type": "Polygon", "coordinates": []}, "properties": {}},
            _feature("bad", 42.0),
        ],
    }

    records = records_from_feature_collection(payload, "acme_test")

    assert [(r.lat, r.lon) for r in records] == [(42.3736, -71.1097), (42.65, -73.75), (None, None), (None, None)]
    assert [r.source_record_id for r in records] == ["abc", "18", "2", "3"]
    assert records[0].tags == {"ref": "17"}
    assert records[0].source_name == "acme_test"


def test_records_from_feature_collection_transforms_legacy_crs():
    x, y = Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True).transform(-71.1097, 42.3736)
    payload = {
        "type": "FeatureCollection",
        "crs": {"type": "name", "properties": {"name": "urn:ogc:def:crs:EPSG::3857"}},
        "features": [_feature(x, y)],
    }

    record = records_from_feature_collection(payload, "acme_test")[0]

    assert abs(record.lat - 42.3736) < 1e-6
    assert abs(record.lon - (-71.1097)) < 1e-6


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("urn:ogc:def:crs:OGC:1.3:CRS84", 4326),
        ("EPSG:3857", 3857),
        ("urn:ogc:def:crs:EPSG::26918", 26918),
    ],
)
def test_crs_epsg(name, expected):
    assert crs_epsg({"crs": {"type": "name", "properties": {"name": name}}}) == expected


def test_crs_epsg_defaults_and_rejects_unknown():
    assert crs_epsg({}, 4269) == 4269
    with pytest.raises(MalformedInputError):
        crs_epsg({"crs": {"properties": {"name": "local-grid"}}})


def test_load_geojson_records_errors(tmp_path: Path):
    with pytest.raises(StageError):
        load_geojson_records(tmp_path / "absent.geojson", "acme")

    bad = tmp_path / "bad.geojson"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(MalformedInputError):
        load_geojson_records(bad, "acme")

    not_collection = tmp_path / "list.geojson"
    not_collection.write_text(json.dumps([1, 2]), encoding="utf-8")
    with pytest.raises(MalformedInputError):
        load_geojson_records(not_collection, "acme")


def test_build_overpass_query():
    query = build_overpass_query({"key": "biggby", "overpass_query": 'nwr["brand"="Biggby Coffee"]'}, {"timeout_seconds": 90})

    assert query == '[out:json][timeout:90];\n(\n  nwr["brand"="Biggby Coffee"];\n);\nout center tags;'


def test_build_overpass_query_requires_body():
    with pytest.raises(ConfigError):
        build_overpass_query({"key": "biggby"}, {"timeout_seconds": 90})


def test_records_from_elements_uses_centers_and_dedupes():
    payload = {
        "elements": [
            {"type": "node", "id": 1, "lat": 42.1, "lon": -71.2, "tags": {"name": "A"}},
            {"type": "way", "id": 2, "center": {"lat": 42.3, "lon": -71.4}, "tags": {"name": "B"}},
            {"type": "node", "id": 1, "lat": 42.1, "lon": -71.2, "tags": {"name": "A"}},
        ]
    }

    records = records_from_elements(payload, "overpass:biggby")

    assert [(r.source_record_id, r.lat, r.lon) for r in records] == [("node/1", 42.1, -71.2), ("way/2", 42.3, -71.4)]


class FakeOverpassClient:
    def __init__(self, payload):
        self.payload = payload
        self.queries = []

    def query(self, query):
        self.queries.append(query)
        return self.payload


def test_fetch_overpass_records_saves_raw_payload(tmp_path: Path):
    payload = {"elements": [{"type": "node", "id": 7, "lat": 42.1, "lon": -71.2, "tags": {}}]}
    client = FakeOverpassClient(payload)
    brand = {"key": "biggby", "overpass_query": 'nwr["brand"="Biggby Coffee"];'}
    cfg = {"endpoint": "https://overpass.example/api/interpreter", "timeout_seconds": 60}

    records = fetch_overpass_records(brand, cfg, tmp_path, overpass_client=client)

    assert [r.source_name for r in records] == ["overpass:biggby"]
    assert len(client.queries) == 1
    assert client.queries[0].startswith("[out:json][timeout:60];")
    assert "out center tags;" in client.queries[0]
    assert json.loads((tmp_path / "overpass" / "biggby.json").read_text(encoding="utf-8")) == payload
