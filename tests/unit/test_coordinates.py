import math

import pytest
from pyproj import Transformer

from brand_locations.pipeline.coordinates import safe_float, to_wgs84, valid_lat_lon, within_bbox


@pytest.mark.parametrize(
    ("value", "expected"),
    [("42.5", 42.5), (7, 7.0), ("", None), ("n/a", None), (None, None), (True, None)],
)
def test_safe_float(value, expected):
    assert safe_float(value) == expected


@pytest.mark.parametrize(
    ("lat", "lon", "expected"),
    [
        (42.36, -71.06, True),
        (0.0, 0.0, False),
        (0.0, -71.06, True),
        (None, -71.06, False),
        (91.0, -71.06, False),
        (42.36, -181.0, False),
        (math.nan, -71.06, False),
        (42.36, math.inf, False),
    ],
)
def test_valid_lat_lon(lat, lon, expected):
    assert valid_lat_lon(lat, lon) is expected


def test_within_bbox_is_inclusive():
    bbox = {"min_lat": 24.0, "max_lat": 72.0, "min_lon": -170.0, "max_lon": -50.0}

    assert within_bbox(24.0, -50.0, bbox)
    assert not within_bbox(23.9, -80.0, bbox)


def test_to_wgs84_passthrough_swaps_axis_order():
    assert to_wgs84(-71.06, 42.36, 4326) == (42.36, -71.06)


def test_to_wgs84_from_web_mercator():
    x, y = Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True).transform(-71.1097, 42.3736)

    lat, lon = to_wgs84(x, y, 3857)

    assert abs(lat - 42.3736) < 1e-6
    assert abs(lon - (-71.1097)) < 1e-6


def test_to_wgs84_unknown_epsg_returns_none():
    assert to_wgs84(1.0, 2.0, 999999) is None
