"""Coordinate parsing, validity checks and CRS transformation."""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Any

from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError, ProjError

WGS84_EPSG = 4326


def safe_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def valid_lat_lon(lat: float | None, lon: float | None) -> bool:
    if lat is None or lon is None:
        return False
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    if lat == 0 and lon == 0:
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180


def within_bbox(lat: float, lon: float, bbox: dict) -> bool:
    return bbox["min_lat"] <= lat <= bbox["max_lat"] and bbox["min_lon"] <= lon <= bbox["max_lon"]


@lru_cache(maxsize=16)
def _transformer(source_epsg: int) -> Transformer:
    return Transformer.from_crs(CRS.from_epsg(source_epsg), CRS.from_epsg(WGS84_EPSG), always_xy=True)


def to_wgs84(x: float, y: float, source_epsg: int) -> tuple[float, float] | None:
    """Return ``(lat, lon)`` for a GeoJSON ``(x, y)`` position in ``source_epsg``."""
    if source_epsg == WGS84_EPSG:
        return y, x
    try:
        lon, lat = _transformer(source_epsg).transform(x, y)
    except (CRSError, ProjError):
        return None
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None
    return lat, lon
