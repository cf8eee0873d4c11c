"""Read scraper GeoJSON FeatureCollections into raw records."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from brand_locations.common.errors import MalformedInputError, StageError
from brand_locations.common.models import RawRecord
from brand_locations.pipeline.coordinates import WGS84_EPSG, safe_float, to_wgs84

logger = logging.getLogger(__name__)

_EPSG_RE = re.compile(r"EPSG:{1,2}(\d+)$", re.IGNORECASE)
_CRS84_RE = re.compile(r"CRS:?84$", re.IGNORECASE)


def crs_epsg(payload: dict, default_epsg: int = WGS84_EPSG) -> int:
    """EPSG code named by a legacy GeoJSON ``crs`` member, else ``default_epsg``."""
    crs = payload.get("crs")
    if not isinstance(crs, dict):
        return default_epsg
    name = str((crs.get("properties") or {}).get("name", "")).strip()
    if not name:
        return default_epsg
    if _CRS84_RE.search(name):
        return WGS84_EPSG
    match = _EPSG_RE.search(name)
    if not match:
        raise MalformedInputError(f"Unsupported GeoJSON crs: {name}")
    return int(match.group(1))


def _point(feature: dict) -> tuple[float | None, float | None]:
    geometry = feature.get("geometry") or {}
    if geometry.get("type") != "Point":
        return None, None
    coords = geometry.get("coordinates") or []
    if len(coords) < 2:
        return None, None
    return safe_float(coords[0]), safe_float(coords[1])


def records_from_feature_collection(payload, source_name: str, default_epsg: int = WGS84_EPSG) -> list[RawRecord]:
    if not isinstance(payload, dict) or not isinstance(payload.get("features"), list):
        raise MalformedInputError(f"{source_name}: expected a GeoJSON FeatureCollection")
    epsg = crs_epsg(payload, default_epsg)

    records: list[RawRecord] = []
    for idx, feature in enumerate(payload["features"]):
        if not isinstance(feature, dict):
            continue
        properties = feature.get("properties") or {}
        x, y = _point(feature)
        lat = lon = None
        if x is not None and y is not None:
            transformed = to_wgs84(x, y, epsg)
            if transformed is not None:
                lat, lon = transformed
        record_id = feature.get("id") or properties.get("ref") or idx
        records.append(
            RawRecord(
                lat=lat,
                lon=lon,
                tags=properties,
                source_name=source_name,
                source_record_id=str(record_id),
            )
        )
    logger.debug("%s: %d features (EPSG:%d)", source_name, len(records), epsg)
    return records


def load_geojson_records(path: Path, source_name: str, default_epsg: int = WGS84_EPSG) -> list[RawRecord]:
    if not path.exists():
        raise StageError(f"Raw input not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            payload = json.load(f)
    except (ValueError, UnicodeDecodeError) as exc:
        raise MalformedInputError(f"{path} is not valid JSON: {exc}") from exc
    return records_from_feature_collection(payload, source_name, default_epsg)
