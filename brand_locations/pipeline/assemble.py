"""Turn raw records for one brand into canonical, deduplicated locations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from brand_locations.common.constants import JURISDICTIONS
from brand_locations.common.errors import EmptyResultError
from brand_locations.common.models import AssemblyResult, BrandCollection, CanonicalLocation, RawRecord
from brand_locations.pipeline.clean_city import clean_city
from brand_locations.pipeline.coordinates import valid_lat_lon, within_bbox
from brand_locations.pipeline.extract_fields import ExtractionSettings, extract_fields, first_tag
from brand_locations.pipeline.normalise_city import normalise_city
from brand_locations.reference.store import ReferenceDataStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssemblySettings:
    extraction: ExtractionSettings
    output_decimals: int
    dedupe_decimals: int
    north_america_bbox: dict
    allowed_countries: frozenset[str]

    @classmethod
    def from_config(cls, pipeline_cfg: dict) -> "AssemblySettings":
        filters = pipeline_cfg["filters"]
        return cls(
            extraction=ExtractionSettings.from_config(pipeline_cfg["fields"]),
            output_decimals=int(pipeline_cfg["precision"]["output_decimals"]),
            dedupe_decimals=int(pipeline_cfg["precision"]["dedupe_decimals"]),
            north_america_bbox=dict(filters["north_america_bbox"]),
            allowed_countries=frozenset(str(code).upper() for code in filters["allowed_countries"]),
        )


def _is_test_sentinel(record: RawRecord, city: str, state: str, reference: ReferenceDataStore, settings) -> bool:
    sentinels = reference.curated.test_sentinels
    if not sentinels:
        return False
    raw_city = first_tag(record, settings.extraction.city_tags)
    raw_state = first_tag(record, settings.extraction.state_tags)
    return (city.lower(), state) in sentinels or (raw_city.lower(), raw_state.upper()) in sentinels


def in_north_america(record: RawRecord, lat: float, lon: float, state: str, settings: AssemblySettings) -> bool:
    country = first_tag(record, settings.extraction.country_tags).upper()
    if country:
        return country in settings.allowed_countries
    if state in JURISDICTIONS:
        return True
    return within_bbox(lat, lon, settings.north_america_bbox)


def _percent(part: int, whole: int) -> float:
    return round(100.0 * part / whole, 1) if whole else 0.0


def assemble_locations(
    records: Iterable[RawRecord],
    reference: ReferenceDataStore,
    settings: AssemblySettings,
    brand: dict,
) -> AssemblyResult:
    use_location_name = bool(brand.get("use_location_name", False))
    brand_name = brand.get("display_name", "")

    stats = {
        "raw_rows": 0,
        "invalid_coordinates": 0,
        "test_sentinels": 0,
        "outside_north_america": 0,
        "duplicates": 0,
    }
    seen: set[tuple[float, float]] = set()
    locations: list[CanonicalLocation] = []

    for record in records:
        stats["raw_rows"] += 1
        if not valid_lat_lon(record.lat, record.lon):
            stats["invalid_coordinates"] += 1
            continue
        lat, lon = float(record.lat), float(record.lon)

        fields = extract_fields(record, reference, settings.extraction, brand_name=brand_name)
        if _is_test_sentinel(record, fields.city, fields.state, reference, settings):
            stats["test_sentinels"] += 1
            continue
        if not in_north_america(record, lat, lon, fields.state, settings):
            stats["outside_north_america"] += 1
            continue

        dedupe_key = (round(lat, settings.dedupe_decimals), round(lon, settings.dedupe_decimals))
        if dedupe_key in seen:
            stats["duplicates"] += 1
            continue
        seen.add(dedupe_key)

        city = normalise_city(clean_city(fields.city, reference.curated), fields.state, reference)
        locations.append(
            CanonicalLocation(
                lat=round(lat, settings.output_decimals),
                lon=round(lon, settings.output_decimals),
                city=city,
                state=fields.state,
                address=fields.address,
                name=fields.name if use_location_name else "",
            )
        )

    locations.sort(key=lambda loc: (loc.state, loc.city))

    total = len(locations)
    with_state = sum(1 for loc in locations if loc.state)
    with_city = sum(1 for loc in locations if loc.city)
    with_address = sum(1 for loc in locations if loc.address)
    stats.update(
        {
            "locations": total,
            "with_state": with_state,
            "with_city": with_city,
            "with_address": with_address,
            "with_state_pct": _percent(with_state, total),
            "with_city_pct": _percent(with_city, total),
            "with_address_pct": _percent(with_address, total),
        }
    )
    logger.debug("assembled %s: %s", brand.get("key"), stats)
    return AssemblyResult(locations=locations, stats=stats)


def assemble_collection(
    records: Iterable[RawRecord],
    reference: ReferenceDataStore,
    settings: AssemblySettings,
    brand: dict,
) -> tuple[BrandCollection, dict]:
    result = assemble_locations(records, reference, settings, brand)
    if not result.locations:
        raise EmptyResultError(f"No valid North American locations for brand {brand['key']}")
    collection = BrandCollection(
        key=brand["key"],
        display_name=brand["display_name"],
        category=brand["category"],
        locations=tuple(result.locations),
        use_location_name=bool(brand.get("use_location_name", False)),
        source=brand["source"],
    )
    return collection, result.stats
