"""Fetch brand POIs from the Overpass API."""

from __future__ import annotations

from pathlib import Path

from brand_locations.common.errors import ConfigError
from brand_locations.common.fs import write_json
from brand_locations.common.http import OverpassClient
from brand_locations.common.models import RawRecord
from brand_locations.pipeline.coordinates import safe_float


def build_overpass_query(brand: dict, overpass_config: dict) -> str:
    body = str(brand.get("overpass_query") or "").strip()
    if not body:
        raise ConfigError(f"Brand {brand.get('key')} has no overpass_query")
    if not body.endswith(";"):
        body += ";"
    timeout = int(overpass_config.get("timeout_seconds", 180))
    return f"[out:json][timeout:{timeout}];\n(\n  {body}\n);\nout center tags;"


def records_from_elements(payload: dict, source_name: str) -> list[RawRecord]:
    rows: list[RawRecord] = []
    seen_ids: set[str] = set()
    for element in payload.get("elements", []):
        source_record_id = f"{element.get('type')}/{element.get('id')}"
        if source_record_id in seen_ids:
            continue
        seen_ids.add(source_record_id)

        center = element.get("center") or {}
        lat = element.get("lat", center.get("lat"))
        lon = element.get("lon", center.get("lon"))
        rows.append(
            RawRecord(
                lat=safe_float(lat),
                lon=safe_float(lon),
                tags=element.get("tags") or {},
                source_name=source_name,
                source_record_id=source_record_id,
            )
        )
    return rows


def fetch_overpass_records(
    brand: dict,
    overpass_config: dict,
    raw_dir: Path,
    overpass_client: OverpassClient | None = None,
) -> list[RawRecord]:
    query = build_overpass_query(brand, overpass_config)

    owns_client = overpass_client is None
    client = overpass_client or OverpassClient.from_config(overpass_config)
    try:
        payload = client.query(query)
    finally:
        if owns_client:
            client.close()

    write_json(raw_dir / "overpass" / f"{brand['key']}.json", payload)
    return records_from_elements(payload, source_name=f"overpass:{brand['key']}")
