"""Brand collection files: one JSON document per brand, one location per line."""

from __future__ import annotations

import json
from pathlib import Path

from brand_locations.common.errors import MalformedInputError
from brand_locations.common.fs import ensure_dir
from brand_locations.common.models import BrandCollection, CanonicalLocation

HEADER_FIELDS = ("category", "displayName", "key", "source", "useLocationName")


def _dumps(value) -> str:
    return json.dumps(value, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


def render_collection(collection: BrandCollection) -> str:
    payload = collection.to_dict()
    header = ",".join(f"{_dumps(field)}:{_dumps(payload[field])}" for field in HEADER_FIELDS)
    lines = [_dumps(location) for location in payload["locations"]]
    body = ",\n  ".join(lines)
    if body:
        body = f"\n  {body}\n"
    return f'{{{header},"locations":[{body}]}}\n'


def brand_output_path(data_dir: Path, pipeline_cfg: dict, brand_key: str) -> Path:
    return data_dir / pipeline_cfg["output"]["brands_dir"] / f"{brand_key}.json"


def write_brand_collection(path: Path, collection: BrandCollection) -> Path:
    ensure_dir(path.parent)
    with path.open("w", encoding="utf-8", newline="\n") as f:
        f.write(render_collection(collection))
    return path


def read_brand_collection(path: Path) -> BrandCollection:
    try:
        with path.open("r", encoding="utf-8") as f:
            payload = json.load(f)
        locations = tuple(CanonicalLocation(**location) for location in payload["locations"])
        return BrandCollection(
            key=payload["key"],
            display_name=payload["displayName"],
            category=payload["category"],
            locations=locations,
            use_location_name=bool(payload.get("useLocationName", False)),
            source=payload.get("source", "geojson"),
        )
    except (ValueError, KeyError, TypeError) as exc:
        raise MalformedInputError(f"Unreadable brand collection {path}: {exc}") from exc
