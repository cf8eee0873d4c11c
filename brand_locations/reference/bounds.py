"""Jurisdiction bounding boxes and point-in-box tests."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from brand_locations.common.constants import JURISDICTION_BY_NAME
from brand_locations.common.errors import ConfigError
from brand_locations.common.fs import read_yaml

# Legacy text layout: ("Florida", 31.000888, 24.523096, -80.031362, -87.634938),
_LEGACY_ROW_RE = re.compile(r'\("([^"]+)",\s*([-\d.]+),\s*([-\d.]+),\s*([-\d.]+),\s*([-\d.]+)\)')


@dataclass(frozen=True)
class BoundingBox:
    name: str
    north: float
    south: float
    east: float
    west: float

    @property
    def wraps_antimeridian(self) -> bool:
        return self.west > 0 and self.east < 0

    def contains(self, lat: float, lon: float) -> bool:
        if not (self.south <= lat <= self.north):
            return False
        if self.wraps_antimeridian:
            return lon >= self.west or lon <= self.east
        return self.west <= lon <= self.east


def make_bounding_box(name: str, north, south, east, west) -> BoundingBox:
    try:
        box = BoundingBox(name=name, north=float(north), south=float(south), east=float(east), west=float(west))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Non-numeric bounding box for {name}") from exc
    if box.north < box.south:
        raise ConfigError(f"Bounding box for {name} has north < south")
    if box.west > box.east and not box.wraps_antimeridian:
        raise ConfigError(f"Bounding box for {name} has west > east without crossing the antimeridian")
    return box


def _load_yaml_bounds(path: Path) -> dict[str, BoundingBox]:
    payload = read_yaml(path) or {}
    rows = payload.get("states") if isinstance(payload, dict) else None
    if not isinstance(rows, list):
        raise ConfigError(f"Bounding box file must contain a 'states' list: {path}")

    boxes: dict[str, BoundingBox] = {}
    for idx, row in enumerate(rows):
        missing = {"code", "name", "north", "south", "east", "west"} - set(row or {})
        if missing:
            raise ConfigError(f"Missing keys in {path.name} states[{idx}]: {', '.join(sorted(missing))}")
        boxes[str(row["code"]).upper()] = make_bounding_box(
            row["name"], row["north"], row["south"], row["east"], row["west"]
        )
    return boxes


def _load_legacy_bounds(path: Path) -> dict[str, BoundingBox]:
    with path.open("r", encoding="utf-8") as f:
        content = f.read()

    boxes: dict[str, BoundingBox] = {}
    for match in _LEGACY_ROW_RE.finditer(content):
        name, north, south, east, west = match.groups()
        code = JURISDICTION_BY_NAME.get(name.lower())
        if code is None:
            continue
        boxes[code] = make_bounding_box(name, north, south, east, west)
    if not boxes:
        raise ConfigError(f"No bounding boxes recognised in {path}")
    return boxes


def load_state_bounds(path: Path) -> dict[str, BoundingBox]:
    if path.suffix in (".yml", ".yaml"):
        return _load_yaml_bounds(path)
    return _load_legacy_bounds(path)


def find_containing(lat: float, lon: float, boxes: dict[str, BoundingBox]) -> list[str]:
    return sorted(code for code, box in boxes.items() if box.contains(lat, lon))
